# packages/rdbcodec/src/rdbcodec/structure/intset.py
from __future__ import annotations

import struct
from typing import List

import numpy as np

from ..errors import MalformedEncoding

__all__ = ["parse_intset"]

_DTYPES = {2: "<i2", 4: "<i4", 8: "<i8"}


def parse_intset(blob: bytes) -> List[bytes]:
    """
    Intset : u32 encoding (2/4/8) | u32 length | length × intN little-endian.
    Retourne les membres en texte décimal.
    """
    if len(blob) < 8:
        raise MalformedEncoding("intset: blob shorter than its header")
    encoding, length = struct.unpack_from("<II", blob, 0)
    dtype = _DTYPES.get(encoding)
    if dtype is None:
        raise MalformedEncoding(f"intset: bad encoding {encoding}")
    if len(blob) != 8 + encoding * length:
        raise MalformedEncoding(
            f"intset: {length} x {encoding} bytes does not match blob size {len(blob)}"
        )
    values = np.frombuffer(blob, dtype=dtype, count=length, offset=8)
    return [str(v).encode("ascii") for v in values.tolist()]

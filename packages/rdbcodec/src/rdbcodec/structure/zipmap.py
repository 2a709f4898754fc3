# packages/rdbcodec/src/rdbcodec/structure/zipmap.py
from __future__ import annotations

from typing import List, Tuple

from ..errors import MalformedEncoding
from .cursor import BlobCursor

__all__ = ["parse_zipmap"]

_ZIPMAP_BIGLEN = 254
_ZIPMAP_END = 255


def _zipmap_len(cur: BlobCursor) -> int:
    b = cur.byte()
    if b < _ZIPMAP_BIGLEN:
        return b
    if b == _ZIPMAP_BIGLEN:
        return cur.unpack("<I")
    raise MalformedEncoding("zipmap: unexpected end marker inside an entry")


def parse_zipmap(blob: bytes) -> List[Tuple[bytes, bytes]]:
    """
    Zipmap (hash RDB < 4) :
      <zmlen> <len>key <len><free>value[free bytes] ... 0xFF
    """
    cur = BlobCursor(blob, "zipmap")
    cur.byte()  # zmlen, non fiable au-delà de 253
    out: List[Tuple[bytes, bytes]] = []
    while cur.peek() != _ZIPMAP_END:
        field = cur.take(_zipmap_len(cur))
        vlen = _zipmap_len(cur)
        free = cur.byte()
        value = cur.take(vlen)
        cur.skip(free)
        out.append((field, value))
    cur.byte()
    return out

# packages/rdbcodec/src/rdbcodec/dump.py
from __future__ import annotations

import struct
from typing import Optional, Tuple

from .crc64 import crc64
from .errors import MalformedEncoding

__all__ = ["DUMP_FOOTER_VERSION", "create_value_dump", "split_value_dump"]

#: version écrite dans le footer de l'enveloppe (u16 LE)
DUMP_FOOTER_VERSION = 6


def create_value_dump(type_byte: int, payload: bytes, footer: int = DUMP_FOOTER_VERSION,
                      buf: Optional[bytearray] = None) -> bytes:
    """
    Enveloppe DUMP acceptée par `RESTORE` :

        [type:1] [payload] [footer:u16 LE] [crc64:u64 LE]

    Le CRC-64 couvre tout ce qui le précède. `buf` permet de réutiliser un
    tampon entre deux appels (il est vidé, jamais conservé).
    """
    if buf is None:
        buf = bytearray()
    else:
        del buf[:]
    buf.append(type_byte & 0xFF)
    buf += payload
    buf += struct.pack("<H", footer)
    buf += struct.pack("<Q", crc64(buf))
    return bytes(buf)


def split_value_dump(dump: bytes) -> Tuple[int, bytes, int]:
    """
    Inverse de `create_value_dump` : (type, payload, footer), CRC vérifié.
    """
    if len(dump) < 11:
        raise MalformedEncoding("dump: envelope shorter than type + footer + crc")
    (crc_stored,) = struct.unpack("<Q", dump[-8:])
    if crc64(dump[:-8]) != crc_stored:
        raise MalformedEncoding("dump: CRC mismatch")
    (footer,) = struct.unpack("<H", dump[-10:-8])
    return dump[0], dump[1:-10], footer

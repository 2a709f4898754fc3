# packages/rdbcodec/src/rdbcodec/structure/ziplist.py
from __future__ import annotations

from typing import List

from ..errors import MalformedEncoding
from .cursor import BlobCursor

"""
Ziplist (little-endian)
=======================

[0:4]   u32 zlbytes     # taille totale du blob
[4:8]   u32 zltail      # offset de la dernière entrée
[8:10]  u16 zllen       # nombre d'entrées (0xFFFF = inconnu)
[...]   entrées
[-1]    0xFF

Entrée : <prevlen> <encoding> <data>
  prevlen  : 1 octet (< 254) ou 0xFE + u32
  encoding : 00pppppp            chaîne, longueur 6 bits
             01pppppp qqqqqqqq   chaîne, longueur 14 bits (big-endian)
             10000000 + u32 BE   chaîne, longueur 32 bits
             11000000            int16
             11010000            int32
             11100000            int64
             11110000            int24
             11111110            int8
             1111xxxx            entier immédiat 0..12 (xxxx - 1)
"""

__all__ = ["parse_ziplist"]

_ZIP_END = 0xFF
_ZIP_BIG_PREVLEN = 0xFE

_INT_SIZES = {0xC0: 2, 0xD0: 4, 0xE0: 8, 0xF0: 3, 0xFE: 1}


def parse_ziplist(blob: bytes) -> List[bytes]:
    """Décode un ziplist → liste d'éléments (les entiers sont rendus en texte)."""
    cur = BlobCursor(blob, "ziplist")
    zlbytes = cur.unpack("<I")
    cur.unpack("<I")  # zltail
    zllen = cur.unpack("<H")
    if zlbytes != len(blob):
        raise MalformedEncoding(f"ziplist: zlbytes={zlbytes} but blob has {len(blob)} bytes")

    out: List[bytes] = []
    while cur.peek() != _ZIP_END:
        if cur.byte() == _ZIP_BIG_PREVLEN:
            cur.skip(4)
        out.append(_read_entry(cur))
    cur.byte()
    if zllen != 0xFFFF and zllen != len(out):
        raise MalformedEncoding(f"ziplist: header says {zllen} entries, found {len(out)}")
    if cur.remaining():
        raise MalformedEncoding("ziplist: trailing bytes after end marker")
    return out


def _read_entry(cur: BlobCursor) -> bytes:
    enc = cur.byte()
    kind = enc >> 6
    if kind == 0:
        return cur.take(enc & 0x3F)
    if kind == 1:
        return cur.take(((enc & 0x3F) << 8) | cur.byte())
    if kind == 2:
        if enc != 0x80:
            raise MalformedEncoding(f"ziplist: bad string encoding 0x{enc:02x}")
        return cur.take(cur.unpack(">I"))
    size = _INT_SIZES.get(enc)
    if size is not None:
        return str(cur.int_le(size)).encode("ascii")
    if 0xF1 <= enc <= 0xFD:
        return str((enc & 0x0F) - 1).encode("ascii")
    raise MalformedEncoding(f"ziplist: bad integer encoding 0x{enc:02x}")

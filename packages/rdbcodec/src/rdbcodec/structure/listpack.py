# packages/rdbcodec/src/rdbcodec/structure/listpack.py
from __future__ import annotations

from typing import List, Union

from ..errors import MalformedEncoding
from .cursor import BlobCursor

__all__ = ["parse_listpack", "parse_listpack_raw"]

_LP_EOF = 0xFF

_INT_SIZES = {0xF1: 2, 0xF2: 3, 0xF3: 4, 0xF4: 8}


def _backlen_size(entry_len: int) -> int:
    # longueur de <encoding+data> codée sur 7 bits par octet
    if entry_len <= 127:
        return 1
    if entry_len < 16383:
        return 2
    if entry_len < 2097151:
        return 3
    if entry_len < 268435455:
        return 4
    return 5


def parse_listpack_raw(blob: bytes) -> List[Union[int, bytes]]:
    """
    Décode un listpack en gardant les entiers en `int`.

    Les streams ont besoin des entiers (flags, deltas d'ID) ; les autres types
    passent par `parse_listpack`.
    """
    cur = BlobCursor(blob, "listpack")
    total = cur.unpack("<I")
    count = cur.unpack("<H")
    if total != len(blob):
        raise MalformedEncoding(f"listpack: total_bytes={total} but blob has {len(blob)} bytes")

    out: List[Union[int, bytes]] = []
    while cur.peek() != _LP_EOF:
        start = cur.pos
        b = cur.byte()
        if b & 0x80 == 0:
            val: Union[int, bytes] = b & 0x7F
        elif b & 0xC0 == 0x80:
            val = cur.take(b & 0x3F)
        elif b & 0xE0 == 0xC0:
            uv = ((b & 0x1F) << 8) | cur.byte()
            val = uv - (1 << 13) if uv >= (1 << 12) else uv
        elif b & 0xF0 == 0xE0:
            val = cur.take(((b & 0x0F) << 8) | cur.byte())
        elif b == 0xF0:
            val = cur.take(cur.unpack("<I"))
        elif b in _INT_SIZES:
            val = cur.int_le(_INT_SIZES[b])
        else:
            raise MalformedEncoding(f"listpack: bad encoding byte 0x{b:02x}")
        cur.skip(_backlen_size(cur.pos - start))
        out.append(val)
    cur.byte()
    if count != 0xFFFF and count != len(out):
        raise MalformedEncoding(f"listpack: header says {count} entries, found {len(out)}")
    if cur.remaining():
        raise MalformedEncoding("listpack: trailing bytes after end marker")
    return out


def parse_listpack(blob: bytes) -> List[bytes]:
    return [str(v).encode("ascii") if isinstance(v, int) else v for v in parse_listpack_raw(blob)]

# tests/rdb_helpers.py
# Petits constructeurs d'octets RDB pour les tests (pas de writer côté lib).
from __future__ import annotations

import struct
from typing import List, Sequence, Union

from rdbcodec import Loader, LoaderConfig

Item = Union[int, bytes]


# ---------------------------------------------------------------- primitives

def enc_len(n: int) -> bytes:
    if n < 64:
        return bytes([n])
    if n < 16384:
        return bytes([0x40 | (n >> 8), n & 0xFF])
    if n < (1 << 32):
        return b"\x80" + struct.pack(">I", n)
    return b"\x81" + struct.pack(">Q", n)


def enc_str(s: bytes) -> bytes:
    return enc_len(len(s)) + s


def enc_lzf_str(data: bytes) -> bytes:
    c = lzf_compress(data)
    return b"\xc3" + enc_len(len(c)) + enc_len(len(data)) + c


def lzf_compress(data: bytes) -> bytes:
    """Compresseur LZF naïf (glouton) compatible avec le décodeur."""
    out = bytearray()
    lit = bytearray()

    def flush():
        for k in range(0, len(lit), 32):
            chunk = lit[k:k + 32]
            out.append(len(chunk) - 1)
            out.extend(chunk)
        lit.clear()

    i, n = 0, len(data)
    while i < n:
        best_len, best_off = 0, 0
        for j in range(max(0, i - 8192), i):
            ln = 0
            while i + ln < n and ln < 264 and data[j + ln] == data[i + ln]:
                ln += 1
            if ln > best_len:
                best_len, best_off = ln, i - j
        if best_len >= 3:
            flush()
            off, ln = best_off - 1, best_len - 2
            if ln < 7:
                out.append((ln << 5) | (off >> 8))
            else:
                out.append((7 << 5) | (off >> 8))
                out.append(ln - 7)
            out.append(off & 0xFF)
            i += best_len
        else:
            lit.append(data[i])
            i += 1
    flush()
    return bytes(out)


# ------------------------------------------------------------- packed blobs

def ziplist(items: Sequence[Item]) -> bytes:
    entries = bytearray()
    prevlen = 0
    tail = 10
    for it in items:
        e = bytearray(bytes([prevlen]) if prevlen < 254 else b"\xfe" + struct.pack("<I", prevlen))
        if isinstance(it, int):
            if 0 <= it <= 12:
                e.append(0xF1 + it)
            elif -128 <= it <= 127:
                e += b"\xfe" + struct.pack("<b", it)
            elif -32768 <= it <= 32767:
                e += b"\xc0" + struct.pack("<h", it)
            elif -(1 << 23) <= it < (1 << 23):
                e += b"\xf0" + it.to_bytes(3, "little", signed=True)
            elif -(1 << 31) <= it < (1 << 31):
                e += b"\xd0" + struct.pack("<i", it)
            else:
                e += b"\xe0" + struct.pack("<q", it)
        else:
            n = len(it)
            if n < 64:
                e.append(n)
            elif n < 16384:
                e += bytes([0x40 | (n >> 8), n & 0xFF])
            else:
                e += b"\x80" + struct.pack(">I", n)
            e += it
        tail = 10 + len(entries)
        entries += e
        prevlen = len(e)
    zlbytes = 10 + len(entries) + 1
    return struct.pack("<IIH", zlbytes, tail, len(items)) + bytes(entries) + b"\xff"


def _backlen(n: int) -> bytes:
    if n <= 127:
        return bytes([n])
    if n < 16383:
        return bytes([n >> 7, (n & 127) | 128])
    return bytes([n >> 14, ((n >> 7) & 127) | 128, (n & 127) | 128])


def listpack(items: Sequence[Item]) -> bytes:
    body = bytearray()
    for it in items:
        if isinstance(it, int):
            if 0 <= it <= 127:
                enc = bytes([it])
            elif -4096 <= it <= 4095:
                uv = it & 0x1FFF
                enc = bytes([0xC0 | (uv >> 8), uv & 0xFF])
            elif -32768 <= it <= 32767:
                enc = b"\xf1" + struct.pack("<h", it)
            elif -(1 << 23) <= it < (1 << 23):
                enc = b"\xf2" + it.to_bytes(3, "little", signed=True)
            elif -(1 << 31) <= it < (1 << 31):
                enc = b"\xf3" + struct.pack("<i", it)
            else:
                enc = b"\xf4" + struct.pack("<q", it)
        else:
            n = len(it)
            if n < 64:
                enc = bytes([0x80 | n]) + it
            elif n < 4096:
                enc = bytes([0xE0 | (n >> 8), n & 0xFF]) + it
            else:
                enc = b"\xf0" + struct.pack("<I", n) + it
        body += enc + _backlen(len(enc))
    total = 6 + len(body) + 1
    return struct.pack("<IH", total, len(items)) + bytes(body) + b"\xff"


def intset(values: Sequence[int], width: int = 2) -> bytes:
    fmt = {2: "<h", 4: "<i", 8: "<q"}[width]
    return struct.pack("<II", width, len(values)) + b"".join(struct.pack(fmt, v) for v in values)


# ------------------------------------------------------------------ records

def rdb(*records: bytes, version: bytes = b"0011") -> bytes:
    return b"REDIS" + version + b"".join(records) + b"\xff"


def select(db: int) -> bytes:
    return b"\xfe" + enc_len(db)


def aux(key: bytes, value: bytes) -> bytes:
    return b"\xfa" + enc_str(key) + enc_str(value)


def resizedb(db_size: int, expire_size: int) -> bytes:
    return b"\xfb" + enc_len(db_size) + enc_len(expire_size)


def expire_ms(ts: int) -> bytes:
    return b"\xfc" + struct.pack("<Q", ts)


def expire_s(ts: int) -> bytes:
    return b"\xfd" + struct.pack("<I", ts)


def idle(n: int) -> bytes:
    return b"\xf8" + enc_len(n)


def freq(n: int) -> bytes:
    return b"\xf9" + bytes([n])


def value(type_tag: int, key: bytes, body: bytes) -> bytes:
    return bytes([type_tag]) + enc_str(key) + body


# ------------------------------------------------------------------- runner

class ListChannel:
    """Canal minimal : garde les entrées dans une liste."""

    def __init__(self) -> None:
        self.entries: List = []

    def put(self, e) -> None:
        self.entries.append(e)


NOW_MS = 1_700_000_000_000


def load(data: bytes, cfg: LoaderConfig | None = None, **kw):
    import io
    ch = ListChannel()
    kw.setdefault("clock", lambda: NOW_MS)
    ld = Loader(io.BytesIO(data), ch, cfg, **kw)
    db = ld.parse_rdb()
    return ch.entries, db, ld

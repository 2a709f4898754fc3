# packages/rdbcodec/src/rdbcodec/structure/cursor.py
from __future__ import annotations

import struct

from ..errors import MalformedEncoding

__all__ = ["BlobCursor"]


class BlobCursor:
    """Lecture bornée dans un blob déjà en mémoire (ziplist, listpack, ...).

    Un débordement n'est pas une troncature du fichier : le blob a été lu en
    entier, c'est son contenu qui est incohérent → MalformedEncoding.
    """

    def __init__(self, blob: bytes, what: str) -> None:
        self.buf = memoryview(blob)
        self.pos = 0
        self.what = what

    def remaining(self) -> int:
        return len(self.buf) - self.pos

    def take(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.buf):
            raise MalformedEncoding(f"{self.what}: entry runs past end of blob")
        out = bytes(self.buf[self.pos:self.pos + n])
        self.pos += n
        return out

    def skip(self, n: int) -> None:
        if n < 0 or self.pos + n > len(self.buf):
            raise MalformedEncoding(f"{self.what}: entry runs past end of blob")
        self.pos += n

    def peek(self) -> int:
        if self.pos >= len(self.buf):
            raise MalformedEncoding(f"{self.what}: missing end marker")
        return self.buf[self.pos]

    def byte(self) -> int:
        b = self.peek()
        self.pos += 1
        return b

    def unpack(self, fmt: str):
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]

    def int_le(self, nbytes: int) -> int:
        return int.from_bytes(self.take(nbytes), "little", signed=True)

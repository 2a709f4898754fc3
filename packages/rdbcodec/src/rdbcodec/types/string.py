# packages/rdbcodec/src/rdbcodec/types/string.py
from __future__ import annotations

from typing import Iterator

from ..structure import read_string
from .base import RedisCmd, RedisObject

__all__ = ["StringObject"]


class StringObject(RedisObject):

    def __init__(self, key: bytes, value: bytes) -> None:
        super().__init__(key)
        self.value = value

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "StringObject":
        return cls(key, read_string(rd))

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        yield [b"set", self.key, self.value]

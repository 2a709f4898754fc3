# packages/rdbcodec/src/rdbcodec/types/set.py
from __future__ import annotations

from typing import Iterator, List

from ..errors import MalformedEncoding
from ..structure import parse_intset, parse_listpack, read_length, read_string
from .base import RDBType, RedisCmd, RedisObject

__all__ = ["SetObject"]


class SetObject(RedisObject):

    def __init__(self, key: bytes, members: List[bytes]) -> None:
        super().__init__(key)
        self.members = members

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "SetObject":
        if type_byte == RDBType.SET:
            members = [read_string(rd) for _ in range(read_length(rd))]
        elif type_byte == RDBType.SET_INTSET:
            members = parse_intset(read_string(rd))
        elif type_byte == RDBType.SET_LISTPACK:
            members = parse_listpack(read_string(rd))
        else:
            raise MalformedEncoding(f"not a set type: {type_byte}")
        return cls(key, members)

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        for m in self.members:
            yield [b"sadd", self.key, m]

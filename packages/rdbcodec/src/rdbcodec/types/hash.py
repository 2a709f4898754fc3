# packages/rdbcodec/src/rdbcodec/types/hash.py
from __future__ import annotations

from typing import Iterator, List, Tuple

from ..errors import MalformedEncoding
from ..structure import parse_listpack, parse_ziplist, parse_zipmap, read_length, read_string
from .base import RDBType, RedisCmd, RedisObject
from .zset import pairs

__all__ = ["HashObject"]


class HashObject(RedisObject):

    def __init__(self, key: bytes, fields: List[Tuple[bytes, bytes]]) -> None:
        super().__init__(key)
        self.fields = fields

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "HashObject":
        if type_byte == RDBType.HASH:
            fields = []
            for _ in range(read_length(rd)):
                field = read_string(rd)
                fields.append((field, read_string(rd)))
        elif type_byte == RDBType.HASH_ZIPMAP:
            fields = parse_zipmap(read_string(rd))
        elif type_byte == RDBType.HASH_ZIPLIST:
            fields = pairs(parse_ziplist(read_string(rd)), "hash ziplist")
        elif type_byte == RDBType.HASH_LISTPACK:
            fields = pairs(parse_listpack(read_string(rd)), "hash listpack")
        else:
            raise MalformedEncoding(f"not a hash type: {type_byte}")
        return cls(key, fields)

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        for field, value in self.fields:
            yield [b"hset", self.key, field, value]

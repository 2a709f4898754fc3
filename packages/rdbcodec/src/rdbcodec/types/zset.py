# packages/rdbcodec/src/rdbcodec/types/zset.py
from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from ..errors import MalformedEncoding
from ..structure import (
    format_double,
    parse_listpack,
    parse_ziplist,
    read_binary_double,
    read_length,
    read_string,
    read_string_double,
)
from .base import RDBType, RedisCmd, RedisObject

__all__ = ["ZSetObject", "pairs"]


def pairs(flat: Sequence[bytes], what: str) -> List[Tuple[bytes, bytes]]:
    """[a, b, c, d] → [(a, b), (c, d)] ; un nombre impair d'éléments est une corruption."""
    if len(flat) % 2:
        raise MalformedEncoding(f"{what}: odd number of packed elements ({len(flat)})")
    return list(zip(flat[0::2], flat[1::2]))


class ZSetObject(RedisObject):
    """Sorted sets. Les scores sont gardés sous forme texte (prêts pour ZADD)."""

    def __init__(self, key: bytes, members: List[Tuple[bytes, bytes]]) -> None:
        super().__init__(key)
        self.members = members  # (member, score)

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "ZSetObject":
        members: List[Tuple[bytes, bytes]] = []
        if type_byte == RDBType.ZSET:
            for _ in range(read_length(rd)):
                member = read_string(rd)
                members.append((member, format_double(read_string_double(rd))))
        elif type_byte == RDBType.ZSET_2:
            for _ in range(read_length(rd)):
                member = read_string(rd)
                members.append((member, format_double(read_binary_double(rd))))
        elif type_byte == RDBType.ZSET_ZIPLIST:
            members = pairs(parse_ziplist(read_string(rd)), "zset ziplist")
        elif type_byte == RDBType.ZSET_LISTPACK:
            members = pairs(parse_listpack(read_string(rd)), "zset listpack")
        else:
            raise MalformedEncoding(f"not a zset type: {type_byte}")
        return cls(key, members)

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        for member, score in self.members:
            yield [b"zadd", self.key, score, member]

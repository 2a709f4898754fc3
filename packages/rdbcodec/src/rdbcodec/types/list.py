# packages/rdbcodec/src/rdbcodec/types/list.py
from __future__ import annotations

from typing import Iterator, List

from ..errors import MalformedEncoding
from ..structure import parse_listpack, parse_ziplist, read_length, read_string
from .base import RDBType, RedisCmd, RedisObject

__all__ = ["ListObject"]

# conteneurs de nœud quicklist v2
_QUICKLIST_NODE_PLAIN = 1
_QUICKLIST_NODE_PACKED = 2


class ListObject(RedisObject):
    """Listes : linkedlist, ziplist, quicklist (ziplists) et quicklist v2 (listpacks)."""

    def __init__(self, key: bytes, elements: List[bytes]) -> None:
        super().__init__(key)
        self.elements = elements

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "ListObject":
        elements: List[bytes] = []
        if type_byte == RDBType.LIST:
            for _ in range(read_length(rd)):
                elements.append(read_string(rd))
        elif type_byte == RDBType.LIST_ZIPLIST:
            elements.extend(parse_ziplist(read_string(rd)))
        elif type_byte == RDBType.LIST_QUICKLIST:
            for _ in range(read_length(rd)):
                elements.extend(parse_ziplist(read_string(rd)))
        elif type_byte == RDBType.LIST_QUICKLIST_2:
            for _ in range(read_length(rd)):
                container = read_length(rd)
                blob = read_string(rd)
                if container == _QUICKLIST_NODE_PLAIN:
                    elements.append(blob)
                elif container == _QUICKLIST_NODE_PACKED:
                    elements.extend(parse_listpack(blob))
                else:
                    raise MalformedEncoding(f"quicklist: unknown node container {container}")
        else:
            raise MalformedEncoding(f"not a list type: {type_byte}")
        return cls(key, elements)

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        for ele in self.elements:
            yield [b"rpush", self.key, ele]

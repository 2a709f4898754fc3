# packages/rdbcodec/src/rdbcodec/types/__init__.py
from __future__ import annotations

from typing import Dict, Type

from ..errors import MalformedEncoding
from .base import RDBType, RedisCmd, RedisObject
from .function import FunctionLibrary
from .hash import HashObject
from .list import ListObject
from .module import ModuleAux, ModuleObject
from .set import SetObject
from .stream import StreamObject
from .string import StringObject
from .zset import ZSetObject

__all__ = [
    "RDBType", "RedisCmd", "RedisObject",
    "StringObject", "ListObject", "SetObject", "ZSetObject", "HashObject",
    "StreamObject", "ModuleObject", "ModuleAux", "FunctionLibrary",
    "OBJECT_TYPES", "parse_object",
]

# Table fermée tag → décodeur ; chaque RDBType doit y figurer.
# NB: `set`, `list`, `hash`, `string` désignent ici les sous-modules.
OBJECT_TYPES: Dict[RDBType, Type[RedisObject]] = {
    RDBType.STRING: StringObject,
    RDBType.LIST: ListObject,
    RDBType.LIST_ZIPLIST: ListObject,
    RDBType.LIST_QUICKLIST: ListObject,
    RDBType.LIST_QUICKLIST_2: ListObject,
    RDBType.SET: SetObject,
    RDBType.SET_INTSET: SetObject,
    RDBType.SET_LISTPACK: SetObject,
    RDBType.ZSET: ZSetObject,
    RDBType.ZSET_2: ZSetObject,
    RDBType.ZSET_ZIPLIST: ZSetObject,
    RDBType.ZSET_LISTPACK: ZSetObject,
    RDBType.HASH: HashObject,
    RDBType.HASH_ZIPMAP: HashObject,
    RDBType.HASH_ZIPLIST: HashObject,
    RDBType.HASH_LISTPACK: HashObject,
    RDBType.STREAM_LISTPACKS: StreamObject,
    RDBType.STREAM_LISTPACKS_2: StreamObject,
    RDBType.STREAM_LISTPACKS_3: StreamObject,
    RDBType.MODULE: ModuleObject,
    RDBType.MODULE_2: ModuleObject,
}


def parse_object(rd, type_byte: int, key: bytes) -> RedisObject:
    """Décode le corps d'une valeur de type `type_byte` depuis `rd`."""
    try:
        tag = RDBType(type_byte)
    except ValueError:
        raise MalformedEncoding(f"unknown value type tag {type_byte}") from None
    return OBJECT_TYPES[tag].load(rd, key, type_byte)

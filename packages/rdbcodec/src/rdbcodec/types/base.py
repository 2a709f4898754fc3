# packages/rdbcodec/src/rdbcodec/types/base.py
from __future__ import annotations

from enum import IntEnum
from typing import Iterator, List

__all__ = ["RDBType", "RedisCmd", "RedisObject"]

#: une commande = liste d'arguments binaires (nom de commande inclus)
RedisCmd = List[bytes]


class RDBType(IntEnum):
    """Tags de type de valeur (premier octet d'un record valeur)."""

    STRING = 0
    LIST = 1
    SET = 2
    ZSET = 3
    HASH = 4
    ZSET_2 = 5
    MODULE = 6
    MODULE_2 = 7
    HASH_ZIPMAP = 9
    LIST_ZIPLIST = 10
    SET_INTSET = 11
    ZSET_ZIPLIST = 12
    HASH_ZIPLIST = 13
    LIST_QUICKLIST = 14
    STREAM_LISTPACKS = 15
    HASH_LISTPACK = 16
    ZSET_LISTPACK = 17
    LIST_QUICKLIST_2 = 18
    STREAM_LISTPACKS_2 = 19
    SET_LISTPACK = 20
    STREAM_LISTPACKS_3 = 21


class RedisObject:
    """
    Valeur décodée.

    `load` consomme exactement les octets du corps de la valeur ;
    `rewrite` produit (paresseusement) les commandes qui la reconstruisent
    sur une clé vide ; `target_version` écarte les options que le serveur
    cible ne connaît pas.
    """

    def __init__(self, key: bytes) -> None:
        self.key = key

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "RedisObject":
        raise NotImplementedError

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        raise NotImplementedError

# packages/rdbcodec/src/rdbcodec/types/function.py
from __future__ import annotations

from typing import Iterator

from ..structure import read_string
from .base import RedisCmd

__all__ = ["FunctionLibrary"]


class FunctionLibrary:
    """Bibliothèque de fonctions (opcode FUNCTION2) : le code source complet."""

    def __init__(self, code: bytes) -> None:
        self.code = code

    @classmethod
    def load(cls, rd) -> "FunctionLibrary":
        return cls(read_string(rd))

    def rewrite(self, replace: bool = False) -> Iterator[RedisCmd]:
        if replace:
            yield [b"function", b"load", b"replace", self.code]
        else:
            yield [b"function", b"load", self.code]

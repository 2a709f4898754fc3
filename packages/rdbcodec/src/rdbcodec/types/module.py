# packages/rdbcodec/src/rdbcodec/types/module.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Tuple

from ..errors import MalformedEncoding, UnsupportedEncoding, UnsupportedTargetCapability
from ..structure import read_binary_double, read_float, read_length, read_string
from .base import RDBType, RedisCmd, RedisObject

__all__ = [
    "MODULE_OPCODE_EOF", "MODULE_OPCODE_SINT", "MODULE_OPCODE_UINT",
    "MODULE_OPCODE_FLOAT", "MODULE_OPCODE_DOUBLE", "MODULE_OPCODE_STRING",
    "module_type_name", "read_module_values",
    "ModuleObject", "ModuleAux",
]

# Flux auto-descriptif des modules (RDB >= 9, MODULE_2 et MODULE_AUX)
MODULE_OPCODE_EOF = 0
MODULE_OPCODE_SINT = 1
MODULE_OPCODE_UINT = 2
MODULE_OPCODE_FLOAT = 3
MODULE_OPCODE_DOUBLE = 4
MODULE_OPCODE_STRING = 5

_NAME_CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def module_type_name(module_id: int) -> Tuple[str, int]:
    """id 64 bits → (nom sur 9 caractères, encver sur 10 bits)."""
    name = "".join(
        _NAME_CHARSET[(module_id >> (64 - 6 * (i + 1))) & 0x3F] for i in range(9)
    )
    return name, module_id & 0x3FF


def read_module_values(rd) -> List[Tuple[int, Any]]:
    """Lit (opcode, valeur) jusqu'à MODULE_OPCODE_EOF inclus."""
    out: List[Tuple[int, Any]] = []
    while True:
        opcode = read_length(rd)
        if opcode == MODULE_OPCODE_EOF:
            return out
        if opcode in (MODULE_OPCODE_SINT, MODULE_OPCODE_UINT):
            out.append((opcode, read_length(rd)))
        elif opcode == MODULE_OPCODE_FLOAT:
            out.append((opcode, read_float(rd)))
        elif opcode == MODULE_OPCODE_DOUBLE:
            out.append((opcode, read_binary_double(rd)))
        elif opcode == MODULE_OPCODE_STRING:
            out.append((opcode, read_string(rd)))
        else:
            raise MalformedEncoding(f"unknown module opcode {opcode}")


class ModuleObject(RedisObject):
    """
    Valeur d'un type module (MODULE_2).

    Le corps est décodé de façon générique (le format est auto-descriptif) ;
    il n'existe pas de commandes standard pour le reconstruire, seule
    l'enveloppe DUMP est transportable.
    """

    def __init__(self, key: bytes, module_id: int, values: List[Tuple[int, Any]]) -> None:
        super().__init__(key)
        self.module_id = module_id
        self.module_name, self.encver = module_type_name(module_id)
        self.values = values

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "ModuleObject":
        if type_byte == RDBType.MODULE:
            raise UnsupportedEncoding("pre-GA module value format (type 6) is not supported")
        module_id = read_length(rd)
        return cls(key, module_id, read_module_values(rd))

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        raise UnsupportedTargetCapability(
            f"module type {self.module_name!r} cannot be rewritten as commands; "
            "raise target_proto_max_bulk_len to transfer it with RESTORE"
        )
        yield  # générateur


@dataclass
class ModuleAux:
    """Données auxiliaires de module (opcode MODULE_AUX), ignorées au rejeu."""

    module_id: int
    when: int
    values: List[Tuple[int, Any]]

    @property
    def module_name(self) -> str:
        return module_type_name(self.module_id)[0]

    @classmethod
    def load(cls, rd) -> "ModuleAux":
        module_id = read_length(rd)
        when_opcode = read_length(rd)
        if when_opcode != MODULE_OPCODE_UINT:
            raise MalformedEncoding(f"module aux: 'when' must be a UINT opcode, got {when_opcode}")
        when = read_length(rd)
        return cls(module_id, when, read_module_values(rd))

# packages/rdbcodec/src/rdbcodec/structure/__init__.py
from __future__ import annotations

# Source séquentielle + capture (tee)
from .reader import RDBReader, TeeReader

# Primitives RDB (longueurs, chaînes, entiers, doubles)
from .primitives import (
    read_raw, read_byte,
    read_uint32, read_uint64, read_uint32_be, read_uint64_be,
    read_float, read_binary_double, read_string_double,
    read_length_with_encoding, read_length, read_string,
    format_double,
)
from .lzf import lzf_decompress

# Blobs packés portés par les valeurs
from .ziplist import parse_ziplist
from .listpack import parse_listpack, parse_listpack_raw
from .intset import parse_intset
from .zipmap import parse_zipmap

__all__ = [
    "RDBReader", "TeeReader",
    "read_raw", "read_byte",
    "read_uint32", "read_uint64", "read_uint32_be", "read_uint64_be",
    "read_float", "read_binary_double", "read_string_double",
    "read_length_with_encoding", "read_length", "read_string",
    "format_double",
    "lzf_decompress",
    "parse_ziplist", "parse_listpack", "parse_listpack_raw",
    "parse_intset", "parse_zipmap",
]

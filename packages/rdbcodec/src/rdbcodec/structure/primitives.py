# packages/rdbcodec/src/rdbcodec/structure/primitives.py
# -----------------------------------------------------------------------------
# Primitives RDB : octets, entiers fixes, longueurs variables, chaînes.
# Seul module (avec les blobs packés) à toucher des octets bruts.

from __future__ import annotations

import math
import struct
from typing import Tuple

from ..errors import MalformedEncoding, TruncatedInput
from .lzf import lzf_decompress

__all__ = [
    "RDB_6BITLEN", "RDB_14BITLEN", "RDB_32BITLEN", "RDB_64BITLEN", "RDB_ENCVAL",
    "RDB_ENC_INT8", "RDB_ENC_INT16", "RDB_ENC_INT32", "RDB_ENC_LZF",
    "read_raw", "read_byte",
    "read_uint32", "read_uint64", "read_uint32_be", "read_uint64_be",
    "read_float", "read_binary_double", "read_string_double",
    "read_length_with_encoding", "read_length", "read_string",
    "format_double",
]

# Classes de longueur (2 bits de poids fort du premier octet)
RDB_6BITLEN = 0
RDB_14BITLEN = 1
RDB_32BITLEN = 0x80
RDB_64BITLEN = 0x81
RDB_ENCVAL = 3

# Encodages spéciaux de chaîne (6 bits de poids faible quand la classe vaut 11)
RDB_ENC_INT8 = 0
RDB_ENC_INT16 = 1
RDB_ENC_INT32 = 2
RDB_ENC_LZF = 3


def read_raw(rd, n: int) -> bytes:
    """Lit exactement `n` octets ou lève TruncatedInput."""
    if n == 0:
        return b""
    data = rd.read(n)
    if len(data) != n:
        raise TruncatedInput(f"unexpected end of input: wanted {n} bytes, got {len(data)}")
    return data


def read_byte(rd) -> int:
    return read_raw(rd, 1)[0]


def read_uint32(rd) -> int:
    """u32 little-endian (EXPIRETIME en secondes)."""
    return struct.unpack("<I", read_raw(rd, 4))[0]


def read_uint64(rd) -> int:
    """u64 little-endian (EXPIRETIME_MS, temps des streams)."""
    return struct.unpack("<Q", read_raw(rd, 8))[0]


def read_uint32_be(rd) -> int:
    return struct.unpack(">I", read_raw(rd, 4))[0]


def read_uint64_be(rd) -> int:
    return struct.unpack(">Q", read_raw(rd, 8))[0]


def read_float(rd) -> float:
    return struct.unpack("<f", read_raw(rd, 4))[0]


def read_binary_double(rd) -> float:
    return struct.unpack("<d", read_raw(rd, 8))[0]


def read_string_double(rd) -> float:
    """
    Double "legacy" (ZSET v1) : 1 octet de longueur puis le texte ASCII.
    253 = NaN, 254 = +inf, 255 = -inf.
    """
    n = read_byte(rd)
    if n == 253:
        return math.nan
    if n == 254:
        return math.inf
    if n == 255:
        return -math.inf
    text = read_raw(rd, n)
    try:
        return float(text)
    except ValueError:
        raise MalformedEncoding(f"invalid string-encoded double {text!r}") from None


def read_length_with_encoding(rd) -> Tuple[int, bool]:
    """
    Décode une longueur variable.

    Retour
    ------
    (value, is_encoded)
        `is_encoded` est vrai pour la classe `11` : `value` est alors le type
        d'encodage spécial (6 bits de poids faible), pas une longueur.
    """
    first = read_byte(rd)
    kind = (first & 0xC0) >> 6
    if kind == RDB_ENCVAL:
        return first & 0x3F, True
    if kind == RDB_6BITLEN:
        return first & 0x3F, False
    if kind == RDB_14BITLEN:
        return ((first & 0x3F) << 8) | read_byte(rd), False
    if first == RDB_32BITLEN:
        return read_uint32_be(rd), False
    if first == RDB_64BITLEN:
        return read_uint64_be(rd), False
    raise MalformedEncoding(f"unknown length encoding byte 0x{first:02x}")


def read_length(rd) -> int:
    value, encoded = read_length_with_encoding(rd)
    if encoded:
        raise MalformedEncoding(f"expected a length, got special encoding {value}")
    return value


def read_string(rd) -> bytes:
    """
    Lit une chaîne RDB.

    - chaîne brute préfixée par sa longueur ;
    - entier 8/16/32 bits signé (little-endian) → texte décimal ASCII ;
    - bloc LZF : `clen`, `ulen`, puis `clen` octets à décompresser.
    """
    length, encoded = read_length_with_encoding(rd)
    if not encoded:
        return read_raw(rd, length)
    if length == RDB_ENC_INT8:
        v = struct.unpack("<b", read_raw(rd, 1))[0]
    elif length == RDB_ENC_INT16:
        v = struct.unpack("<h", read_raw(rd, 2))[0]
    elif length == RDB_ENC_INT32:
        v = struct.unpack("<i", read_raw(rd, 4))[0]
    elif length == RDB_ENC_LZF:
        clen = read_length(rd)
        ulen = read_length(rd)
        return lzf_decompress(read_raw(rd, clen), ulen)
    else:
        raise MalformedEncoding(f"unknown string encoding {length}")
    return str(v).encode("ascii")


def format_double(v: float) -> bytes:
    """Rendu texte d'un score, relisible par le serveur (inf/-inf/nan inclus)."""
    if math.isinf(v):
        return b"inf" if v > 0 else b"-inf"
    if math.isnan(v):
        return b"nan"
    if v.is_integer() and abs(v) < 1e17:
        return str(int(v)).encode("ascii")
    return repr(v).encode("ascii")

from __future__ import annotations

import pytest

from rdbcodec import MalformedEncoding, crc64
from rdbcodec.structure import lzf_decompress
from rdb_helpers import lzf_compress


def test_lzf_literal_run():
    assert lzf_decompress(b"\x02abc", 3) == b"abc"


def test_lzf_backref_short_overlap():
    # littéral "a" puis référence longueur 7, offset 1 → copie chevauchante
    assert lzf_decompress(b"\x00a\xa0\x00", 8) == b"a" * 8


def test_lzf_backref_extended_length():
    # "abc" puis référence longueur 9 (7 + octet d'extension 0), offset 3
    assert lzf_decompress(b"\x02abc\xe0\x00\x02", 12) == b"abc" * 4


def test_lzf_roundtrip_long_input():
    data = bytes(range(256)) * 4 + b"x" * 300 + b"tail"
    assert lzf_decompress(lzf_compress(data), len(data)) == data


def test_lzf_reference_before_start():
    with pytest.raises(MalformedEncoding):
        lzf_decompress(b"\x20\x05", 3)


def test_lzf_literal_past_end():
    with pytest.raises(MalformedEncoding):
        lzf_decompress(b"\x05ab", 6)


def test_lzf_length_mismatch():
    with pytest.raises(MalformedEncoding):
        lzf_decompress(b"\x00a", 2)


def test_crc64_check_value():
    assert crc64(b"123456789") == 0xE9C6D914C4B8D9CA
    assert crc64(b"") == 0


def test_crc64_incremental():
    a, b = b"REDIS0011", b"\xfe\x00\x00\x01k\x01v\xff"
    assert crc64(b, crc64(a)) == crc64(a + b)


def _crc64_bitwise(data: bytes, crc: int = 0) -> int:
    for b in data:
        crc ^= b
        for _ in range(8):
            crc = (crc >> 1) ^ 0x95AC9329AC4BC9B5 if crc & 1 else crc >> 1
    return crc


def test_crc64_word_path_matches_bitwise():
    data = bytes((i * 37 + 11) & 0xFF for i in range(300))
    for n in list(range(0, 41)) + [255, 300]:
        assert crc64(data[:n]) == _crc64_bitwise(data[:n]), n
    assert crc64(bytearray(data)) == _crc64_bitwise(data)
    # reprise à une frontière non alignée
    assert crc64(data[13:], crc64(data[:13])) == _crc64_bitwise(data)


def test_crc64_detects_single_byte_change():
    data = bytearray(b"\x00\x01v\x06\x00")
    ref = crc64(bytes(data))
    data[2] ^= 0x01
    assert crc64(bytes(data)) != ref

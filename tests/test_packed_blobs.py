from __future__ import annotations

import struct

import pytest

from rdbcodec import MalformedEncoding
from rdbcodec.structure import (
    parse_intset,
    parse_listpack,
    parse_listpack_raw,
    parse_ziplist,
    parse_zipmap,
)
from rdb_helpers import intset, listpack, ziplist


def test_ziplist_strings_and_ints():
    items = [b"a", 5, 0, 12, -100, 1000, 100000, 10 ** 8, 2 ** 40, b"x" * 100]
    assert parse_ziplist(ziplist(items)) == [
        b"a", b"5", b"0", b"12", b"-100", b"1000", b"100000",
        b"100000000", str(2 ** 40).encode(), b"x" * 100,
    ]


def test_ziplist_large_prevlen():
    # entrée de 303 octets → prevlen suivant sur 5 octets
    assert parse_ziplist(ziplist([b"y" * 300, b"z"])) == [b"y" * 300, b"z"]


def test_ziplist_empty():
    assert parse_ziplist(ziplist([])) == []


def test_ziplist_inconsistent_header():
    blob = bytearray(ziplist([b"a", b"b"]))
    blob[8] = 3  # zllen
    with pytest.raises(MalformedEncoding):
        parse_ziplist(bytes(blob))
    blob = ziplist([b"a"])
    with pytest.raises(MalformedEncoding):
        parse_ziplist(blob + b"\x00")  # zlbytes != taille


def test_ziplist_missing_end_marker():
    blob = bytearray(ziplist([b"a"]))
    blob[0:4] = struct.pack("<I", len(blob) - 1)
    with pytest.raises(MalformedEncoding):
        parse_ziplist(bytes(blob[:-1]))


def test_listpack_all_encodings():
    items = [b"abc", 7, -1, 3000, -3000, 30000, 10 ** 6, 10 ** 9, 2 ** 40, b"q" * 200, b"r" * 5000]
    assert parse_listpack_raw(listpack(items)) == items
    assert parse_listpack(listpack([b"m", 42, -7])) == [b"m", b"42", b"-7"]


def test_listpack_count_mismatch():
    blob = bytearray(listpack([b"a", 1]))
    blob[4:6] = struct.pack("<H", 5)
    with pytest.raises(MalformedEncoding):
        parse_listpack(bytes(blob))


def test_listpack_bad_encoding_byte():
    body = b"\xf5\x01"
    blob = struct.pack("<IH", 6 + len(body) + 1, 1) + body + b"\xff"
    with pytest.raises(MalformedEncoding):
        parse_listpack(blob)


@pytest.mark.parametrize("width,values", [
    (2, [-5, 0, 300]),
    (4, [-70000, 1, 70000]),
    (8, [-(2 ** 40), 2 ** 40]),
])
def test_intset_widths(width, values):
    assert parse_intset(intset(values, width)) == [str(v).encode() for v in values]


def test_intset_invalid():
    with pytest.raises(MalformedEncoding):
        parse_intset(intset([1, 2], 2)[:-1])
    with pytest.raises(MalformedEncoding):
        parse_intset(struct.pack("<II", 3, 0))
    with pytest.raises(MalformedEncoding):
        parse_intset(b"\x02\x00")


def test_zipmap_with_free_bytes():
    blob = b"\x02" + b"\x01a" + b"\x02\x01xy\x00" + b"\x01b" + b"\x00\x00" + b"\xff"
    assert parse_zipmap(blob) == [(b"a", b"xy"), (b"b", b"")]


def test_zipmap_truncated():
    with pytest.raises(MalformedEncoding):
        parse_zipmap(b"\x01\x01a\x05\x00ab")

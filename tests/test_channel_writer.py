from __future__ import annotations

import io
import threading

import pytest

from rdbcodec import Channel, ChannelClosed, Entry, Statistics
from rdbwf import RespWriter, encode_resp


def test_channel_iterates_until_finish():
    ch = Channel(maxsize=4)
    ch.put(Entry(0, [b"set", b"a", b"1"]))
    ch.put(Entry(1, [b"set", b"b", b"2"]))
    ch.finish()
    assert [e.argv[1] for e in ch] == [b"a", b"b"]


def test_channel_close_unblocks_producer():
    ch = Channel(maxsize=1)
    ch.put(Entry(0, [b"ping"]))
    errors = []

    def produce():
        try:
            ch.put(Entry(0, [b"ping"]))
        except ChannelClosed as e:
            errors.append(e)

    t = threading.Thread(target=produce)
    t.start()
    ch.close()
    t.join(timeout=5)
    assert not t.is_alive()
    assert len(errors) == 1
    with pytest.raises(ChannelClosed):
        ch.put(Entry(0, [b"ping"]))


def test_statistics_monotonic():
    st = Statistics()
    st.update_rdb_sent_size(100)
    st.update_rdb_sent_size(50)
    assert st.rdb_send_size == 100
    st.set_rdb_file_size(400)
    assert st.rdb_file_size == 400


def test_entry_helpers():
    e = Entry(3, [b"RESTORE", b"k", b"0", b"\x00"])
    assert e.command == b"restore"
    assert e.to_dict() == {"db_id": 3, "argv": [b"RESTORE", b"k", b"0", b"\x00"], "is_base": True}


def test_encode_resp():
    assert encode_resp([b"set", b"k", b"v\r\n"]) == b"*3\r\n$3\r\nset\r\n$1\r\nk\r\n$3\r\nv\r\n\r\n"


def test_writer_inserts_select_on_db_change():
    out = io.BytesIO()
    w = RespWriter(out)
    n = w.write_all([
        Entry(0, [b"set", b"a", b"1"]),
        Entry(0, [b"set", b"b", b"2"]),
        Entry(2, [b"set", b"c", b"3"]),
    ])
    assert n == 3
    assert out.getvalue() == b"".join([
        encode_resp([b"select", b"0"]),
        encode_resp([b"set", b"a", b"1"]),
        encode_resp([b"set", b"b", b"2"]),
        encode_resp([b"select", b"2"]),
        encode_resp([b"set", b"c", b"3"]),
    ])

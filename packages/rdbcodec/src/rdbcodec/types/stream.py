# packages/rdbcodec/src/rdbcodec/types/stream.py
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..errors import MalformedEncoding
from ..structure import parse_listpack_raw, read_length, read_raw, read_string, read_uint64
from .base import RDBType, RedisCmd, RedisObject

"""
Streams (STREAM_LISTPACKS, _2, _3)
==================================

<n listpacks>
  n × ( <master id : 16 octets, ms|seq big-endian> <listpack> )
<length> <last_id.ms> <last_id.seq>
[v2+] <first_id.ms> <first_id.seq> <max_deleted.ms> <max_deleted.seq> <entries_added>
<n groups>
  n × ( <name> <last_id.ms> <last_id.seq> [v2+ <entries_read>]
        <pel size>  pel × ( <raw id 16o> <delivery time u64 LE> <delivery count> )
        <consumers> c × ( <name> <seen time u64 LE> [v3 <active time u64 LE>]
                          <pel size> pel × <raw id 16o> ) )

Listpack d'un nœud :
  master entry : count, deleted, n_fields, fields..., 0
  entrées      : flags, ms-diff, seq-diff,
                 (SAMEFIELDS → valeurs seules | n_fields, field, value, ...),
                 lp-count
"""

__all__ = ["StreamID", "StreamEntry", "StreamNACK", "StreamConsumer", "StreamGroup", "StreamObject"]

_FLAG_DELETED = 1
_FLAG_SAMEFIELDS = 2

StreamID = Tuple[int, int]


def _fmt_id(sid: StreamID) -> bytes:
    return f"{sid[0]}-{sid[1]}".encode("ascii")


def _decode_raw_id(raw: bytes) -> StreamID:
    if len(raw) != 16:
        raise MalformedEncoding(f"stream: raw id must be 16 bytes, got {len(raw)}")
    ms, seq = struct.unpack(">QQ", raw)
    return ms, seq


def _read_id(rd) -> StreamID:
    ms = read_length(rd)
    return ms, read_length(rd)


def _as_int(v) -> int:
    if isinstance(v, int):
        return v
    try:
        return int(v)
    except ValueError:
        raise MalformedEncoding(f"stream: expected an integer listpack entry, got {v!r}") from None


@dataclass
class StreamEntry:
    id: StreamID
    fields: List[Tuple[bytes, bytes]]


@dataclass
class StreamNACK:
    delivery_time: int
    delivery_count: int


@dataclass
class StreamConsumer:
    name: bytes
    seen_time: int
    active_time: Optional[int] = None
    pending: List[StreamID] = field(default_factory=list)


@dataclass
class StreamGroup:
    name: bytes
    last_id: StreamID
    entries_read: Optional[int] = None
    pel: Dict[StreamID, StreamNACK] = field(default_factory=dict)
    consumers: List[StreamConsumer] = field(default_factory=list)


class StreamObject(RedisObject):

    def __init__(self, key: bytes) -> None:
        super().__init__(key)
        self.entries: List[StreamEntry] = []
        self.length = 0
        self.last_id: StreamID = (0, 0)
        self.first_id: Optional[StreamID] = None
        self.max_deleted_id: Optional[StreamID] = None
        self.entries_added: Optional[int] = None
        self.groups: List[StreamGroup] = []

    @classmethod
    def load(cls, rd, key: bytes, type_byte: int) -> "StreamObject":
        if type_byte not in (RDBType.STREAM_LISTPACKS, RDBType.STREAM_LISTPACKS_2,
                             RDBType.STREAM_LISTPACKS_3):
            raise MalformedEncoding(f"not a stream type: {type_byte}")
        o = cls(key)
        for _ in range(read_length(rd)):
            master_id = _decode_raw_id(read_string(rd))
            o._load_listpack(master_id, read_string(rd))

        o.length = read_length(rd)
        o.last_id = _read_id(rd)
        if type_byte >= RDBType.STREAM_LISTPACKS_2:
            o.first_id = _read_id(rd)
            o.max_deleted_id = _read_id(rd)
            o.entries_added = read_length(rd)

        for _ in range(read_length(rd)):
            g = StreamGroup(name=read_string(rd), last_id=_read_id(rd))
            if type_byte >= RDBType.STREAM_LISTPACKS_2:
                g.entries_read = read_length(rd)
            for _ in range(read_length(rd)):
                sid = _decode_raw_id(read_raw(rd, 16))
                delivery_time = read_uint64(rd)
                g.pel[sid] = StreamNACK(delivery_time, read_length(rd))
            for _ in range(read_length(rd)):
                c = StreamConsumer(name=read_string(rd), seen_time=read_uint64(rd))
                if type_byte >= RDBType.STREAM_LISTPACKS_3:
                    c.active_time = read_uint64(rd)
                for _ in range(read_length(rd)):
                    sid = _decode_raw_id(read_raw(rd, 16))
                    if sid not in g.pel:
                        raise MalformedEncoding("stream: consumer PEL entry missing from group PEL")
                    c.pending.append(sid)
                g.consumers.append(c)
            o.groups.append(g)
        return o

    def _load_listpack(self, master_id: StreamID, blob: bytes) -> None:
        it = iter(parse_listpack_raw(blob))
        try:
            count = _as_int(next(it))
            deleted = _as_int(next(it))
            master_fields = [next(it) for _ in range(_as_int(next(it)))]
            next(it)  # terminateur de la master entry
            for _ in range(count + deleted):
                flags = _as_int(next(it))
                sid = (master_id[0] + _as_int(next(it)), master_id[1] + _as_int(next(it)))
                fields: List[Tuple[bytes, bytes]] = []
                if flags & _FLAG_SAMEFIELDS:
                    for name in master_fields:
                        fields.append((_as_bytes(name), _as_bytes(next(it))))
                else:
                    for _ in range(_as_int(next(it))):
                        name = next(it)
                        fields.append((_as_bytes(name), _as_bytes(next(it))))
                next(it)  # lp-count
                if not flags & _FLAG_DELETED:
                    self.entries.append(StreamEntry(sid, fields))
        except StopIteration:
            raise MalformedEncoding("stream: listpack node ends in the middle of an entry") from None

    def rewrite(self, target_version: float = 7.0) -> Iterator[RedisCmd]:
        key = self.key
        for e in self.entries:
            cmd = [b"xadd", key, _fmt_id(e.id)]
            for f, v in e.fields:
                cmd += [f, v]
            yield cmd
        if not self.entries:
            # crée la clé sans entrée : XADD puis élagage immédiat
            yield [b"xadd", key, b"MAXLEN", b"0", _fmt_id(self._placeholder_id()), b"x", b"y"]

        # ENTRIESADDED / MAXDELETEDID / ENTRIESREAD : 7.0+, CREATECONSUMER : 6.2+
        v7 = target_version >= 7.0
        setid = [b"xsetid", key, _fmt_id(self.last_id)]
        if v7 and self.entries_added is not None:
            setid += [b"ENTRIESADDED", str(self.entries_added).encode("ascii")]
        if v7 and self.max_deleted_id is not None:
            setid += [b"MAXDELETEDID", _fmt_id(self.max_deleted_id)]
        yield setid

        for g in self.groups:
            create = [b"xgroup", b"CREATE", key, g.name, _fmt_id(g.last_id)]
            if v7 and g.entries_read is not None:
                create += [b"ENTRIESREAD", str(g.entries_read).encode("ascii")]
            yield create
            for c in g.consumers:
                if not c.pending:
                    # avant 6.2, le consumer naîtra à sa première lecture
                    if target_version >= 6.2:
                        yield [b"xgroup", b"CREATECONSUMER", key, g.name, c.name]
                    continue
                for sid in c.pending:
                    nack = g.pel[sid]
                    yield [
                        b"xclaim", key, g.name, c.name, b"0", _fmt_id(sid),
                        b"TIME", str(nack.delivery_time).encode("ascii"),
                        b"RETRYCOUNT", str(nack.delivery_count).encode("ascii"),
                        b"FORCE", b"JUSTID",
                    ]

    def _placeholder_id(self) -> StreamID:
        # XADD refuse 0-0
        return self.last_id if self.last_id != (0, 0) else (0, 1)


def _as_bytes(v) -> bytes:
    return str(v).encode("ascii") if isinstance(v, int) else v

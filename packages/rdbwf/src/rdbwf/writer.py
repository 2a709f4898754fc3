# packages/rdbwf/src/rdbwf/writer.py
from __future__ import annotations

from typing import BinaryIO, Iterable, List, Optional

from rdbcodec import Entry

__all__ = ["encode_resp", "RespWriter"]


def encode_resp(argv: List[bytes]) -> bytes:
    """argv → tableau RESP (`*N\\r\\n$len\\r\\narg\\r\\n...`)."""
    parts = [b"*%d\r\n" % len(argv)]
    for a in argv:
        parts.append(b"$%d\r\n" % len(a))
        parts.append(a)
        parts.append(b"\r\n")
    return b"".join(parts)


class RespWriter:
    """
    Consommateur : écrit les entrées en RESP (rejouable via `redis-cli --pipe`).

    Un `SELECT db` est inséré à chaque changement de base.
    """

    def __init__(self, out: BinaryIO) -> None:
        self.out = out
        self.db_id: Optional[int] = None
        self.count = 0

    def write(self, e: Entry) -> None:
        if e.db_id != self.db_id:
            self.out.write(encode_resp([b"select", str(e.db_id).encode("ascii")]))
            self.db_id = e.db_id
        self.out.write(encode_resp(e.argv))
        self.count += 1

    def write_all(self, entries: Iterable[Entry]) -> int:
        for e in entries:
            self.write(e)
        return self.count

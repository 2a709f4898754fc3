# packages/rdbcodec/src/rdbcodec/statistics.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field

__all__ = ["Statistics"]


@dataclass
class Statistics:
    """Compteurs de progression lus par un collecteur de métriques externe."""

    rdb_file_size: int = 0
    rdb_send_size: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def update_rdb_sent_size(self, offset: int) -> None:
        # compteur monotone : un rapport en retard ne fait pas reculer la valeur
        with self._lock:
            if offset > self.rdb_send_size:
                self.rdb_send_size = offset

    def set_rdb_file_size(self, size: int) -> None:
        with self._lock:
            self.rdb_file_size = size

# packages/rdbcodec/src/rdbcodec/channel.py
from __future__ import annotations

import queue
import threading
from typing import Iterator, Optional

from .entry import Entry

__all__ = ["Channel", "ChannelClosed"]


class ChannelClosed(RuntimeError):
    """Le consommateur a fermé le canal : l'envoi est abandonné (fatal)."""


class Channel:
    """
    Canal producteur → consommateur au-dessus de `queue.Queue`.

    - `put` bloque tant que la file est pleine (`maxsize > 0`) : un
      consommateur lent freine la lecture du fichier ;
    - `close` (côté consommateur) débloque un producteur en attente, qui
      reçoit `ChannelClosed` ;
    - `finish` (côté producteur) signale la fin du flux aux itérateurs.
    """

    _POLL = 0.1
    _DONE = object()

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)  # 0 = infinite size
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, entry: Entry) -> None:
        while True:
            if self._closed.is_set():
                raise ChannelClosed("channel closed by consumer")
            try:
                self._queue.put(entry, timeout=self._POLL)
                return
            except queue.Full:
                continue

    def finish(self) -> None:
        while not self._closed.is_set():
            try:
                self._queue.put(self._DONE, timeout=self._POLL)
                return
            except queue.Full:
                continue

    def close(self) -> None:
        self._closed.set()

    def get(self, timeout: Optional[float] = None) -> Optional[Entry]:
        """Prochaine entrée, ou None quand le producteur a terminé."""
        item = self._queue.get(timeout=timeout)
        if item is self._DONE:
            return None
        return item

    def __iter__(self) -> Iterator[Entry]:
        while True:
            item = self.get()
            if item is None:
                return
            yield item

# packages/rdbcodec/src/rdbcodec/structure/reader.py
from __future__ import annotations

from typing import BinaryIO

from ..crc64 import crc64

__all__ = ["RDBReader", "TeeReader"]

# taille maximale d'une lecture élémentaire sur le flux sous-jacent
_CHUNK = 1 << 20


class RDBReader:
    """
    Source séquentielle au-dessus d'un fichier binaire.

    - compte les octets consommés (`offset`) pour le rapport de progression
      et le contexte des erreurs ;
    - boucle sur `read` tant que le flux sous-jacent rend des lectures
      partielles (pipes, sockets) ;
    - si `checksum=True`, tient un CRC-64 courant de tout ce qui est lu.
    """

    def __init__(self, fp: BinaryIO, *, checksum: bool = False) -> None:
        self._fp = fp
        self._offset = 0
        self._checksum = checksum
        self._crc = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def crc(self) -> int:
        return self._crc

    def read(self, n: int) -> bytes:
        # lectures bornées : une longueur corrompue finit en lecture courte
        chunks = []
        got = 0
        while got < n:
            more = self._fp.read(min(n - got, _CHUNK))
            if not more:
                break
            chunks.append(more)
            got += len(more)
        data = chunks[0] if len(chunks) == 1 else b"".join(chunks)
        self._offset += len(data)
        if self._checksum:
            self._crc = crc64(data, self._crc)
        return data

    def stop_checksum(self) -> None:
        """Gèle le CRC courant (les 8 octets du checksum ne s'y incluent pas)."""
        self._checksum = False


class TeeReader:
    """
    Duplique chaque lecture dans `sink`.

    Les décodeurs d'objets lisent au travers sans le savoir : l'accumulateur
    contient exactement les octets du corps de la valeur.
    """

    def __init__(self, rd, sink: bytearray) -> None:
        self._rd = rd
        self._sink = sink

    def read(self, n: int) -> bytes:
        data = self._rd.read(n)
        self._sink += data
        return data

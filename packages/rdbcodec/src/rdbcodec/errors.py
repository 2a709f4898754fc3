# packages/rdbcodec/src/rdbcodec/errors.py
from __future__ import annotations

from typing import Optional

__all__ = [
    "RDBError",
    "HeaderInvalid",
    "TruncatedInput",
    "MalformedEncoding",
    "UnsupportedEncoding",
    "UnsupportedTargetCapability",
]


class RDBError(ValueError):
    """
    Erreur fatale de décodage RDB.

    Toutes les erreurs du décodeur dérivent de `ValueError` : un snapshot
    corrompu est une entrée invalide, jamais un état récupérable.

    Le loader complète le contexte (`offset`, `opcode`, `key`) au moment où
    l'erreur traverse la boucle de dispatch, pour savoir quel record a échoué.
    """

    def __init__(self, message: str, *, offset: Optional[int] = None,
                 opcode: Optional[int] = None, key: Optional[bytes] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.opcode = opcode
        self.key = key

    def annotate(self, *, offset: Optional[int] = None, opcode: Optional[int] = None,
                 key: Optional[bytes] = None) -> "RDBError":
        """Fill missing context fields; fields set closer to the failure win."""
        if self.offset is None:
            self.offset = offset
        if self.opcode is None:
            self.opcode = opcode
        if self.key is None:
            self.key = key
        return self

    def __str__(self) -> str:
        ctx = []
        if self.offset is not None:
            ctx.append(f"offset={self.offset}")
        if self.opcode is not None:
            ctx.append(f"opcode=0x{self.opcode:02x}")
        if self.key is not None:
            ctx.append(f"key={self.key!r}")
        if not ctx:
            return self.message
        return f"{self.message} [{', '.join(ctx)}]"


class HeaderInvalid(RDBError):
    """Bad magic or unparsable version digits."""


class TruncatedInput(RDBError):
    """The byte source ended in the middle of a record."""


class MalformedEncoding(RDBError):
    """Reserved bit pattern, inconsistent packed blob or unknown tag."""


class UnsupportedEncoding(MalformedEncoding):
    """Known encoding that this decoder refuses (pre-release formats)."""


class UnsupportedTargetCapability(RDBError):
    """The configured target cannot receive what the snapshot requires."""

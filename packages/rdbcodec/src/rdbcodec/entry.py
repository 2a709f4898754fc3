# packages/rdbcodec/src/rdbcodec/entry.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

__all__ = ["Entry"]


@dataclass(eq=True)
class Entry:
    """Commande émise vers le consommateur aval.

    `is_base` marque les commandes issues du chargement du snapshot (par
    opposition au flux de réplication qui suit).
    """

    db_id: int = 0
    argv: List[bytes] = field(default_factory=list)
    is_base: bool = True

    @property
    def command(self) -> bytes:
        return self.argv[0].lower() if self.argv else b""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "db_id": int(self.db_id),
            "argv": [bytes(a) for a in self.argv],
            "is_base": bool(self.is_base),
        }

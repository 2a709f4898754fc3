# packages/rdbcodec/src/rdbcodec/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Dict

__all__ = [
    "LoaderConfig",
    "RESTORE_PLAIN",
    "RESTORE_REPLACE",
    "DEFAULT_PROTO_MAX_BULK_LEN",
]

RESTORE_PLAIN = "plain"
RESTORE_REPLACE = "replace"

# "rewrite" est l'ancien nom du mode REPLACE dans les fichiers de config
_BEHAVIOR_ALIASES = {
    "plain": RESTORE_PLAIN,
    "panic": RESTORE_PLAIN,
    "replace": RESTORE_REPLACE,
    "replace-on-restore": RESTORE_REPLACE,
    "rewrite": RESTORE_REPLACE,
}

#: proto-max-bulk-len par défaut côté serveur cible (512 MiB)
DEFAULT_PROTO_MAX_BULK_LEN = 512 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """
    Configuration **publique et stable** du loader RDB.

    Champs
    ------
    target_proto_max_bulk_len : int, default=512 MiB
        Seuil (octets) du payload brut d'une valeur. Au-delà, la valeur est
        réécrite en commandes (`SET`, `RPUSH`, ...) au lieu d'un `RESTORE`.
    target_version : float, default=7.0
        Version du serveur cible. Conditionne les modificateurs de `RESTORE` :
        `REPLACE` exige >= 3.0, `IDLETIME`/`FREQ` exigent >= 5.0.
    restore_command_behavior : str, default="plain"
        "plain" ou "replace" (alias "rewrite", "replace-on-restore").
    dump_footer_version : int, default=6
        Version RDB écrite dans le footer de l'enveloppe DUMP. Le serveur cible
        refuse une version supérieure à la sienne.
    verify_checksum : bool, default=False
        Si vrai, recalcule le CRC-64 du fichier et vérifie les 8 octets qui
        suivent le marqueur EOF (RDB >= 5). Le CRC est calculé en Python :
        compter quelques secondes par centaine de MiB lus.
    progress_interval : float, default=1.0
        Intervalle minimal (secondes) entre deux rapports de progression.

    Notes
    -----
    La dataclass est immuable ; les validations lèvent `ValueError`.
    """

    target_proto_max_bulk_len: int = DEFAULT_PROTO_MAX_BULK_LEN
    target_version: float = 7.0
    restore_command_behavior: str = RESTORE_PLAIN
    dump_footer_version: int = 6
    verify_checksum: bool = False
    progress_interval: float = 1.0

    def __post_init__(self) -> None:
        if int(self.target_proto_max_bulk_len) < 0:
            raise ValueError("LoaderConfig.target_proto_max_bulk_len must be >= 0")
        if float(self.target_version) <= 0:
            raise ValueError("LoaderConfig.target_version must be > 0")
        behavior = _BEHAVIOR_ALIASES.get(str(self.restore_command_behavior).strip().lower())
        if behavior is None:
            raise ValueError(
                f"LoaderConfig.restore_command_behavior must be one of {sorted(_BEHAVIOR_ALIASES)}"
            )
        # frozen: normalise l'alias via object.__setattr__
        object.__setattr__(self, "restore_command_behavior", behavior)
        if not (0 <= int(self.dump_footer_version) <= 0xFFFF):
            raise ValueError("LoaderConfig.dump_footer_version must fit in u16")
        if float(self.progress_interval) < 0:
            raise ValueError("LoaderConfig.progress_interval must be >= 0")

    @property
    def replace_on_restore(self) -> bool:
        return self.restore_command_behavior == RESTORE_REPLACE

    @staticmethod
    def from_sources(cfg: Dict[str, Any] | None = None, read_env: bool = True) -> "LoaderConfig":
        """
        Defaults → dict (fichier JSON, CLI) → ENV.

        Les clés inconnues du dict sont ignorées.
        """
        names = {f.name for f in fields(LoaderConfig)}
        base: Dict[str, Any] = {}
        if cfg:
            base.update({k: v for k, v in cfg.items() if k in names})
        if read_env:
            def _env(name, cast):
                v = os.getenv(name)
                return cast(v) if v is not None else None
            env = {
                "target_proto_max_bulk_len": _env("RDB_TARGET_PROTO_MAX_BULK_LEN", int),
                "target_version": _env("RDB_TARGET_VERSION", float),
                "restore_command_behavior": _env("RDB_RESTORE_COMMAND_BEHAVIOR", str),
                "dump_footer_version": _env("RDB_DUMP_FOOTER_VERSION", int),
                "verify_checksum": _env("RDB_VERIFY_CHECKSUM", _parse_bool),
                "progress_interval": _env("RDB_PROGRESS_INTERVAL", float),
            }
            base.update({k: v for k, v in env.items() if v is not None})
        return LoaderConfig(**base)


def _parse_bool(v: str) -> bool:
    return v.strip().lower() in ("1", "true", "yes", "on")

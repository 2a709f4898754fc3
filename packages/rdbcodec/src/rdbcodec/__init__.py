# packages/rdbcodec/src/rdbcodec/__init__.py
from __future__ import annotations

"""rdbcodec - décodeur de snapshots RDB (public surface).

Lit un fichier RDB et émet, pour chaque clé, une commande RESTORE portant
l'enveloppe DUMP (ou, au-delà du seuil de taille, les commandes équivalentes).
"""

__version__ = "0.3.0"

# API publique (stable)
from .config import LoaderConfig, RESTORE_PLAIN, RESTORE_REPLACE
from .crc64 import crc64
from .dump import DUMP_FOOTER_VERSION, create_value_dump, split_value_dump
from .entry import Entry
from .channel import Channel, ChannelClosed
from .statistics import Statistics
from .errors import (
    RDBError,
    HeaderInvalid,
    TruncatedInput,
    MalformedEncoding,
    UnsupportedEncoding,
    UnsupportedTargetCapability,
)
from .loader import Loader, parse_rdb_file

__all__ = [
    "__version__",
    "LoaderConfig", "RESTORE_PLAIN", "RESTORE_REPLACE",
    "crc64",
    "DUMP_FOOTER_VERSION", "create_value_dump", "split_value_dump",
    "Entry", "Channel", "ChannelClosed", "Statistics",
    "RDBError", "HeaderInvalid", "TruncatedInput", "MalformedEncoding",
    "UnsupportedEncoding", "UnsupportedTargetCapability",
    "Loader", "parse_rdb_file",
]

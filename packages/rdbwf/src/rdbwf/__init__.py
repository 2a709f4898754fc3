# packages/rdbwf/src/rdbwf/__init__.py
from __future__ import annotations

"""rdbwf - workflows autour de rdbcodec (CLI, écriture RESP)."""

__version__ = "0.3.0"

from .writer import RespWriter, encode_resp

__all__ = ["__version__", "RespWriter", "encode_resp"]

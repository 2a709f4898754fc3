# packages/rdbcodec/src/rdbcodec/loader.py
"""
RDB loader : dispatch des opcodes
=================================

Lecture en une passe, sans retour arrière :

  1) header : b"REDIS" + 4 chiffres ASCII (version) ;
  2) boucle : un octet d'opcode puis
       - métadonnées (IDLE, FREQ, AUX, RESIZEDB, EXPIRETIME(_MS), SELECTDB)
         → mise à jour de l'état de parsing, pas de commande
         (sauf AUX "lua" → SCRIPT LOAD, FUNCTION2 → FUNCTION LOAD) ;
       - EOF → fin ;
       - sinon tag de type : clé + corps de valeur, capturé octet pour octet
         (tee) pendant le décodage ;
  3) par valeur :
       - payload capturé > `target_proto_max_bulk_len` → `rewrite()` de
         l'objet (+ PEXPIRE si besoin) ;
       - sinon → RESTORE key ttl <enveloppe DUMP> [REPLACE] [IDLETIME n] [FREQ n] ;
     expire/idle/freq ne valent que pour la valeur qui suit, remis à 0 après.

Le seul point bloquant est `ch.put(entry)` (backpressure du consommateur).
"""
from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Dict

from .config import LoaderConfig
from .dump import create_value_dump
from .entry import Entry
from .errors import (
    HeaderInvalid,
    MalformedEncoding,
    RDBError,
    UnsupportedEncoding,
    UnsupportedTargetCapability,
)
from .statistics import Statistics
from .structure import (
    RDBReader,
    TeeReader,
    read_byte,
    read_length,
    read_string,
    read_uint32,
    read_uint64,
)
from .types import FunctionLibrary, ModuleAux, RedisObject, parse_object

__all__ = [
    "MAGIC",
    "kFlagFunction2", "kFlagFunction", "kFlagModuleAux",
    "kFlagIdle", "kFlagFreq", "kFlagAUX", "kFlagResizeDB",
    "kFlagExpireMs", "kFlagExpire", "kFlagSelect", "kEOF",
    "ParserState", "Loader", "parse_rdb_file",
]

log = logging.getLogger(__name__)

MAGIC = b"REDIS"

kFlagFunction2 = 0xF5  # function library data
kFlagFunction = 0xF6   # function library data, 7.0 rc1/rc2 format
kFlagModuleAux = 0xF7  # module auxiliary data
kFlagIdle = 0xF8       # LRU idle time
kFlagFreq = 0xF9       # LFU frequency
kFlagAUX = 0xFA        # aux field
kFlagResizeDB = 0xFB   # hash table resize hint
kFlagExpireMs = 0xFC   # expire time in milliseconds
kFlagExpire = 0xFD     # old expire time in seconds
kFlagSelect = 0xFE     # DB number of the following keys
kEOF = 0xFF            # end of the RDB file

# la somme de contrôle de fin de fichier existe depuis RDB v5
_CHECKSUM_MIN_VERSION = 5


@dataclass
class ParserState:
    """État transitoire du parsing, propriété exclusive de la boucle."""

    db_id: int = 0
    expire_ms: int = 0
    idle: int = 0
    freq: int = 0

    def reset_pending(self) -> None:
        self.expire_ms = 0
        self.idle = 0
        self.freq = 0


def _wall_ms() -> int:
    return int(time.time() * 1000)


class Loader:
    """
    Décode un snapshot RDB et pousse des `Entry` dans `ch`.

    Paramètres
    ----------
    fp : BinaryIO
        Fichier binaire positionné au début du header.
    ch :
        Canal de sortie ; seul `put(entry)` est utilisé (bloquant).
    cfg : LoaderConfig | None
        Seuil oversize, version cible, comportement de RESTORE, ...
    stats : Statistics | None
        Collecteur de progression (offset en octets).
    clock : callable | None
        Horloge murale en millisecondes (conversion des expirations absolues).
    monotonic : callable | None
        Horloge monotone en secondes (cadence des rapports de progression).
    """

    def __init__(self, fp: BinaryIO, ch, cfg: LoaderConfig | None = None, *,
                 stats: Statistics | None = None,
                 clock: Callable[[], int] | None = None,
                 monotonic: Callable[[], float] | None = None) -> None:
        self.cfg = cfg or LoaderConfig()
        self.ch = ch
        self.stats = stats or Statistics()
        self._fp = fp
        self._rd = RDBReader(fp, checksum=self.cfg.verify_checksum)
        self._now_ms = clock or _wall_ms
        self._monotonic = monotonic or time.monotonic
        self._last_report = 0.0

        self.version = 0
        self.repl_stream_db_id = 0
        self.aux: Dict[bytes, bytes] = {}

        # tampons réutilisés d'un record à l'autre (vidés, jamais réalloués)
        self._value_buf = bytearray()
        self._dump_buf = bytearray()

    # ------------------------------------------------------------------ API

    def parse_rdb(self) -> int:
        """Parse tout le fichier ; retourne le db de reprise (`repl-stream-db`, 0 sinon)."""
        self.version = self._read_header()
        log.info("RDB version: %d", self.version)

        self._last_report = self._monotonic()
        self._parse_entries(ParserState())
        if self.cfg.verify_checksum:
            self._verify_checksum()

        size = self._file_size()
        self.stats.set_rdb_file_size(size)
        self.stats.update_rdb_sent_size(size)
        return self.repl_stream_db_id

    # ------------------------------------------------------------- internals

    def _read_header(self) -> int:
        buf = self._rd.read(9)
        if len(buf) != 9:
            raise HeaderInvalid(f"file too short for an RDB header ({len(buf)} bytes)", offset=0)
        if buf[:5] != MAGIC:
            raise HeaderInvalid(f"verify magic string, invalid file format. bytes={buf[:5]!r}", offset=0)
        digits = buf[5:]
        if not digits.isdigit():
            raise HeaderInvalid(f"invalid RDB version {digits!r}", offset=5)
        return int(digits)

    def _parse_entries(self, state: ParserState) -> None:
        rd = self._rd
        while True:
            offset = rd.offset
            type_byte = None
            try:
                type_byte = read_byte(rd)
                if type_byte == kEOF:
                    return
                self._dispatch(state, type_byte)
            except RDBError as e:
                raise e.annotate(offset=offset, opcode=type_byte)
            self._maybe_report_progress()

    def _dispatch(self, state: ParserState, type_byte: int) -> None:
        rd = self._rd
        if type_byte == kFlagIdle:
            state.idle = read_length(rd)
        elif type_byte == kFlagFreq:
            state.freq = read_byte(rd)
        elif type_byte == kFlagAUX:
            self._handle_aux(state)
        elif type_byte == kFlagResizeDB:
            db_size = read_length(rd)
            expire_size = read_length(rd)
            log.info("RDB resize db. db_size=[%d], expire_size=[%d]", db_size, expire_size)
        elif type_byte == kFlagExpireMs:
            state.expire_ms = self._relative_expire(read_uint64(rd))
        elif type_byte == kFlagExpire:
            state.expire_ms = self._relative_expire(read_uint32(rd) * 1000)
        elif type_byte == kFlagSelect:
            state.db_id = read_length(rd)
        elif type_byte == kFlagFunction2:
            lib = FunctionLibrary.load(rd)
            for argv in lib.rewrite(replace=self.cfg.replace_on_restore):
                self._send(Entry(db_id=state.db_id, argv=argv, is_base=True))
            log.info("RDB function library loaded (%d bytes)", len(lib.code))
        elif type_byte == kFlagFunction:
            raise UnsupportedEncoding("function library format of 7.0 release candidates is not supported")
        elif type_byte == kFlagModuleAux:
            aux = ModuleAux.load(rd)
            log.info("RDB module aux skipped. module=[%s], when=[%d]", aux.module_name, aux.when)
        else:
            self._handle_value(state, type_byte)

    def _handle_aux(self, state: ParserState) -> None:
        rd = self._rd
        key = read_string(rd)
        value = read_string(rd)
        self.aux[key] = value
        if key == b"repl-stream-db":
            try:
                self.repl_stream_db_id = int(value)
            except ValueError:
                raise MalformedEncoding(f"repl-stream-db is not an integer: {value!r}") from None
            log.info("RDB repl-stream-db: %d", self.repl_stream_db_id)
        elif key == b"lua":
            self._send(Entry(db_id=state.db_id, argv=[b"script", b"load", value], is_base=True))
            log.info("LUA script: [%s]", value.decode("utf-8", "replace"))
        else:
            log.info("RDB AUX fields. key=[%s], value=[%s]",
                     key.decode("utf-8", "replace"), value.decode("utf-8", "replace"))

    def _handle_value(self, state: ParserState, type_byte: int) -> None:
        key = read_string(self._rd)
        buf = self._value_buf
        del buf[:]
        try:
            o = parse_object(TeeReader(self._rd, buf), type_byte, key)
            if len(buf) > self.cfg.target_proto_max_bulk_len:
                self._emit_rewrite(state, o)
            else:
                self._emit_restore(state, type_byte, key, buf)
        except RDBError as e:
            raise e.annotate(key=key)
        finally:
            del buf[:]
            state.reset_pending()

    def _emit_rewrite(self, state: ParserState, o: RedisObject) -> None:
        log.info("RDB value too large for RESTORE, rewriting as commands. key=[%s], size=[%d]",
                 o.key.decode("utf-8", "replace"), len(self._value_buf))
        for argv in o.rewrite(target_version=self.cfg.target_version):
            self._send(Entry(db_id=state.db_id, argv=argv, is_base=True))
        if state.expire_ms != 0:
            argv = [b"pexpire", o.key, str(state.expire_ms).encode("ascii")]
            self._send(Entry(db_id=state.db_id, argv=argv, is_base=True))

    def _emit_restore(self, state: ParserState, type_byte: int, key: bytes, payload: bytearray) -> None:
        cfg = self.cfg
        dump = create_value_dump(type_byte, payload, cfg.dump_footer_version, self._dump_buf)
        # RESTORE key ttl serialized-value [REPLACE] [ABSTTL] [IDLETIME seconds] [FREQ frequency]
        argv = [b"restore", key, str(state.expire_ms).encode("ascii"), dump]
        if cfg.replace_on_restore:
            if cfg.target_version < 3.0:
                raise UnsupportedTargetCapability(
                    f"RDB restore command behavior is replace, but target redis version is "
                    f"{cfg.target_version}, not support REPLACE modifier"
                )
            argv.append(b"replace")
        if state.idle != 0 and cfg.target_version >= 5.0:
            argv += [b"idletime", str(state.idle).encode("ascii")]
        if state.freq != 0 and cfg.target_version >= 5.0:
            argv += [b"freq", str(state.freq).encode("ascii")]
        self._send(Entry(db_id=state.db_id, argv=argv, is_base=True))

    def _send(self, e: Entry) -> None:
        self.ch.put(e)

    def _relative_expire(self, expire_at_ms: int) -> int:
        rel = expire_at_ms - self._now_ms()
        # 0 veut dire "pas d'expiration" : une clé déjà expirée garde 1 ms
        return rel if rel > 0 else 1

    def _maybe_report_progress(self) -> None:
        now = self._monotonic()
        if now - self._last_report >= self.cfg.progress_interval:
            self._last_report = now
            self.stats.update_rdb_sent_size(self._rd.offset)

    def _verify_checksum(self) -> None:
        if self.version < _CHECKSUM_MIN_VERSION:
            return
        rd = self._rd
        offset = rd.offset
        expected = rd.crc
        rd.stop_checksum()
        try:
            stored = read_uint64(rd)
        except RDBError as e:
            raise e.annotate(offset=offset)
        if stored == 0:
            log.info("RDB checksum disabled by the writer, skipped")
            return
        if stored != expected:
            raise MalformedEncoding(
                f"RDB checksum mismatch: stored=0x{stored:016x}, computed=0x{expected:016x}",
                offset=offset,
            )

    def _file_size(self) -> int:
        try:
            pos = self._fp.tell()
            end = self._fp.seek(0, io.SEEK_END)
            self._fp.seek(pos)
            return end
        except (OSError, ValueError):
            # flux non seekable : ce qui a été consommé
            return self._rd.offset


def parse_rdb_file(path, ch, cfg: LoaderConfig | None = None,
                   stats: Statistics | None = None) -> int:
    """Ouvre `path` et le charge dans `ch` ; voir `Loader.parse_rdb`."""
    with open(path, "rb") as fp:
        return Loader(fp, ch, cfg, stats=stats).parse_rdb()

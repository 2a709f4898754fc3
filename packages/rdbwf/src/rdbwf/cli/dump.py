from __future__ import annotations
import argparse, json, logging, os, sys, threading
from pathlib import Path
from typing import Any, Dict

from .common import setup_logging, ensure_dir, looks_like_rdb
from ..writer import RespWriter

from rdbcodec import Channel, LoaderConfig, RDBError, Statistics, parse_rdb_file

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="RDB : convertit un snapshot .rdb en commandes RESP")
    p.add_argument("rdb", help="Fichier .rdb")
    p.add_argument("--out", required=True, help="Fichier RESP de sortie")
    p.add_argument("--config", default=None, help="(Optionnel) JSON cfg (voir LoaderConfig)")
    p.add_argument("--target-version", dest="target_version", type=float)
    p.add_argument("--max-bulk-len", dest="target_proto_max_bulk_len", type=int)
    p.add_argument("--replace", action="store_true", help="RESTORE ... REPLACE")
    p.add_argument("--verify-checksum", action="store_true", help="Vérifie le CRC-64 de fin de fichier")
    p.add_argument("--queue-size", type=int, default=1024, help="Taille du canal (0 = illimité)")
    p.add_argument("--log-file", default=None)
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)

def _merge_cfg(args) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    if args.config:
        try:
            cfg.update(json.loads(Path(args.config).read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logging.warning("Config illisible (%s): %s", args.config, e)
    if args.target_version is not None: cfg["target_version"] = args.target_version
    if args.target_proto_max_bulk_len is not None: cfg["target_proto_max_bulk_len"] = args.target_proto_max_bulk_len
    if args.replace: cfg["restore_command_behavior"] = "replace"
    if args.verify_checksum: cfg["verify_checksum"] = True
    return cfg

def run_dump(rdb_path: Path, out_path: Path, cfg: LoaderConfig, queue_size: int = 1024) -> Dict[str, Any]:
    """Loader (thread producteur) → Channel → RespWriter (thread appelant)."""
    ch = Channel(maxsize=queue_size)
    stats = Statistics()
    result: Dict[str, Any] = {}

    def _produce():
        try:
            result["repl_stream_db"] = parse_rdb_file(rdb_path, ch, cfg, stats)
        except Exception as e:
            result["error"] = e
        finally:
            ch.finish()

    worker = threading.Thread(target=_produce, name="rdb-loader", daemon=True)
    ensure_dir(out_path.parent)
    tmp = out_path.with_suffix(out_path.suffix + ".tmp")
    worker.start()
    try:
        with open(tmp, "wb") as f:
            writer = RespWriter(f)
            writer.write_all(ch)
    except BaseException:
        ch.close()
        worker.join()
        tmp.unlink(missing_ok=True)
        raise
    worker.join()

    if "error" in result:
        tmp.unlink(missing_ok=True)
        raise result["error"]
    os.replace(tmp, out_path)
    return {
        "commands": writer.count,
        "repl_stream_db": result["repl_stream_db"],
        "rdb_size": stats.rdb_file_size,
    }

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(Path(args.log_file) if args.log_file else None, verbose=args.verbose)

    src = Path(args.rdb)
    if not looks_like_rdb(src):
        logging.error("Pas un fichier RDB: %s", src); return 2
    try:
        cfg = LoaderConfig.from_sources(_merge_cfg(args))
    except ValueError as e:
        logging.error("Config invalide: %s", e); return 2

    try:
        logging.info("dump: %s → %s", src, args.out)
        summary = run_dump(src, Path(args.out), cfg, queue_size=args.queue_size)
    except RDBError as e:
        logging.error("Échec décodage %s: %s", src, e)
        return 1
    logging.info("→ OK %d commandes, repl-stream-db=%d, %d octets lus",
                 summary["commands"], summary["repl_stream_db"], summary["rdb_size"])
    return 0

if __name__ == "__main__":
    sys.exit(main())

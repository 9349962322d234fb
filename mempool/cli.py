"""
mempool-dat: print the contents of a node's mempool.dat

    mempool-dat ~/.bitcoin/mempool.dat
    mempool-dat mempool.dat --deltas --limit 20
    mempool-dat mempool.dat --lmdb ./lmdb
"""

import argparse
import logging
import sys

from db.constants import open_mempool_env
from db.mempool import save_mempool
from mempool.errors import MempoolFileError
from mempool.reader import read_mempool_from_path
from utils.config import APP_CONFIG
from utils.fmt import format_bytes, print_bytes, truncate_bytes
from utils.logs import configure_logging

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mempool-dat", description="Decode a Bitcoin mempool.dat file")
    parser.add_argument("path", help="path to mempool.dat")
    parser.add_argument(
        "--deltas",
        action=argparse.BooleanOptionalAction,
        default=bool(APP_CONFIG.get("decoder", "read_deltas")),
        help="also read the bytes after the last entry",
    )
    parser.add_argument("--limit", type=int, default=None, help="print at most N entries")
    parser.add_argument("--dump-deltas", action="store_true", help="hex dump the delta bytes (implies --deltas)")
    parser.add_argument("--lmdb", metavar="DIR", default=None, help="export the decoded mempool to an LMDB environment")
    parser.add_argument("-v", "--verbose", action="store_true", help="log to stderr instead of the log file")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(to_stderr=args.verbose)

    read_deltas = args.deltas or args.dump_deltas
    try:
        mempool = read_mempool_from_path(args.path, read_deltas)
    except MempoolFileError as e:
        log.error(f"Failed to decode {args.path}: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(mempool)
    print()

    shown = mempool.entries if args.limit is None else mempool.entries[:args.limit]
    for i, entry in enumerate(shown):
        print(f"[{i}] {entry}")

    if len(shown) < len(mempool):
        print(f"... {len(mempool) - len(shown)} more")

    if mempool.has_deltas:
        print(f"\nMap deltas: {format_bytes(len(mempool.map_deltas))} {truncate_bytes(mempool.map_deltas, ends=4)}")
        if args.dump_deltas:
            print_bytes(mempool.map_deltas)

    if args.lmdb:
        env = open_mempool_env(args.lmdb)
        try:
            saved = save_mempool(env, mempool)
        finally:
            env.close()
        print(f"\nExported {saved} transactions to {args.lmdb}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

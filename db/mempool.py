import logging

import lmdb

from db.constants import MEMPOOL_DB_NAME, MEMPOOL_META_DB_NAME
from mempool.types import Mempool
from utils.helper import bytes_to_int, int_to_bytes

log = logging.getLogger(__name__)


def save_mempool(env: lmdb.Environment, mempool: Mempool) -> int:
    """
    Replaces the contents of both mempool databases with `mempool`.
    Returns the number of distinct transactions written.
    """
    mempool_db = env.open_db(MEMPOOL_DB_NAME)
    meta_db = env.open_db(MEMPOOL_META_DB_NAME)

    with env.begin(write=True) as db:
        db.drop(mempool_db, delete=False)  # clear existing entries
        db.drop(meta_db, delete=False)

        for entry in mempool:
            tx_hash = entry.transaction.hash()
            db.put(tx_hash, entry.transaction.serialize(), db=mempool_db)
            db.put(
                tx_hash,
                int_to_bytes(entry.timestamp, 8, signed=True) + int_to_bytes(entry.fee_delta, 8, signed=True),
                db=meta_db,
            )

        saved = db.stat(mempool_db)["entries"]

    if saved != len(mempool):
        log.warning(f"{len(mempool) - saved} duplicate transactions were merged while saving")
    log.info(f"Saved {saved} mempool transactions to LMDB")
    return saved


def load_mempool(env: lmdb.Environment) -> list[bytes]:
    raw_txs = []

    with env.begin(db=env.open_db(MEMPOOL_DB_NAME), write=False) as txn:
        cursor = txn.cursor()
        for tx_hash, raw_tx in cursor:
            raw_txs.append(raw_tx)

    return raw_txs


def get_entry_meta(env: lmdb.Environment, tx_hash: bytes) -> tuple[int, int] | None:
    """
    Returns (timestamp, fee_delta) stored for `tx_hash`
    """
    with env.begin(db=env.open_db(MEMPOOL_META_DB_NAME)) as db:
        value = db.get(tx_hash)
        if value is None:
            return None
        return bytes_to_int(value[:8], signed=True), bytes_to_int(value[8:16], signed=True)

"""
LMDB layout used when exporting a decoded mempool.dat.
"""

import lmdb

from pathlib import Path


MAP_SIZE = 1 << 30        # LMDB map size: 1 GiB


# =============================================================================
# LMDB DATABASE SCHEMAS
# =============================================================================

# ---------------------
# MEMPOOL DB
# ---------------------
# Key   : Tx Hash (32B, internal byte order)
# Value : Full serialized transaction (with witness)

MEMPOOL_DB_NAME = b"mempool"


# ---------------------
# MEMPOOL META DB
# ---------------------
# Key   : Tx Hash (32B, internal byte order)
# Value :
#   - timestamp         : 8B, signed
#   - fee_delta         : 8B, signed

MEMPOOL_META_DB_NAME = b"mempool_meta"


def open_mempool_env(path: str | Path) -> lmdb.Environment:
    """Opens (creating if needed) the LMDB environment at `path` along with both mempool databases"""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    env = lmdb.open(str(path), map_size=MAP_SIZE, max_dbs=2)

    with env.begin(write=True) as txn:
        env.open_db(MEMPOOL_DB_NAME, txn=txn, create=True)
        env.open_db(MEMPOOL_META_DB_NAME, txn=txn, create=True)
    return env

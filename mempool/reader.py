"""
Reader for the mempool.dat file a Bitcoin node dumps on shutdown.

    [int64 version][int64 tx_count][entry * tx_count][map deltas, optional]

    entry = [transaction][int64 timestamp][int64 fee_delta]

All integers are little-endian. Transactions are self-delimiting, so the
only way to find where entry N+1 starts is to fully parse entry N.
`read_mempool_from_path()` is what you want to call.
"""

import logging

from os import PathLike
from typing import BinaryIO

from blockchain.transaction import Transaction
from mempool.errors import (
    EntryDecodeError,
    HeaderDecodeError,
    InvalidHeader,
    OpenError,
    TransactionDecodeError,
    TruncatedInput,
)
from mempool.types import FileHeader, Mempool, MempoolEntry
from utils.helper import bytes_to_int, read_exact


log = logging.getLogger(__name__)

# Dump versions written by Bitcoin Core. Others are still read, only logged.
KNOWN_FILE_VERSIONS = (1, 2)


def read_mempool_from_path(path: str | PathLike, read_deltas: bool = False) -> Mempool:
    """
    Reads a mempool file from `path`.

    If `read_deltas` is set, every byte after the last entry is returned as
    `Mempool.map_deltas`; otherwise nothing past the last entry is read and
    `map_deltas` is None.
    """
    try:
        file = open(path, "rb")
    except OSError as e:
        raise OpenError(path, e) from e

    with file:
        mempool = read_mempool(file, read_deltas)

    log.info(f"Loaded {len(mempool)} mempool entries from {path}")
    return mempool


def read_mempool(stream: BinaryIO, read_deltas: bool = False) -> Mempool:
    """Reads a whole mempool from a binary stream positioned at the header."""
    header = read_file_header(stream)

    if header.tx_count < 0:
        raise InvalidHeader("tx_count", header.tx_count)

    if header.version not in KNOWN_FILE_VERSIONS:
        log.warning(f"Unknown mempool file version {header.version}, reading it as version 1")

    entries = tuple(read_mempool_entry(stream, i) for i in range(header.tx_count))

    map_deltas = None
    if read_deltas:
        map_deltas = stream.read()
        log.info(f"Read {len(map_deltas)} bytes of map deltas")

    return Mempool(header, entries, map_deltas)


def read_file_header(stream: BinaryIO) -> FileHeader:
    fields = {}
    for name in ("version", "tx_count"):
        try:
            fields[name] = read_le_int64(stream)
        except TruncatedInput as e:
            raise HeaderDecodeError(name, e) from e

    return FileHeader(**fields)


def read_mempool_entry(stream: BinaryIO, index: int) -> MempoolEntry:
    """
    Reads the entry at position `index`: transaction, timestamp, fee delta.
    `index` is only used to say which entry failed.
    """
    try:
        tx = Transaction.parse(stream)
    except (TruncatedInput, TransactionDecodeError) as e:
        raise EntryDecodeError(index, "transaction", e) from e

    fields = {}
    for name in ("timestamp", "fee_delta"):
        try:
            fields[name] = read_le_int64(stream)
        except TruncatedInput as e:
            raise EntryDecodeError(index, name, e) from e

    return MempoolEntry(tx, **fields)


def read_le_int64(stream: BinaryIO) -> int:
    """Reads the next 8 bytes as a signed little-endian int64"""
    return bytes_to_int(read_exact(stream, 8), signed=True)

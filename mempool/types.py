from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator

from blockchain.transaction import Transaction
from utils.fmt import format_bytes, format_epoch


@dataclass(frozen=True)
class FileHeader:
    """
    The two little-endian int64 fields at the start of mempool.dat.

    Attributes:
        version: dump format version, passed through as read
        tx_count: number of entries that follow the header
    """
    version: int
    tx_count: int

    def __str__(self):
        return f"Version: {self.version}\nTransactions: {self.tx_count}"


@dataclass(frozen=True)
class MempoolEntry:
    """
    One pending transaction as recorded in mempool.dat.

    Attributes:
        transaction: the embedded transaction
        timestamp: unix time the node first saw the transaction
        fee_delta: fee adjustment applied with `prioritisetransaction`, in satoshis
    """
    transaction: Transaction
    timestamp: int
    fee_delta: int

    def __str__(self):
        return (
            f"{self.txid}\n"
            f"  First seen : {format_epoch(self.timestamp)}\n"
            f"  Fee delta  : {self.fee_delta}\n"
            f"  Size       : {format_bytes(self.size)} ({self.vsize} vB)"
        )

    @property
    def txid(self) -> str:
        return self.transaction.txid()

    @property
    def wtxid(self) -> str:
        return self.transaction.wtxid()

    @property
    def first_seen(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    @property
    def size(self) -> int:
        return self.transaction.size()

    @property
    def weight(self) -> int:
        return self.transaction.weight()

    @property
    def vsize(self) -> int:
        return self.transaction.vsize()


@dataclass(frozen=True)
class Mempool:
    """
    A decoded mempool.dat snapshot.

    `entries` keeps file order. `map_deltas` holds the raw bytes after the
    last entry when they were requested, and is None when they were not;
    b"" means they were requested and the file had none.
    """
    header: FileHeader
    entries: tuple[MempoolEntry, ...] = field(default_factory=tuple)
    map_deltas: bytes | None = None

    def __str__(self):
        lines = [str(self.header)]
        if self.has_deltas:
            lines.append(f"Delta bytes: {format_bytes(len(self.map_deltas))}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[MempoolEntry]:
        return iter(self.entries)

    @property
    def has_deltas(self) -> bool:
        return self.map_deltas is not None

    def txids(self) -> list[str]:
        return [entry.txid for entry in self.entries]

    def get_entry(self, txid: str) -> MempoolEntry | None:
        """First entry in file order whose txid matches, or None"""
        for entry in self.entries:
            if entry.txid == txid:
                return entry
        return None

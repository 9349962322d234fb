"""
mempool.errors
--------------

Exceptions raised while decoding a mempool.dat file.

Every wrapping error keeps the error it wraps in `.cause` (and `__cause__`)
and carries the position it happened at as attributes, so callers can tell
which phase failed without parsing message text.

    MempoolFileError
    ├── TruncatedInput
    ├── TransactionDecodeError
    ├── OpenError
    ├── HeaderDecodeError
    ├── InvalidHeader
    └── EntryDecodeError
"""


class MempoolFileError(Exception):
    """Base class for every mempool.dat decode failure."""


class TruncatedInput(MempoolFileError):
    """Fewer bytes were available than a fixed-width field needs."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(f"expected {expected} bytes, stream ended after {received}")

    @property
    def clean_eof(self) -> bool:
        """True when the stream ended exactly at the field boundary"""
        return self.received == 0


class TransactionDecodeError(MempoolFileError):
    """Transaction bytes are present but not a well-formed transaction."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class OpenError(MempoolFileError):
    def __init__(self, path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not read mempool file {path}: {cause}")


class HeaderDecodeError(MempoolFileError):
    def __init__(self, field: str, cause: Exception):
        self.field = field
        self.cause = cause
        super().__init__(f"Could not read header field '{field}': {cause}")


class InvalidHeader(MempoolFileError):
    def __init__(self, field: str, value: int):
        self.field = field
        self.value = value
        super().__init__(f"Invalid header: {field}={value}")


class EntryDecodeError(MempoolFileError):
    """
    Reading entry `index` failed.

    Attributes:
        index: zero-based position of the entry in the file
        field: "transaction", "timestamp" or "fee_delta"
        cause: the underlying TruncatedInput / TransactionDecodeError
    """

    def __init__(self, index: int, field: str, cause: Exception):
        self.index = index
        self.field = field
        self.cause = cause
        super().__init__(f"Could not read mempool entry at index {index} ({field}): {cause}")

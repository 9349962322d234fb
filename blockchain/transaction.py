from io import BytesIO
from typing import BinaryIO

from blockchain.constants import (
    MAX_SCRIPT_SIZE,
    MAX_TX_IN_PER_MESSAGE,
    MAX_TX_OUT_PER_MESSAGE,
    MAX_WITNESS_ITEM_SIZE,
    MAX_WITNESS_ITEMS_PER_INPUT,
    WITNESS_FLAG,
    WITNESS_MARKER,
    WITNESS_SCALE_FACTOR,
)
from crypto.hashing import HASH256, hash_to_hex
from mempool.errors import TransactionDecodeError
from utils.helper import (
    bytes_to_int,
    encode_var_bytes,
    encode_varint,
    int_to_bytes,
    read_exact,
    read_var_bytes,
    read_varint,
)


class TransactionInput:
    """Represents a transaction input.

    Attributes:
        prev_tx_hash: 32 bytes, internal byte order
        prev_index: 4 bytes, little-endian
        script_sig: variable length
        sequence: 4 bytes, little-endian
        witness: list of stack items, empty for non-segwit inputs
    """
    def __init__(
        self,
        prev_hash: bytes,
        prev_index: int,
        script_sig: bytes = b"",
        sequence: int = 0xffffffff,
        witness: list[bytes] | None = None,
    ):
        self.prev_tx_hash = prev_hash
        self.prev_index = prev_index
        self.script_sig = script_sig
        self.sequence = sequence
        self.witness = witness if witness is not None else []

    def __str__(self):
        return (
            f"      Prev Tx Hash : {hash_to_hex(self.prev_tx_hash)}\n"
            f"      Prev Index   : {self.prev_index}\n"
            f"      Script Sig   : {self.script_sig.hex()}\n"
            f"      Sequence     : {self.sequence}\n"
            f"      Witness      : {len(self.witness)} item(s)"
        )

    @classmethod
    def parse(cls, stream: BinaryIO | bytes) -> 'TransactionInput':
        if isinstance(stream, bytes):
            stream = BytesIO(stream)

        prev_hash = read_exact(stream, 32)
        prev_index = bytes_to_int(read_exact(stream, 4))
        script_sig = read_var_bytes(stream, MAX_SCRIPT_SIZE, "script_sig")
        sequence = bytes_to_int(read_exact(stream, 4))
        return cls(prev_hash, prev_index, script_sig, sequence)

    def serialize(self) -> bytes:
        """Serializes the transaction input without its witness."""
        result: bytes = self.prev_tx_hash
        result += int_to_bytes(self.prev_index)
        result += encode_var_bytes(self.script_sig)
        result += int_to_bytes(self.sequence)
        return result

    def parse_witness(self, stream: BinaryIO) -> None:
        no_items = read_varint(stream)
        if no_items > MAX_WITNESS_ITEMS_PER_INPUT:
            raise TransactionDecodeError(
                f"too many witness items to fit into max message size [count {no_items}, max {MAX_WITNESS_ITEMS_PER_INPUT}]"
            )
        self.witness = [read_var_bytes(stream, MAX_WITNESS_ITEM_SIZE, "witness item") for _ in range(no_items)]

    def serialize_witness(self) -> bytes:
        return encode_varint(len(self.witness)) + b''.join(encode_var_bytes(item) for item in self.witness)


class TransactionOutput:
    """Represents a transaction output.

    Attributes:
        value: 8 bytes, little-endian, signed
        script_pubkey: variable length
    """
    def __init__(self, value: int, script_pubkey: bytes):
        self.value = value
        self.script_pubkey = script_pubkey

    def __str__(self):
        return (
            f"      Value        : {self.value}\n"
            f"      ScriptPubKey : {self.script_pubkey.hex()}"
        )

    @classmethod
    def parse(cls, stream: BinaryIO | bytes) -> 'TransactionOutput':
        if isinstance(stream, bytes):
            stream = BytesIO(stream)

        value = bytes_to_int(read_exact(stream, 8), signed=True)
        script_pubkey = read_var_bytes(stream, MAX_SCRIPT_SIZE, "script_pubkey")
        return cls(value, script_pubkey)

    def serialize(self) -> bytes:
        result: bytes = int_to_bytes(self.value, 8, signed=True)
        result += encode_var_bytes(self.script_pubkey)
        return result


class Transaction:
    """
    Represents a Bitcoin transaction as found on the wire.
    `Transaction` objects should be used as immutable

    Attributes:
        version: 4 bytes, little-endian, signed
        inputs: List[TransactionInput]
        outputs: List[TransactionOutput]
        locktime: 4 bytes, little-endian
    """
    def __init__(
        self,
        version: int,
        inputs: list[TransactionInput],
        outputs: list[TransactionOutput],
        locktime: int,
    ):
        self.version = version
        self.inputs = inputs
        self.outputs = outputs
        self.locktime = locktime

    def __str__(self):
        lines = [
            f"Transaction {self.txid()}",
            f"  Version: {self.version}",
            "",
            f"  Inputs ({len(self.inputs)}):",
        ]

        for i, tx_in in enumerate(self.inputs):
            lines.append(f"    [{i}]")
            lines.append(str(tx_in))

        lines.append("")
        lines.append(f"  Outputs ({len(self.outputs)}):")

        for i, tx_out in enumerate(self.outputs):
            lines.append(f"    [{i}]")
            lines.append(str(tx_out))

        lines.append(f"\n  Locktime: {self.locktime}")
        return "\n".join(lines)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.serialize() == other.serialize()

    def __hash__(self) -> int:
        return hash(self.witness_hash())

    @classmethod
    def parse(cls, stream: BinaryIO | bytes) -> 'Transaction':
        """
        Parses exactly one transaction from a Binary I/O or bytes, leaving
        the stream positioned right after it.

        Raises `TruncatedInput` if the stream ends mid-transaction and
        `TransactionDecodeError` if the bytes are not a valid transaction.
        """
        if isinstance(stream, bytes):
            stream = BytesIO(stream)

        version = bytes_to_int(read_exact(stream, 4), signed=True)

        no_inputs = read_varint(stream)
        segwit = False
        if no_inputs == WITNESS_MARKER:
            flag = read_exact(stream, 1)[0]
            if flag != WITNESS_FLAG:
                raise TransactionDecodeError(f"witness tx but flag byte is {flag:#04x}")
            segwit = True
            no_inputs = read_varint(stream)

        if no_inputs > MAX_TX_IN_PER_MESSAGE:
            raise TransactionDecodeError(
                f"too many input transactions to fit into max message size [count {no_inputs}, max {MAX_TX_IN_PER_MESSAGE}]"
            )
        inputs = [TransactionInput.parse(stream) for _ in range(no_inputs)]

        no_outputs = read_varint(stream)
        if no_outputs > MAX_TX_OUT_PER_MESSAGE:
            raise TransactionDecodeError(
                f"too many output transactions to fit into max message size [count {no_outputs}, max {MAX_TX_OUT_PER_MESSAGE}]"
            )
        outputs = [TransactionOutput.parse(stream) for _ in range(no_outputs)]

        if segwit:
            for tx_in in inputs:
                tx_in.parse_witness(stream)

        locktime = bytes_to_int(read_exact(stream, 4))

        return cls(version, inputs, outputs, locktime)

    @classmethod
    def parse_static(cls, bytes: bytes) -> 'Transaction':
        """
        Parses a transaction from static bytes
        """
        return cls.parse(BytesIO(bytes))

    def has_witness(self) -> bool:
        return any(tx_in.witness for tx_in in self.inputs)

    def serialize_legacy(self) -> bytes:
        """Serialization without witness data, the preimage of the txid"""
        result: bytes = int_to_bytes(self.version, signed=True)

        result += encode_varint(len(self.inputs))
        result += b''.join([tx_in.serialize() for tx_in in self.inputs])

        result += encode_varint(len(self.outputs))
        result += b''.join([tx_out.serialize() for tx_out in self.outputs])

        result += int_to_bytes(self.locktime)

        return result

    def serialize(self) -> bytes:
        if not self.has_witness():
            return self.serialize_legacy()

        result: bytes = int_to_bytes(self.version, signed=True)
        result += bytes([WITNESS_MARKER, WITNESS_FLAG])

        result += encode_varint(len(self.inputs))
        result += b''.join([tx_in.serialize() for tx_in in self.inputs])

        result += encode_varint(len(self.outputs))
        result += b''.join([tx_out.serialize() for tx_out in self.outputs])

        result += b''.join([tx_in.serialize_witness() for tx_in in self.inputs])

        result += int_to_bytes(self.locktime)

        return result

    def hash(self) -> bytes:
        """txid in internal byte order"""
        return HASH256(self.serialize_legacy())

    def witness_hash(self) -> bytes:
        return HASH256(self.serialize())

    def txid(self) -> str:
        return hash_to_hex(self.hash())

    def wtxid(self) -> str:
        return hash_to_hex(self.witness_hash())

    def size(self) -> int:
        return len(self.serialize())

    def weight(self) -> int:
        base_size = len(self.serialize_legacy())
        return base_size * (WITNESS_SCALE_FACTOR - 1) + self.size()

    def vsize(self) -> int:
        return -(-self.weight() // WITNESS_SCALE_FACTOR)

    def output_value(self) -> int:
        return sum(tx_out.value for tx_out in self.outputs)

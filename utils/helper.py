from typing import BinaryIO
from io import BytesIO

from mempool.errors import TransactionDecodeError, TruncatedInput


def bytes_to_int(le: bytes, signed: bool = False) -> int:
    """Little-endian bytes to integer."""
    return int.from_bytes(le, 'little', signed=signed)

def int_to_bytes(i: int, num_bytes: int = 4, signed: bool = False) -> bytes:
    """Integer to little-endian bytes."""
    return i.to_bytes(num_bytes, 'little', signed=signed)


def read_exact(stream: BinaryIO, n: int) -> bytes:
    """Reads exactly `n` bytes or raises `TruncatedInput`."""
    data = stream.read(n)
    if len(data) != n:
        raise TruncatedInput(n, len(data))
    return data


def read_varint(stream: BinaryIO) -> int:
    """Reads a Bitcoin CompactSize integer from the stream."""
    if isinstance(stream, bytes):
        stream = BytesIO(stream)

    i = read_exact(stream, 1)[0]
    match i:
        case 0xfd:
            value, minimum = bytes_to_int(read_exact(stream, 2)), 0xfd
        case 0xfe:
            value, minimum = bytes_to_int(read_exact(stream, 4)), 0x10000
        case 0xff:
            value, minimum = bytes_to_int(read_exact(stream, 8)), 0x100000000
        case _:
            return i

    if value < minimum:
        raise TransactionDecodeError(f"non-canonical varint {value} with prefix {i:#x}")
    return value

def encode_varint(i: int) -> bytes:
    """Encodes an integer as a Bitcoin-style variable integer."""
    if i < 0xfd:
        return bytes([i])
    elif i <= 0xffff:
        return b'\xfd' + int_to_bytes(i, 2)  # 2 bytes
    elif i <= 0xffffffff:
        return b'\xfe' + int_to_bytes(i, 4)  # 4 bytes
    else:  # i <= 0xffffffffffffffff
        return b'\xff' + int_to_bytes(i, 8)  # 8 bytes


def read_var_bytes(stream: BinaryIO, max_size: int, what: str = "field") -> bytes:
    """Reads a varint length prefix followed by that many bytes."""
    length = read_varint(stream)
    if length > max_size:
        raise TransactionDecodeError(f"{what} is {length} bytes, larger than the max allowed size {max_size}")
    return read_exact(stream, length)

def encode_var_bytes(b: bytes) -> bytes:
    return encode_varint(len(b)) + b

import hashlib


def _sha256(s):
    """sha256 hash"""
    return hashlib.sha256(s).digest()


def HASH256(s):
    """two rounds of sha256"""
    return _sha256(_sha256(s))


def hash_to_hex(h: bytes) -> str:
    """Internal byte order hash to the byte-reversed hex shown by block explorers and RPC"""
    return h[::-1].hex()


def hex_to_hash(s: str) -> bytes:
    return bytes.fromhex(s)[::-1]

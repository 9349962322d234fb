# Formatting / pretty print functions
from datetime import datetime, timezone
import math


def print_bytes(data: bytes):
    """Prints bytes in a properly aligned hex dump format."""
    for i in range(0, len(data), 16):
        chunk = data[i : i + 16]  # Slice 16-byte chunk

        # Hex representation
        hex_part = " ".join(f"{b:02X}" for b in chunk)
        hex_part = (
            hex_part[:23] + " " + hex_part[23:] if len(chunk) > 8 else hex_part
        )  # Extra space after 8th byte

        # ASCII representation (printable characters or '.')
        ascii_part = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)

        # Adjust spacing for the last row (if < 16 bytes)
        padding = "   " * (16 - len(chunk))
        print(f"{i:08X}   {hex_part}{padding}  {ascii_part}")


def format_bytes(size_bytes: int) -> str:
    if size_bytes == 0:
        return "0B"

    size_name = ("B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")
    i = int(math.floor(math.log(size_bytes, 1024)))
    p = math.pow(1024, i)
    s = round(size_bytes / p, 2)
    return f"{s} {size_name[i]}"


def format_epoch(epoch: int | float) -> str:
    """Unix time as a UTC date string. Out of range timestamps are shown raw."""
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%d %b %Y, %H:%M:%S UTC")
    except (OverflowError, OSError, ValueError):
        return f"<invalid timestamp {epoch}>"


def truncate_bytes(h: bytes | str, ends=2) -> str:
    if isinstance(h, bytes):
        h = h.hex()

    if len(h) < ends * 4:
        return h #type: ignore
    return h[:ends*2] + "...." + h[-ends*2:]  #type: ignore

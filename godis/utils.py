"""Small helpers for command lines, equality and index ranges."""

from __future__ import annotations

from typing import Any


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode() if isinstance(value, str) else bytes(value)


def to_cmd_line(*args: str) -> list[bytes]:
    """Turn strings into a command line."""
    return [_to_bytes(arg) for arg in args]


def to_cmd_line2(command_name: str, *args: str) -> list[bytes]:
    """Turn a command name and string arguments into a command line."""
    return [_to_bytes(command_name), *(_to_bytes(arg) for arg in args)]


def to_cmd_line3(command_name: str, *args: bytes) -> list[bytes]:
    """Turn a command name and byte arguments into a command line."""
    return [_to_bytes(command_name), *args]


def equals(a: Any, b: Any) -> bool:
    """Compare two values, treating any bytes-like pair by content."""
    byte_types = (bytes, bytearray, memoryview)
    if isinstance(a, byte_types) and isinstance(b, byte_types):
        return bytes(a) == bytes(b)
    return a == b


def convert_range(start: int, end: int, size: int) -> tuple[int, int]:
    """Convert an inclusive Redis index pair into a half-open slice.

    Negative indexes count from the end. Ranges that fall outside the
    sequence give ``(-1, -1)``.
    """
    if start < -size or start >= size:
        return -1, -1
    if start < 0:
        start += size
    if end < -size:
        return -1, -1
    if end < 0:
        end = size + end + 1
    elif end < size:
        end += 1
    else:
        end = size
    if start > end:
        return -1, -1
    return start, end
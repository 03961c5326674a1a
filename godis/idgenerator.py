"""Unique 64-bit ids in the snowflake layout."""

from __future__ import annotations

import threading
import time

EPOCH_MS = 1288834974657  # Nov 04 2010 01:42:54 UTC
TIME_LEFT = 22
NODE_LEFT = 10
MAX_SEQUENCE = (1 << NODE_LEFT) - 1
NODE_MASK = (1 << (TIME_LEFT - NODE_LEFT)) - 1

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_UINT64_MASK = (1 << 64) - 1


def _fnv1_64(data: bytes) -> int:
    value = _FNV64_OFFSET
    for byte in data:
        value = (value * _FNV64_PRIME) & _UINT64_MASK
        value ^= byte
    return value


class IDGenerator:
    """Generates ids from milliseconds since the epoch, a node id and a sequence."""

    def __init__(self, node: str) -> None:
        self._node_id = _fnv1_64(node.encode()) & NODE_MASK
        self._lock = threading.Lock()
        self._last_stamp = -1
        self._sequence = 1
        # anchor the epoch on the monotonic clock so wall-clock jumps do not matter
        self._epoch_ns = time.monotonic_ns() - (time.time_ns() - EPOCH_MS * 1_000_000)

    def _now_ms(self) -> int:
        return (time.monotonic_ns() - self._epoch_ns) // 1_000_000

    def next_id(self) -> int:
        """Return the next unique id."""
        with self._lock:
            timestamp = self._now_ms()
            if timestamp < self._last_stamp:
                raise RuntimeError("can not generate id")
            if timestamp == self._last_stamp:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    while timestamp <= self._last_stamp:
                        timestamp = self._now_ms()
            else:
                self._sequence = 0
            self._last_stamp = timestamp
            return (timestamp << TIME_LEFT) | (self._node_id << NODE_LEFT) | self._sequence
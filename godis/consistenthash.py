"""Consistent hashing ring for picking cluster nodes."""

from __future__ import annotations

import bisect
import zlib
from typing import Callable, Optional

HashFunc = Callable[[bytes], int]


def _partition_key(key: str) -> str:
    """Return the hash tag inside ``{...}`` if there is a non-empty one."""
    beg = key.find("{")
    if beg == -1:
        return key
    end = key.find("}")
    if end == -1 or end <= beg + 1:
        return key
    return key[beg + 1 : end]


class HashRing:
    """Nodes placed on a hash circle, each with several virtual replicas."""

    def __init__(self, replicas: int, hash_func: Optional[HashFunc] = None) -> None:
        self._replicas = replicas
        self._hash = hash_func or zlib.crc32
        self._keys: list[int] = []
        self._nodes: dict[int, str] = {}

    def is_empty(self) -> bool:
        """Tell whether no node has been added."""
        return not self._keys

    def add_node(self, *nodes: str) -> None:
        """Place the given nodes on the circle; empty names are skipped."""
        for node in nodes:
            if not node:
                continue
            for i in range(self._replicas):
                hashed = self._hash(f"{i}{node}".encode())
                self._keys.append(hashed)
                self._nodes[hashed] = node
        self._keys.sort()

    def pick_node(self, key: str) -> Optional[str]:
        """Return the node owning the key, or None if the ring is empty."""
        if self.is_empty():
            return None
        hashed = self._hash(_partition_key(key).encode())
        idx = bisect.bisect_left(self._keys, hashed)
        if idx == len(self._keys):
            idx = 0
        return self._nodes[self._keys[idx]]
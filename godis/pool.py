"""A bounded pool of reusable objects such as client connections."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Optional


class PoolClosedError(Exception):
    """The pool has been closed."""

    def __init__(self) -> None:
        super().__init__("pool closed")


class PoolExhaustedError(Exception):
    """A waiting borrower was released without receiving an object."""

    def __init__(self) -> None:
        super().__init__("reach max connection limit")


@dataclass(frozen=True)
class PoolConfig:
    """How many objects may sit idle and how many may exist at once."""

    max_idle: int
    max_active: int


class _Waiter:
    """A borrower blocked until an object is handed back."""

    def __init__(self) -> None:
        self.event = threading.Event()
        self.item: Any = None
        self.served = False


class Pool:
    """Hands out objects made by a factory and takes them back for reuse.

    At most ``max_active`` objects exist at a time; further borrowers wait
    until one is returned. Returned objects beyond ``max_idle`` are passed
    to the finalizer.
    """

    def __init__(
        self,
        factory: Callable[[], Any],
        finalizer: Callable[[Any], None],
        config: PoolConfig,
    ) -> None:
        self._factory = factory
        self._finalizer = finalizer
        self._config = config
        self._lock = threading.Lock()
        self._idles: Deque[Any] = deque()
        self._waiting: Deque[_Waiter] = deque()
        self._active = 0
        self._closed = False

    def get(self) -> Any:
        """Borrow an object, creating one or waiting if none is idle."""
        waiter: Optional[_Waiter] = None
        with self._lock:
            if self._closed:
                raise PoolClosedError()
            if self._idles:
                return self._idles.popleft()
            if self._active >= self._config.max_active:
                waiter = _Waiter()
                self._waiting.append(waiter)
            else:
                self._active += 1  # hold a place for the new object

        if waiter is not None:
            waiter.event.wait()
            if not waiter.served:
                raise PoolExhaustedError()
            return waiter.item

        try:
            return self._factory()
        except BaseException:
            with self._lock:
                self._active -= 1
            raise

    def put(self, item: Any) -> None:
        """Return a borrowed object to the pool."""
        with self._lock:
            if not self._closed:
                if self._waiting:
                    waiter = self._waiting.popleft()
                    waiter.item = item
                    waiter.served = True
                    waiter.event.set()
                    return
                if len(self._idles) < self._config.max_idle:
                    self._idles.append(item)
                    return
                self._active -= 1
        self._finalizer(item)

    def close(self) -> None:
        """Close the pool and finalize every idle object; closing twice is harmless."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idles = list(self._idles)
            self._idles.clear()
            waiters = list(self._waiting)
            self._waiting.clear()
        for waiter in waiters:
            waiter.event.set()
        for item in idles:
            self._finalizer(item)
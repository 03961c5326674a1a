"""Client connections as seen by the server, plus an in-memory stand-in."""

from __future__ import annotations

import socket
import threading
from typing import Any, Optional

from godis.concurrency import Wait

_CLOSE_TIMEOUT = 10.0


class Connection:
    """A connection with a client, holding its per-session state."""

    def __init__(self, sock: Optional[socket.socket] = None) -> None:
        self._sock = sock
        # counts writes in flight, so close can wait for them
        self._sending = Wait()
        self._lock = threading.Lock()
        self._subs: dict[str, None] = {}
        self._multi = False
        self.password = ""
        self.queue: list[list[bytes]] = []
        self.watching: dict[str, int] = {}
        self.tx_errors: list[Exception] = []
        self.db_index = 0
        self.is_slave = False
        self.is_master = False

    def _reset(self) -> None:
        with self._lock:
            self._subs = {}
        self._multi = False
        self.password = ""
        self.queue = []
        self.watching = {}
        self.tx_errors = []
        self.db_index = 0

    def remote_addr(self) -> Any:
        """Return the peer address, or None without a socket."""
        if self._sock is None:
            return None
        return self._sock.getpeername()

    def close(self) -> None:
        """Wait briefly for pending writes, close the socket and reset state."""
        self._sending.wait_with_timeout(_CLOSE_TIMEOUT)
        if self._sock is not None:
            self._sock.close()
        self._reset()

    def write(self, data: bytes) -> int:
        """Send data to the client; return the number of bytes sent."""
        if not data:
            return 0
        self._sending.add(1)
        try:
            if self._sock is None:
                raise OSError("connection has no socket")
            self._sock.sendall(data)
            return len(data)
        finally:
            self._sending.done()

    def name(self) -> str:
        """Return the peer address as text, or an empty string."""
        if self._sock is None:
            return ""
        addr = self._sock.getpeername()
        if isinstance(addr, tuple) and len(addr) >= 2:
            return f"{addr[0]}:{addr[1]}"
        return str(addr)

    def subscribe(self, channel: str) -> None:
        """Record that this connection listens on the channel."""
        with self._lock:
            self._subs[channel] = None

    def unsubscribe(self, channel: str) -> None:
        """Forget the channel; unknown channels are ignored."""
        with self._lock:
            self._subs.pop(channel, None)

    def subs_count(self) -> int:
        """Return the number of channels listened on."""
        with self._lock:
            return len(self._subs)

    def get_channels(self) -> list[str]:
        """Return every channel listened on."""
        with self._lock:
            return list(self._subs)

    @property
    def in_multi_state(self) -> bool:
        """Whether the connection is inside an uncommitted transaction."""
        return self._multi

    @in_multi_state.setter
    def in_multi_state(self, state: bool) -> None:
        if not state:
            # leaving a transaction drops what it gathered
            self.watching = {}
            self.queue = []
        self._multi = bool(state)

    def enqueue_cmd(self, cmd_line: list[bytes]) -> None:
        """Queue a command of the current transaction."""
        self.queue.append(cmd_line)

    def add_tx_error(self, err: Exception) -> None:
        """Record a syntax error met within the transaction."""
        self.tx_errors.append(err)

    def clear_queued_cmds(self) -> None:
        """Drop the queued commands of the current transaction."""
        self.queue = []


class FakeConn(Connection):
    """A connection whose writes land in a buffer that can be read back."""

    def __init__(self) -> None:
        super().__init__()
        self._buf = bytearray()
        self._offset = 0
        self._closed = False
        self._cond = threading.Condition()

    def write(self, data: bytes) -> int:
        """Append data to the buffer; raise EOFError once closed."""
        with self._cond:
            if self._closed:
                raise EOFError("connection closed")
            self._buf += data
            self._cond.notify_all()
        return len(data)

    def read(self, size: int = -1) -> bytes:
        """Return unread data, blocking until some arrives.

        Returns an empty bytes object once closed with nothing left to read.
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._offset < len(self._buf) or self._closed
            )
            end = len(self._buf)
            if size >= 0:
                end = min(end, self._offset + size)
            chunk = bytes(self._buf[self._offset : end])
            self._offset = end
            return chunk

    def clean(self) -> None:
        """Discard everything written so far."""
        with self._cond:
            self._buf = bytearray()
            self._offset = 0

    def data(self) -> bytes:
        """Return everything written since the last clean."""
        with self._cond:
            return bytes(self._buf)

    def close(self) -> None:
        """Mark the connection closed and wake any blocked reader."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
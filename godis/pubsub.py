"""Publish/subscribe channels shared by all client connections."""

from __future__ import annotations

import threading
from typing import Sequence

from godis.connection import Connection
from godis.protocol import (
    CRLF,
    ArgNumErrReply,
    IntReply,
    MultiBulkReply,
    NoReply,
    Reply,
)

_SUBSCRIBE = "subscribe"
_UNSUBSCRIBE = "unsubscribe"
_MESSAGE = b"message"
UNSUBSCRIBE_NOTHING = b"*3\r\n$11\r\nunsubscribe\r\n$-1\r\n:0\r\n"


def _to_str(raw: bytes) -> str:
    return bytes(raw).decode("utf-8", errors="surrogateescape")


def _to_bytes(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")


def _bulk(raw: bytes) -> bytes:
    return b"$" + str(len(raw)).encode() + CRLF + raw + CRLF


def make_msg(kind: str, channel: str, code: int) -> bytes:
    """Encode a subscribe or unsubscribe notification."""
    return (
        b"*3" + CRLF
        + _bulk(_to_bytes(kind))
        + _bulk(_to_bytes(channel))
        + b":" + str(code).encode() + CRLF
    )


def _send(conn: Connection, data: bytes) -> None:
    # a failing client must not disturb the others
    try:
        conn.write(data)
    except (OSError, EOFError):
        pass


class Hub:
    """Holds which connections listen on which channel."""

    def __init__(self) -> None:
        self._subs: dict[str, list[Connection]] = {}
        self._lock = threading.RLock()

    def _subscribe0(self, channel: str, conn: Connection) -> bool:
        conn.subscribe(channel)
        subscribers = self._subs.setdefault(channel, [])
        if any(s is conn for s in subscribers):
            return False
        subscribers.append(conn)
        return True

    def _unsubscribe0(self, channel: str, conn: Connection) -> bool:
        conn.unsubscribe(channel)
        subscribers = self._subs.get(channel)
        if subscribers is None:
            return False
        subscribers[:] = [s for s in subscribers if s is not conn]
        if not subscribers:
            del self._subs[channel]
        return True

    def subscribe(self, conn: Connection, args: Sequence[bytes]) -> Reply:
        """Add the connection to each named channel, notifying it of each new one."""
        channels = [_to_str(arg) for arg in args]
        with self._lock:
            for channel in channels:
                if self._subscribe0(channel, conn):
                    _send(conn, make_msg(_SUBSCRIBE, channel, conn.subs_count()))
        return NoReply()

    def unsubscribe_all(self, conn: Connection) -> None:
        """Remove the connection from every channel it listens on."""
        with self._lock:
            for channel in conn.get_channels():
                self._unsubscribe0(channel, conn)

    def unsubscribe(self, conn: Connection, args: Sequence[bytes]) -> Reply:
        """Remove the connection from the named channels, or from all if none are named."""
        with self._lock:
            channels = [_to_str(arg) for arg in args] if args else conn.get_channels()
            if not channels:
                _send(conn, UNSUBSCRIBE_NOTHING)
                return NoReply()
            for channel in channels:
                if self._unsubscribe0(channel, conn):
                    _send(conn, make_msg(_UNSUBSCRIBE, channel, conn.subs_count()))
        return NoReply()

    def publish(self, args: Sequence[bytes]) -> Reply:
        """Send a message to every listener; reply with how many there were."""
        if len(args) != 2:
            return ArgNumErrReply("publish")
        channel_raw, message = bytes(args[0]), bytes(args[1])
        channel = _to_str(channel_raw)
        with self._lock:
            subscribers = list(self._subs.get(channel, ()))
        if not subscribers:
            return IntReply(0)
        payload = MultiBulkReply([_MESSAGE, channel_raw, message]).to_bytes()
        for conn in subscribers:
            _send(conn, payload)
        return IntReply(len(subscribers))
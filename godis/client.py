"""A pipelining client for servers speaking the Redis protocol."""

from __future__ import annotations

import enum
import queue
import socket
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Sequence, Tuple, Union

from godis import logger
from godis.concurrency import Wait
from godis.parser import parse_stream
from godis.protocol import MultiBulkReply, Reply, StandardErrReply

MAX_WAIT = 3.0
HEARTBEAT_INTERVAL = 10.0
_CHAN_SIZE = 256
_RECONNECT_ATTEMPTS = 3
_WRITE_ATTEMPTS = 3

Address = Union[str, Tuple[str, int]]


class _Status(enum.Enum):
    CREATED = enum.auto()
    RUNNING = enum.auto()
    CLOSED = enum.auto()


@dataclass(eq=False)
class _Request:
    args: list
    heartbeat: bool = False
    done: threading.Event = field(default_factory=threading.Event)
    reply: Optional[Reply] = None
    error: Optional[Exception] = None

    def finish(
        self, reply: Optional[Reply] = None, error: Optional[Exception] = None
    ) -> None:
        self.reply = reply
        self.error = error
        self.done.set()


def _parse_address(addr: Address) -> Tuple[str, int]:
    if isinstance(addr, tuple):
        return addr[0], int(addr[1])
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"invalid address: {addr}")
    try:
        return host.strip("[]") or "localhost", int(port)
    except ValueError:
        raise ValueError(f"invalid address: {addr}") from None


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


class Client:
    """Sends commands over one connection, matching replies in order.

    Commands from many threads are written by a single writer thread and
    their replies are read back by a reader thread; a heartbeat PING keeps
    the connection alive and a broken connection is re-established.
    """

    def __init__(
        self,
        addr: Address,
        *,
        timeout: float = MAX_WAIT,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
    ) -> None:
        self._address = _parse_address(addr)
        self._addr_text = f"{self._address[0]}:{self._address[1]}"
        self._sock = socket.create_connection(self._address)
        self._timeout = timeout
        self._heartbeat_interval = heartbeat_interval
        self._pending: "queue.Queue[Optional[_Request]]" = queue.Queue(_CHAN_SIZE)
        self._waiting: Deque[_Request] = deque()
        self._lock = threading.Lock()
        self._status = _Status.CREATED
        self._working = Wait()
        self._stopping = threading.Event()
        self._writer: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the writer, reader and heartbeat threads."""
        with self._lock:
            if self._status is not _Status.CREATED:
                return
            self._status = _Status.RUNNING
            sock = self._sock
        self._writer = threading.Thread(
            target=self._handle_write, name="client-writer", daemon=True
        )
        self._writer.start()
        self._spawn_reader(sock)
        threading.Thread(
            target=self._heartbeat, name="client-heartbeat", daemon=True
        ).start()

    def close(self) -> None:
        """Finish outstanding requests, then stop the threads and disconnect."""
        with self._lock:
            if self._status is _Status.CLOSED:
                return
            self._status = _Status.CLOSED
        self._stopping.set()
        self._working.wait()
        if self._writer is not None:
            self._pending.put(None)
            if self._writer is not threading.current_thread():
                self._writer.join()
        with self._lock:
            sock = self._sock
            stale = list(self._waiting)
            self._waiting.clear()
        _shutdown(sock)
        for request in stale:
            request.finish(error=ConnectionError("connection closed"))

    def send(self, args: Sequence[bytes]) -> Reply:
        """Send a command and return its reply.

        Failures come back as error replies: "client closed", "server time
        out" or "request failed".
        """
        if self._status is not _Status.RUNNING:
            return StandardErrReply("client closed")
        request = _Request(list(args))
        self._working.add(1)
        try:
            self._pending.put(request)
            if not request.done.wait(self._timeout):
                return StandardErrReply("server time out")
        finally:
            self._working.done()
        if request.error is not None or request.reply is None:
            return StandardErrReply("request failed")
        return request.reply

    def _heartbeat(self) -> None:
        while not self._stopping.wait(self._heartbeat_interval):
            self._do_heartbeat()

    def _do_heartbeat(self) -> None:
        request = _Request([b"PING"], heartbeat=True)
        self._working.add(1)
        try:
            self._pending.put(request)
            request.done.wait(self._timeout)
        finally:
            self._working.done()

    def _handle_write(self) -> None:
        while True:
            request = self._pending.get()
            if request is None:
                return
            self._do_request(request)

    def _do_request(self, request: _Request) -> None:
        if not request.args:
            request.finish(error=ValueError("empty command"))
            return
        data = MultiBulkReply(request.args).to_bytes()
        with self._lock:
            sock = self._sock
            self._waiting.append(request)
        error: Optional[Exception] = None
        for _ in range(_WRITE_ATTEMPTS):
            try:
                sock.sendall(data)
            except socket.timeout as exc:
                error = exc
                continue
            except OSError as exc:
                error = exc
                break
            return
        with self._lock:
            if request in self._waiting:
                self._waiting.remove(request)
        request.finish(error=error)

    def _spawn_reader(self, sock: socket.socket) -> None:
        threading.Thread(
            target=self._handle_read, args=(sock,), name="client-reader", daemon=True
        ).start()

    def _handle_read(self, sock: socket.socket) -> None:
        with sock.makefile("rb") as stream:
            for payload in parse_stream(stream):
                if payload.error is not None:
                    break
                self._finish_request(payload.data)
        if self._status is _Status.CLOSED:
            return
        self._reconnect(sock)

    def _finish_request(self, reply: Optional[Reply]) -> None:
        with self._lock:
            request = self._waiting.popleft() if self._waiting else None
        if request is not None:
            request.finish(reply=reply)

    def _reconnect(self, old_sock: socket.socket) -> None:
        logger.info("reconnect with: " + self._addr_text)
        _shutdown(old_sock)
        new_sock: Optional[socket.socket] = None
        for attempt in range(_RECONNECT_ATTEMPTS):
            try:
                new_sock = socket.create_connection(self._address)
                break
            except OSError as exc:
                logger.error("reconnect error: " + str(exc))
                if attempt < _RECONNECT_ATTEMPTS - 1:
                    time.sleep(1)
        if new_sock is None:
            self.close()
            return
        with self._lock:
            if self._status is _Status.CLOSED:
                closed = True
            else:
                closed = False
                self._sock = new_sock
                stale = list(self._waiting)
                self._waiting.clear()
        if closed:
            _shutdown(new_sock)
            return
        for request in stale:
            request.finish(error=ConnectionError("connection closed"))
        self._spawn_reader(new_sock)
"""A threaded TCP accept loop and a line echo handler."""

from __future__ import annotations

import signal
import socket
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from godis import logger
from godis.concurrency import Wait

_ACCEPT_POLL = 0.1
_CLOSE_TIMEOUT = 10.0
_STOP_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGHUP", "SIGQUIT", "SIGTERM", "SIGINT")
    if hasattr(signal, name)
)


@dataclass
class Config:
    """Properties of a TCP server."""

    address: str = ""
    max_connect: int = 0
    timeout: float = 0.0


class Handler(ABC):
    """Serves accepted connections."""

    @abstractmethod
    def handle(self, conn: socket.socket) -> None:
        """Serve one connection until it ends."""

    @abstractmethod
    def close(self) -> None:
        """Stop serving and close every open connection."""


def _shutdown(conn: socket.socket) -> None:
    try:
        conn.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    conn.close()


class _EchoClient:
    def __init__(self, conn: socket.socket) -> None:
        self.conn = conn
        self.waiting = Wait()

    def close(self) -> None:
        self.waiting.wait_with_timeout(_CLOSE_TIMEOUT)
        _shutdown(self.conn)


class EchoHandler(Handler):
    """Sends every received line back to the client."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: set[_EchoClient] = set()
        self._closing = False

    def handle(self, conn: socket.socket) -> None:
        """Echo lines until the client leaves; refuse if closing."""
        client = _EchoClient(conn)
        with self._lock:
            if self._closing:
                refused = True
            else:
                refused = False
                self._active.add(client)
        if refused:
            conn.close()
            return
        try:
            with conn.makefile("rb") as reader:
                while True:
                    line = reader.readline()
                    if not line.endswith(b"\n"):
                        logger.info("connection close")
                        return
                    client.waiting.add(1)
                    try:
                        conn.sendall(line)
                    except OSError:
                        pass
                    finally:
                        client.waiting.done()
        except OSError as exc:
            logger.warn(exc)
        finally:
            with self._lock:
                self._active.discard(client)
            conn.close()

    def close(self) -> None:
        """Refuse new connections and close the open ones."""
        logger.info("handler shutting down...")
        with self._lock:
            self._closing = True
            clients = list(self._active)
        for client in clients:
            client.close()


def _serve(handler: Handler, conn: socket.socket) -> None:
    try:
        handler.handle(conn)
    except Exception as exc:
        logger.error(exc)


def listen_and_serve(
    listener: socket.socket, handler: Handler, close_event: threading.Event
) -> None:
    """Accept connections until close_event is set or accepting fails.

    Each connection is served in its own thread. On the way out the
    listener and the handler are closed, and every serving thread is
    waited for.
    """
    listener.settimeout(_ACCEPT_POLL)
    workers: list[threading.Thread] = []
    try:
        while not close_event.is_set():
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                logger.info(f"accept error: {exc}")
                break
            conn.settimeout(None)
            logger.info("accept link")
            worker = threading.Thread(target=_serve, args=(handler, conn), daemon=True)
            worker.start()
            workers = [w for w in workers if w.is_alive()]
            workers.append(worker)
        else:
            logger.info("get exit signal")
    finally:
        logger.info("shutting down...")
        listener.close()
        handler.close()
    for worker in workers:
        worker.join()


def _parse_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"invalid address: {address}")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid address: {address}") from None
    return host.strip("[]"), port_number


def listen_and_serve_with_signal(config: Config, handler: Handler) -> None:
    """Bind the configured address and serve until a stop signal arrives.

    Signals are only caught when called from the main thread. Raises
    ValueError for a malformed address and OSError if binding fails.
    """
    host, port = _parse_address(config.address)
    close_event = threading.Event()
    previous = {}
    if threading.current_thread() is threading.main_thread():
        for sig in _STOP_SIGNALS:
            previous[sig] = signal.signal(sig, lambda signum, frame: close_event.set())
    try:
        listener = socket.create_server((host, port))
        logger.info(f"bind: {config.address}, start listening...")
        listen_and_serve(listener, handler, close_event)
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)
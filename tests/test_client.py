import contextlib
import socket
import socketserver
import threading
import time

import pytest

from godis.asserts import assert_err_reply
from godis.client import Client
from godis.parser import parse_stream
from godis.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    NullBulkReply,
    OkReply,
    StandardErrReply,
    StatusReply,
)
from godis.utils import convert_range, to_cmd_line


def _execute(server, args):
    cmd = bytes(args[0]).upper()
    with server.lock:
        store = server.store
        if cmd == b"PING":
            server.pings += 1
            return StatusReply("PONG")
        if cmd == b"SET":
            store[args[1]] = args[2]
            return OkReply()
        if cmd == b"GET":
            value = store.get(args[1])
            return NullBulkReply() if value is None else BulkReply(value)
        if cmd == b"DEL":
            return IntReply(sum(store.pop(key, None) is not None for key in args[1:]))
        if cmd == b"RPUSH":
            values = store.setdefault(args[1], [])
            values.extend(args[2:])
            return IntReply(len(values))
        if cmd == b"LRANGE":
            values = store.get(args[1], [])
            start, end = convert_range(int(args[2]), int(args[3]), len(values))
            if start == -1 or start == end:
                return EmptyMultiBulkReply()
            return MultiBulkReply(values[start:end])
    return StandardErrReply("ERR unknown command")


class _RespHandler(socketserver.StreamRequestHandler):
    def handle(self):
        self.server.track(self.connection)
        for payload in parse_stream(self.rfile):
            if payload.error is not None:
                break
            if not isinstance(payload.data, MultiBulkReply) or not payload.data.args:
                continue
            reply = _execute(self.server, payload.data.args)
            if self.server.silent:
                continue
            try:
                self.wfile.write(reply.to_bytes())
            except OSError:
                break


class _FakeServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, silent=False):
        super().__init__(("127.0.0.1", 0), _RespHandler)
        self.silent = silent
        self.lock = threading.Lock()
        self.store = {}
        self.pings = 0
        self.accepted = 0
        self.connections = []

    @property
    def address(self):
        return f"127.0.0.1:{self.server_address[1]}"

    def track(self, sock):
        with self.lock:
            self.accepted += 1
            self.connections.append(sock)

    def drop_connections(self):
        with self.lock:
            for sock in self.connections:
                try:
                    sock.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
            self.connections.clear()


@contextlib.contextmanager
def _running_server(silent=False):
    srv = _FakeServer(silent=silent)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    try:
        yield srv
    finally:
        srv.shutdown()
        srv.server_close()


@pytest.fixture
def server():
    with _running_server() as srv:
        yield srv


@pytest.fixture
def client(server):
    c = Client(server.address)
    c.start()
    yield c
    c.close()


def test_client_commands(server):
    client = Client(server.address)
    client.start()

    result = client.send([b"PING"])
    assert isinstance(result, StatusReply)
    assert result.status == "PONG"

    result = client.send([b"SET", b"a", b"a"])
    assert result.to_bytes() == b"+OK\r\n"

    result = client.send([b"GET", b"a"])
    assert isinstance(result, BulkReply)
    assert result.arg == b"a"

    result = client.send([b"DEL", b"a"])
    assert isinstance(result, IntReply)
    assert result.code == 1

    result = client.send([b"GET", b"a"])
    assert isinstance(result, NullBulkReply)

    client.send([b"DEL", b"arr"])
    result = client.send([b"RPUSH", b"arr", b"1", b"2", b"c"])
    assert isinstance(result, IntReply)
    assert result.code == 3

    result = client.send([b"LRANGE", b"arr", b"0", b"-1"])
    assert isinstance(result, MultiBulkReply)
    assert result.args == [b"1", b"2", b"c"]

    client.close()
    ret = client.send(to_cmd_line("ping"))
    assert_err_reply(ret, "client closed")


def test_send_before_start_is_refused(server):
    client = Client(server.address)
    try:
        assert_err_reply(client.send([b"PING"]), "client closed")
    finally:
        client.close()


def test_empty_command_fails(client):
    assert_err_reply(client.send([]), "request failed")


def test_concurrent_sends_get_matching_replies(client):
    failures = []
    rounds = 20

    def worker(n):
        key = f"key{n}".encode()
        for i in range(rounds):
            value = f"{n}-{i}".encode()
            if client.send([b"SET", key, value]).to_bytes() != b"+OK\r\n":
                failures.append((n, i, "set"))
            got = client.send([b"GET", key])
            if not isinstance(got, BulkReply) or got.arg != value:
                failures.append((n, i, got))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)
    assert failures == []

    for n in range(8):
        got = client.send([b"GET", f"key{n}".encode()])
        assert got.to_bytes() == BulkReply(f"{n}-{rounds - 1}".encode()).to_bytes()


def test_reconnect(server, client):
    assert client.send([b"PING"]).to_bytes() == b"+PONG\r\n"
    server.drop_connections()
    success = False
    for _ in range(50):
        if client.send([b"PING"]).to_bytes() == b"+PONG\r\n":
            success = True
            break
        time.sleep(0.1)
    assert success
    assert server.accepted >= 2


def test_server_time_out():
    with _running_server(silent=True) as srv:
        client = Client(srv.address, timeout=0.3)
        client.start()
        try:
            assert_err_reply(client.send([b"PING"]), "server time out")
        finally:
            client.close()


def test_heartbeat_pings_server(server):
    client = Client(server.address, heartbeat_interval=0.1)
    client.start()
    try:
        deadline = time.monotonic() + 5
        while server.pings == 0 and time.monotonic() < deadline:
            time.sleep(0.05)
        assert server.pings >= 1
    finally:
        client.close()


def test_connect_refused():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        Client(f"127.0.0.1:{port}")


def test_bad_address():
    with pytest.raises(ValueError):
        Client("localhost")
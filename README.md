# godis

Pure-Python building blocks for a server and client that speak the Redis
serialization protocol (RESP). There are no third-party dependencies.

## Modules

- `godis.protocol` – reply types that encode themselves with `to_bytes()`:
  `StatusReply`, `IntReply`, `BulkReply`, `MultiBulkReply`, `MultiRawReply`,
  `OkReply`, `PongReply`, `QueuedReply`, `NullBulkReply`, `EmptyMultiBulkReply`,
  `NoReply`, and the error replies (`StandardErrReply`, `ArgNumErrReply`,
  `SyntaxErrReply`, `WrongTypeErrReply`, `UnknownErrReply`, `ProtocolErrReply`),
  which are also exceptions. `is_ok_reply` and `is_error_reply` inspect a reply.
- `godis.parser` – a streaming RESP parser. `parse_stream(reader)` yields
  `Payload` objects (`data` or `error`) from a binary file-like object;
  `parse_bytes(data)` returns every reply and `parse_one(data)` the first,
  both raising on the first error. Inline commands such as `set a a\r\n`
  are read as a `MultiBulkReply`.
- `godis.pubsub` – a `Hub` with `subscribe`, `unsubscribe`, `unsubscribe_all`
  and `publish`; `publish` answers with an `IntReply` of how many listeners got
  the message.
- `godis.connection` – `Connection`, the per-client session state (subscribed
  channels, transaction queue, selected database index), and `FakeConn`, an
  in-memory connection whose writes can be read back with `data()` or `read()`.
- `godis.tcp` – `listen_and_serve(listener, handler, close_event)`, a threaded
  accept loop that shuts down when the event is set, and
  `listen_and_serve_with_signal(config, handler)`, which binds `Config.address`
  and stops on SIGHUP, SIGQUIT, SIGTERM or SIGINT. `Handler` is the abstract
  base for connection handlers; `EchoHandler` sends every line back.
- `godis.client` – `Client(addr)`, a pipelining client: call `start()`, then
  `send(args)` from any thread, and `close()` when done. It sends a heartbeat
  PING and reconnects after a broken connection. Failures come back as error
  replies (`client closed`, `server time out`, `request failed`).
- `godis.wildcard` – `compile_pattern(src)` turns a glob pattern (`*`, `?`,
  `[...]`, `[^...]`, `\` escapes) into a `Pattern` with `is_match(s)`;
  a malformed pattern raises `ValueError`.
- `godis.consistenthash` – `HashRing(replicas, hash_func=None)` with
  `add_node`, `pick_node` and `is_empty`; keys with a `{tag}` are placed by the tag.
  The default hash is CRC-32.
- `godis.geohash` – 64-bit geohash `encode`/`decode`, `to_string`, `to_int`,
  `from_int`, `to_range`, great-circle `distance` in meters and
  `get_neighbours`, which returns the code ranges of the nine blocks around a point.
- `godis.pool` – `Pool(factory, finalizer, PoolConfig(max_idle, max_active))`
  with `get`, `put` and `close`; `get` on a closed pool raises `PoolClosedError`.
- `godis.timewheel` – `TimeWheel(interval, slot_num)` runs jobs after a delay;
  the module-level `delay`, `at` and `cancel` use a shared one-second wheel.
- `godis.idgenerator` – `IDGenerator(node).next_id()` returns unique
  snowflake-layout ids.
- `godis.logger` – `debug`, `info`, `warn`, `error` and `fatal` write to
  standard output; `setup(Settings(...))` also writes to a dated file and
  returns its path. `fatal` exits with status 1.
- `godis.concurrency` – `AtomicBool` and `Wait`, a counter that can be waited
  on with a timeout.
- `godis.asserts` – assertion helpers on replies for tests, such as
  `assert_int_reply` and `assert_multi_bulk_reply`.
- `godis.utils` – `to_cmd_line` helpers, `equals`, and `convert_range`, which
  turns an inclusive Redis index pair into slice bounds.

## Examples

Parsing a reply:

```python
from godis.parser import parse_one

reply = parse_one(b":1\r\n")
assert reply.to_bytes() == b":1\r\n"
```

Publishing to a subscriber:

```python
from godis.connection import FakeConn
from godis.pubsub import Hub

hub = Hub()
conn = FakeConn()
hub.subscribe(conn, [b"news"])
conn.clean()
assert hub.publish([b"news", b"hello"]).code == 1
```

Matching key patterns:

```python
from godis.wildcard import compile_pattern

pattern = compile_pattern("h[a-c]llo")
assert pattern.is_match("hallo")
assert not pattern.is_match("hello")
```

Geohashing a coordinate:

```python
from godis import geohash

code = geohash.encode(48.669, -4.32913)
assert geohash.to_string(geohash.from_int(code)) == "gbsuv7zt7zntw"
```

Converting Redis list indices to slice bounds:

```python
from godis.utils import convert_range

assert convert_range(0, -1, 5) == (0, 5)
```

## What it does not do

The package holds no key-value database and executes no data commands
(GET, SET and the like), has no persistence, and installs no command to start
a server. The TCP loop serves whatever `Handler` it is given; the only handler
included is `EchoHandler`.

## Tests

The test suite uses pytest; install the `test` extra to get it.
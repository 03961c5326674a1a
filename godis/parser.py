"""Streaming parser for the Redis serialization protocol."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

from godis.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    IntReply,
    MultiBulkReply,
    NullBulkReply,
    Reply,
    StandardErrReply,
    StatusReply,
)

_INT_RE = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class ProtocolError(ValueError):
    """Malformed input met while parsing."""


@dataclass(frozen=True)
class Payload:
    """One parsed reply, or the error met while parsing it."""

    data: Optional[Reply] = None
    error: Optional[Exception] = None


class _EndOfStream(Exception):
    """The input ended cleanly."""


class _Stream:
    """Line and exact-size reads over a binary file-like object."""

    def __init__(self, reader: BinaryIO) -> None:
        self._reader = reader

    def read_raw_line(self) -> bytes:
        return self._reader.readline()

    def read_line(self) -> bytes:
        line = self._reader.readline()
        if not line.endswith(b"\n"):
            raise _EndOfStream
        return line

    def read_exact(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._reader.read(remaining)
            if not chunk:
                if remaining == size:
                    raise _EndOfStream
                raise EOFError("unexpected EOF")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)


def _parse_int(text: bytes) -> Optional[int]:
    if _INT_RE.fullmatch(text) is None:
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _protocol_error(msg: str) -> Payload:
    return Payload(error=ProtocolError("protocol error: " + msg))


def _parse_bulk(header: bytes, stream: _Stream) -> Payload:
    length = _parse_int(header[1:])
    if length is None or length < -1:
        return _protocol_error("illegal bulk string header: " + _text(header))
    if length == -1:
        return Payload(NullBulkReply())
    body = stream.read_exact(length + 2)
    return Payload(BulkReply(body[:-2]))


def _parse_rdb_bulk(stream: _Stream) -> Payload:
    # The RDB body is not followed by CRLF, so it is read by size alone.
    header = stream.read_raw_line().removesuffix(b"\r\n")
    if not header:
        raise ProtocolError("empty header")
    length = _parse_int(header[1:])
    if length is None or length <= 0:
        raise ProtocolError("illegal bulk header: " + _text(header))
    return Payload(BulkReply(stream.read_exact(length)))


def _parse_array(header: bytes, stream: _Stream) -> Iterator[Payload]:
    count = _parse_int(header[1:])
    if count is None or count < 0:
        yield _protocol_error("illegal array header " + _text(header[1:]))
        return
    if count == 0:
        yield Payload(EmptyMultiBulkReply())
        return
    args: list[bytes] = []
    for _ in range(count):
        line = stream.read_line()
        if len(line) < 4 or line[-2:-1] != b"\r" or line[:1] != b"$":
            yield _protocol_error("illegal bulk string header " + _text(line))
            break
        length = _parse_int(line[1:-2])
        if length is None or length < -1:
            yield _protocol_error("illegal bulk string length " + _text(line))
            break
        if length == -1:
            args.append(b"")
        else:
            args.append(stream.read_exact(length + 2)[:-2])
    yield Payload(MultiBulkReply(args))


def _parse(stream: _Stream) -> Iterator[Payload]:
    while True:
        line = stream.read_line()
        if len(line) <= 2 or line[-2:-1] != b"\r":
            # replication traffic may contain empty lines
            continue
        line = line[:-2]
        kind, body = line[:1], line[1:]
        if kind == b"+":
            content = _text(body)
            yield Payload(StatusReply(content))
            if content.startswith("FULLRESYNC"):
                yield _parse_rdb_bulk(stream)
        elif kind == b"-":
            yield Payload(StandardErrReply(_text(body)))
        elif kind == b":":
            value = _parse_int(body)
            if value is None:
                yield _protocol_error("illegal number " + _text(body))
            else:
                yield Payload(IntReply(value))
        elif kind == b"$":
            yield _parse_bulk(line, stream)
        elif kind == b"*":
            yield from _parse_array(line, stream)
        else:
            yield Payload(MultiBulkReply(line.split(b" ")))


def parse_stream(reader: BinaryIO) -> Iterator[Payload]:
    """Yield payloads read from a binary stream until it ends.

    Protocol errors are yielded as payloads and parsing goes on; a
    truncated body or a read failure is yielded last. A clean end of
    input simply ends the iteration.
    """
    stream = _Stream(reader)
    try:
        yield from _parse(stream)
    except _EndOfStream:
        return
    except (EOFError, ProtocolError, OSError) as exc:
        yield Payload(error=exc)


def parse_bytes(data: bytes) -> list[Reply]:
    """Parse every reply in data; raise the first error met."""
    replies: list[Reply] = []
    for payload in parse_stream(io.BytesIO(data)):
        if payload.error is not None:
            raise payload.error
        replies.append(payload.data)
    return replies


def parse_one(data: bytes) -> Reply:
    """Parse the first reply in data."""
    for payload in parse_stream(io.BytesIO(data)):
        if payload.error is not None:
            raise payload.error
        return payload.data
    raise EOFError("no data")
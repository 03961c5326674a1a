"""Replies of the Redis serialization protocol and their wire encoding."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, field

CRLF = b"\r\n"


class Reply(metaclass=ABCMeta):
    """Anything that can be sent back to a client."""

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Serialize the reply to its wire form."""


@dataclass(frozen=True)
class PongReply(Reply):
    """The ``+PONG`` status."""

    def to_bytes(self) -> bytes:
        return b"+PONG\r\n"


@dataclass(frozen=True)
class OkReply(Reply):
    """The ``+OK`` status."""

    def to_bytes(self) -> bytes:
        return b"+OK\r\n"


@dataclass(frozen=True)
class NullBulkReply(Reply):
    """A null bulk string."""

    def to_bytes(self) -> bytes:
        return b"$-1\r\n"


@dataclass(frozen=True)
class EmptyMultiBulkReply(Reply):
    """An empty array."""

    def to_bytes(self) -> bytes:
        return b"*0\r\n"


@dataclass(frozen=True)
class NoReply(Reply):
    """Nothing is sent, as for commands like SUBSCRIBE."""

    def to_bytes(self) -> bytes:
        return b""


@dataclass(frozen=True)
class QueuedReply(Reply):
    """The ``+QUEUED`` status."""

    def to_bytes(self) -> bytes:
        return b"+QUEUED\r\n"


class ErrorReply(Reply, Exception):
    """An error reply; it can also be raised."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def to_bytes(self) -> bytes:
        return b"-" + self.message.encode() + CRLF


class UnknownErrReply(ErrorReply):
    """An unspecified error."""

    def __init__(self) -> None:
        super().__init__("Err unknown")


class ArgNumErrReply(ErrorReply):
    """Wrong number of arguments for a command."""

    def __init__(self, cmd: str) -> None:
        super().__init__(f"ERR wrong number of arguments for '{cmd}' command")
        self.cmd = cmd


class SyntaxErrReply(ErrorReply):
    """Unexpected arguments."""

    def __init__(self) -> None:
        super().__init__("Err syntax error")


class WrongTypeErrReply(ErrorReply):
    """Operation against a key holding the wrong kind of value."""

    def __init__(self) -> None:
        super().__init__(
            "WRONGTYPE Operation against a key holding the wrong kind of value"
        )


class ProtocolErrReply(ErrorReply):
    """An unexpected byte met while parsing a request."""

    def __init__(self, msg: str) -> None:
        super().__init__(f"ERR Protocol error '{msg}' command")
        self.msg = msg

    def to_bytes(self) -> bytes:
        return b"-ERR Protocol error: '" + self.msg.encode() + b"'" + CRLF


class StandardErrReply(ErrorReply):
    """A server error with a free-form status line."""

    def __init__(self, status: str) -> None:
        super().__init__(status)

    @property
    def status(self) -> str:
        return self.message


@dataclass
class BulkReply(Reply):
    """A binary-safe string; ``None`` encodes as a null bulk."""

    arg: bytes | None

    def to_bytes(self) -> bytes:
        if self.arg is None:
            return NullBulkReply().to_bytes()
        return b"$" + str(len(self.arg)).encode() + CRLF + bytes(self.arg) + CRLF


def _bulk(arg: bytes | None) -> bytes:
    if arg is None:
        return b"$-1" + CRLF
    return b"$" + str(len(arg)).encode() + CRLF + bytes(arg) + CRLF


@dataclass
class MultiBulkReply(Reply):
    """An array of bulk strings."""

    args: list[bytes | None] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        header = b"*" + str(len(self.args)).encode() + CRLF
        return header + b"".join(_bulk(arg) for arg in self.args)


@dataclass
class MultiRawReply(Reply):
    """An array of arbitrary replies, for nested structures."""

    replies: list[Reply] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        header = b"*" + str(len(self.replies)).encode() + CRLF
        return header + b"".join(reply.to_bytes() for reply in self.replies)


@dataclass
class StatusReply(Reply):
    """A simple status string."""

    status: str

    def to_bytes(self) -> bytes:
        return b"+" + self.status.encode() + CRLF


@dataclass
class IntReply(Reply):
    """A 64-bit integer."""

    code: int

    def to_bytes(self) -> bytes:
        return b":" + str(self.code).encode() + CRLF


def is_ok_reply(reply: Reply) -> bool:
    """Tell whether the reply is ``+OK``."""
    return reply.to_bytes() == b"+OK\r\n"


def is_error_reply(reply: Reply) -> bool:
    """Tell whether the reply encodes an error."""
    return reply.to_bytes().startswith(b"-")
"""Assertions on replies, for use in tests.

Each function raises AssertionError on mismatch and returns the checked reply.
"""

from __future__ import annotations

from typing import Optional, Sequence

from godis.protocol import (
    BulkReply,
    EmptyMultiBulkReply,
    ErrorReply,
    IntReply,
    MultiBulkReply,
    MultiRawReply,
    NullBulkReply,
    OkReply,
    Reply,
    StandardErrReply,
    StatusReply,
)


def _show(reply: Reply) -> str:
    return repr(reply.to_bytes())


def assert_int_reply(actual: Reply, expected: int) -> IntReply:
    """Check that the reply is the expected integer."""
    if not isinstance(actual, IntReply):
        raise AssertionError(f"expected int reply, actually {_show(actual)}")
    if actual.code != expected:
        raise AssertionError(f"expected {expected}, actually {actual.code}")
    return actual


def assert_int_reply_greater_than(actual: Reply, expected: int) -> IntReply:
    """Check that the reply is an integer not below expected."""
    if not isinstance(actual, IntReply):
        raise AssertionError(f"expected int reply, actually {_show(actual)}")
    if actual.code < expected:
        raise AssertionError(f"expected at least {expected}, actually {actual.code}")
    return actual


def assert_bulk_reply(actual: Reply, expected: str) -> BulkReply:
    """Check that the reply is the expected bulk string."""
    if not isinstance(actual, BulkReply):
        raise AssertionError(f"expected bulk reply, actually {_show(actual)}")
    if actual.arg is None or bytes(actual.arg) != expected.encode():
        raise AssertionError(f"expected {expected!r}, actually {_show(actual)}")
    return actual


def assert_status_reply(actual: Reply, expected: str) -> Reply:
    """Check that the reply is the expected status, in any reply class."""
    if not isinstance(actual, StatusReply):
        if actual.to_bytes() == StatusReply(expected).to_bytes():
            return actual
        raise AssertionError(f"expected status reply, actually {_show(actual)}")
    if actual.status != expected:
        raise AssertionError(f"expected {expected!r}, actually {_show(actual)}")
    return actual


def assert_err_reply(actual: Reply, expected: str) -> Reply:
    """Check that the reply is the expected error."""
    if not isinstance(actual, ErrorReply):
        if actual.to_bytes() == StandardErrReply(expected).to_bytes():
            return actual
        raise AssertionError(f"expected error reply, actually {_show(actual)}")
    if str(actual) != expected:
        raise AssertionError(f"expected {expected!r}, actually {_show(actual)}")
    return actual


def _non_empty(result: Optional[Reply]) -> bytes:
    if result is None:
        raise AssertionError("result is None")
    data = result.to_bytes()
    if not data:
        raise AssertionError("result is empty")
    return data


def assert_not_error(result: Optional[Reply]) -> Reply:
    """Check that the reply exists and is not an error."""
    if _non_empty(result).startswith(b"-"):
        raise AssertionError(f"result is an error reply: {_show(result)}")
    return result


def assert_null_bulk(result: Optional[Reply]) -> Reply:
    """Check that the reply is a null bulk string."""
    if _non_empty(result) != NullBulkReply().to_bytes():
        raise AssertionError(f"result is not a null bulk reply: {_show(result)}")
    return result


def assert_multi_bulk_reply(actual: Reply, expected: Sequence[str]) -> MultiBulkReply:
    """Check that the reply is an array holding exactly the expected strings."""
    if not isinstance(actual, MultiBulkReply):
        raise AssertionError(f"expected multi bulk reply, actually {_show(actual)}")
    if len(actual.args) != len(expected):
        raise AssertionError(
            f"expected {len(expected)} elements, actually {len(actual.args)}"
        )
    got = [(arg or b"").decode("utf-8", errors="replace") for arg in actual.args]
    if got != list(expected):
        raise AssertionError(f"expected {list(expected)!r}, actually {got!r}")
    return actual


def assert_multi_raw_reply(actual: Reply, expected: Sequence[str]) -> MultiRawReply:
    """Check that each nested reply encodes to the expected text."""
    if not isinstance(actual, MultiRawReply):
        raise AssertionError(f"expected raw reply, actually {_show(actual)}")
    if len(actual.replies) != len(expected):
        raise AssertionError(
            f"expected {len(expected)} elements, actually {len(actual.replies)}"
        )
    got = [
        reply.to_bytes().decode("utf-8", errors="replace") for reply in actual.replies
    ]
    if got != list(expected):
        raise AssertionError(f"expected {list(expected)!r}, actually {got!r}")
    return actual


def assert_ok_reply(result: Optional[Reply]) -> Reply:
    """Check that the reply is ``+OK``."""
    if _non_empty(result) != OkReply().to_bytes():
        raise AssertionError(f"result is not an ok reply: {_show(result)}")
    return result


def assert_multi_bulk_reply_size(actual: Reply, expected: int) -> Reply:
    """Check that the reply is an array of the expected length."""
    if not isinstance(actual, MultiBulkReply):
        if expected == 0 and actual.to_bytes() == EmptyMultiBulkReply().to_bytes():
            return actual
        raise AssertionError(f"expected multi bulk reply, actually {_show(actual)}")
    if len(actual.args) != expected:
        raise AssertionError(
            f"expected {expected} elements, actually {len(actual.args)}"
        )
    return actual
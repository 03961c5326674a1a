import pytest

from godis.protocol import (
    ArgNumErrReply,
    BulkReply,
    EmptyMultiBulkReply,
    ErrorReply,
    IntReply,
    MultiBulkReply,
    MultiRawReply,
    NoReply,
    NullBulkReply,
    OkReply,
    PongReply,
    ProtocolErrReply,
    QueuedReply,
    StandardErrReply,
    StatusReply,
    SyntaxErrReply,
    UnknownErrReply,
    WrongTypeErrReply,
    is_error_reply,
    is_ok_reply,
)


def test_constant_replies_wire_bytes():
    assert PongReply().to_bytes() == b"+PONG\r\n"
    assert OkReply().to_bytes() == b"+OK\r\n"
    assert NullBulkReply().to_bytes() == b"$-1\r\n"
    assert EmptyMultiBulkReply().to_bytes() == b"*0\r\n"
    assert NoReply().to_bytes() == b""
    assert QueuedReply().to_bytes() == b"+QUEUED\r\n"


def test_status_replies_match_constants():
    assert StatusReply("PONG").to_bytes() == PongReply().to_bytes()
    assert StatusReply("OK").to_bytes() == OkReply().to_bytes()
    assert StatusReply("QUEUED").to_bytes() == QueuedReply().to_bytes()


def test_bulk_reply_is_binary_safe():
    assert BulkReply(b"a\r\nb").to_bytes() == b"$4\r\na\r\nb\r\n"


def test_bulk_reply_none_is_null_bulk():
    assert BulkReply(None).to_bytes() == NullBulkReply().to_bytes()


def test_int_reply_negative():
    assert IntReply(-7).to_bytes() == b":-7\r\n"


def test_multi_bulk_with_null_element():
    reply = MultiBulkReply([b"set", None])
    assert reply.to_bytes() == b"*2\r\n$3\r\nset\r\n$-1\r\n"


def test_empty_multi_bulk_equivalent():
    assert MultiBulkReply([]).to_bytes() == EmptyMultiBulkReply().to_bytes()


def test_multi_raw_reply_concatenates_children():
    children = [IntReply(1), OkReply(), BulkReply(b"x")]
    data = MultiRawReply(children).to_bytes()
    body = b"".join(child.to_bytes() for child in children)
    assert data.endswith(body)
    assert data[: len(data) - len(body)] == b"*3\r\n"


def test_error_messages_and_bytes_agree():
    for err in (UnknownErrReply(), SyntaxErrReply(), WrongTypeErrReply(), ArgNumErrReply("get")):
        assert err.to_bytes() == b"-" + str(err).encode() + b"\r\n"
        assert is_error_reply(err)


def test_arg_num_error_names_command():
    err = ArgNumErrReply("publish")
    assert "'publish'" in str(err)
    assert err.cmd == "publish"


def test_standard_error_matches_syntax_error():
    assert StandardErrReply("Err syntax error").to_bytes() == SyntaxErrReply().to_bytes()
    assert StandardErrReply("boom").status == "boom"


def test_protocol_error_bytes():
    err = ProtocolErrReply("x")
    assert err.to_bytes().startswith(b"-ERR Protocol error: ")
    assert b"'x'" in err.to_bytes()
    assert "'x'" in str(err)


def test_error_reply_can_be_raised():
    err = StandardErrReply("client closed")
    assert str(err) == "client closed"
    assert err.to_bytes() == b"-client closed\r\n"
    with pytest.raises(ErrorReply, match="^client closed$"):
        raise err


def test_is_ok_reply():
    assert is_ok_reply(OkReply())
    assert is_ok_reply(StatusReply("OK"))
    assert not is_ok_reply(StatusReply("PONG"))


def test_is_error_reply_false_for_non_errors():
    assert not is_error_reply(IntReply(1))
    assert not is_error_reply(NoReply())
    assert not is_error_reply(BulkReply(b"-x"))
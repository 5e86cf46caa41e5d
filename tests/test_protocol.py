import io
import json
from dataclasses import dataclass

import pytest

from simple_mcp.protocol import (
    MessageFramer,
    decode_message,
    encode_message,
    make_error,
    make_request,
    make_result,
    parse_request,
)
from simple_mcp.shared.errors import FramingError, InternalError, InvalidParams, InvalidRequest, UnexpectedEof
from simple_mcp.transport import StreamTransport, Transport


class ChunkedTransport(Transport):
    """Hands out pre-split chunks, then end of stream."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.written = []
        self._closed = False

    def read_chunk(self, size=65536):
        return self._chunks.pop(0) if self._chunks else b""

    def write_chunk(self, data):
        self.written.append(data)

    def close(self):
        self._closed = True

    @property
    def closed(self):
        return self._closed


def _messages(chunks, **kwargs):
    return list(MessageFramer(ChunkedTransport(chunks), **kwargs).messages())


def test_reassembles_messages_split_across_chunks():
    data = encode_message(make_request("ping", request_id=1)) + encode_message(make_request("ping", request_id=2))
    chunks = [data[i : i + 3] for i in range(0, len(data), 3)]
    assert [m["id"] for m in _messages(chunks)] == [1, 2]


def test_several_messages_in_one_chunk_and_blank_lines_skipped():
    chunk = b'{"jsonrpc":"2.0","id":1,"method":"a"}\n\n  \r\n{"jsonrpc":"2.0","id":2,"method":"b"}\r\n'
    assert [m["method"] for m in _messages([chunk])] == ["a", "b"]


def test_clean_eof_ends_sequence():
    assert _messages([]) == []
    assert _messages([b"\n", b"   "]) == []


def test_invalid_json_line_raises_framing_error():
    with pytest.raises(FramingError) as exc:
        _messages([b'{"jsonrpc": "2.0", "id": 1\n'])
    assert not isinstance(exc.value, UnexpectedEof)


def test_invalid_utf8_raises_framing_error():
    with pytest.raises(FramingError):
        _messages([b"\xff\xfe\n"])


def test_truncated_stream_raises_unexpected_eof():
    framer = MessageFramer(ChunkedTransport([b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n{"jsonrpc":"2.0","id":2,']))
    messages = framer.messages()
    assert next(messages)["id"] == 1
    with pytest.raises(UnexpectedEof):
        next(messages)


def test_oversized_message_rejected():
    with pytest.raises(FramingError):
        _messages([b'{"padding": "' + b"x" * 64], max_message_bytes=32)


def test_oversized_terminated_line_rejected():
    line = b'{"padding": "' + b"x" * 64 + b'"}\n'
    with pytest.raises(FramingError) as exc:
        _messages([line], max_message_bytes=32)
    assert not isinstance(exc.value, UnexpectedEof)
    # a line at the limit still parses
    assert _messages([b'{"a": 1}\n'], max_message_bytes=8) == [{"a": 1}]


def test_write_emits_one_delimited_unit():
    transport = ChunkedTransport([])
    framer = MessageFramer(transport)
    framer.write(make_result(7, {"text": "line one\nline two"}))
    assert len(transport.written) == 1
    unit = transport.written[0]
    assert unit.endswith(b"\n")
    assert unit.count(b"\n") == 1
    assert json.loads(unit)["result"]["text"] == "line one\nline two"


def test_encode_decode_roundtrip_preserves_values():
    request = make_request("tools/call", {"name": "echo", "arguments": {"text": "héllo"}}, request_id="abc-1")
    response = make_error(3.5, -32001, "Unknown tool: missing", data={"kind": "NotFound"})
    for message in (request, response, make_result(0, None)):
        assert decode_message(encode_message(message).rstrip(b"\n")) == message
    assert type(decode_message(encode_message(make_result(1, {}))[:-1])["id"]) is int


def test_encode_dataclass_payload():
    @dataclass
    class Point:
        x: int
        y: int

    assert json.loads(encode_message(make_result(1, Point(1, 2))))["result"] == {"x": 1, "y": 2}


def test_encode_unserializable_raises_internal_error():
    with pytest.raises(InternalError):
        encode_message(make_result(1, object()))


def test_parse_request_validates_envelope():
    request = parse_request({"jsonrpc": "2.0", "id": 4, "method": "tools/list"})
    assert request.id == 4
    assert request.params == {}
    assert not request.is_notification
    assert parse_request({"jsonrpc": "2.0", "method": "notifications/initialized"}).is_notification
    # the jsonrpc member may be omitted
    assert parse_request({"id": 1, "method": "ping"}).id == 1

    with pytest.raises(InvalidRequest):
        parse_request(["not", "an", "object"])
    with pytest.raises(InvalidRequest):
        parse_request({"jsonrpc": "1.0", "id": 1, "method": "ping"})
    with pytest.raises(InvalidRequest):
        parse_request({"jsonrpc": "2.0", "id": True, "method": "ping"})
    with pytest.raises(InvalidRequest):
        parse_request({"jsonrpc": "2.0", "id": 1, "method": 5})
    with pytest.raises(InvalidParams):
        parse_request({"jsonrpc": "2.0", "id": 1, "method": "ping", "params": [1, 2]})


def test_stream_transport_reads_and_writes_bytes():
    writer = io.BytesIO()
    transport = StreamTransport(io.BytesIO(b"abc"), writer)
    assert transport.read_chunk(2) == b"ab"
    transport.write_chunk(b"xyz")
    transport.close()
    assert transport.closed
    assert transport.read_chunk() == b""
    assert writer.getvalue() == b"xyz"


def test_transport_requires_full_interface():
    class ReadOnly(Transport):
        def read_chunk(self, size=65536):
            return b""

    with pytest.raises(TypeError):
        ReadOnly()
    with pytest.raises(TypeError):
        Transport()

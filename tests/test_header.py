from __future__ import annotations

import io

import pytest

from sendfile.errors import ProtocolError
from sendfile.header import (
    RequestHeader,
    ResponseHeader,
    decode_request,
    decode_response,
    encode_request,
    encode_response,
)


def test_request_wire_format():
    assert encode_request("a.txt", 40) == b"FILE a.txt\nFROM 40\n"


def test_response_wire_format():
    assert encode_response("a.txt", 40, 60) == b"FILE a.txt\nFROM 40\nSIZE 60\n"


@pytest.mark.parametrize("name,offset", [("a.txt", 0), ("data.bin", 1 << 40)])
def test_roundtrip_request(name, offset):
    h = decode_request(io.BytesIO(encode_request(name, offset)))
    assert h == RequestHeader(filename=name, offset=offset)


def test_roundtrip_response():
    h = decode_response(io.BytesIO(encode_response("movie.mkv", 7, 1234)))
    assert h == ResponseHeader(filename="movie.mkv", offset=7, size=1234)


def test_decode_leaves_payload_in_stream():
    stream = io.BytesIO(encode_response("a.txt", 0, 5) + b"hello")
    decode_response(stream)
    assert stream.read() == b"hello"


def test_negative_offset_parses():
    assert decode_request(io.BytesIO(b"FILE x\nFROM -3\n")).offset == -3


@pytest.mark.parametrize(
    "raw",
    [
        b"GET a.txt\nFROM 0\n",
        b"FILE a.txt\nFROM zero\n",
        b"FILE a.txt\nFROM +1\n",
        b"FILE a.txt\nSIZE 1\n",
        b"FILE a.txt\nFROM 1",
        b"FILE a b\nFROM 1\n",
        b"FILE \nFROM 1\n",
        b"FILE dir/a.txt\nFROM 1\n",
        b"",
    ],
)
def test_bad_request(raw):
    with pytest.raises(ProtocolError):
        decode_request(io.BytesIO(raw))


def test_response_missing_size():
    with pytest.raises(ProtocolError):
        decode_response(io.BytesIO(b"FILE a.txt\nFROM 0\n"))


def test_overlong_line():
    with pytest.raises(ProtocolError):
        decode_request(io.BytesIO(b"FILE " + b"x" * 10_000 + b"\n"))


def test_non_ascii_name_is_utf8():
    raw = encode_response("résumé.txt", 0, 3)
    assert raw == "FILE résumé.txt\nFROM 0\nSIZE 3\n".encode("utf-8")
    assert decode_response(io.BytesIO(raw)).filename == "résumé.txt"


def test_invalid_utf8_name():
    with pytest.raises(ProtocolError):
        decode_request(io.BytesIO(b"FILE \xff\xfe\nFROM 0\n"))


def test_encode_rejects_undecodable_os_name():
    # what os.fsdecode makes of the byte 0xe9 on a utf-8 system
    with pytest.raises(ProtocolError):
        encode_request("caf\udce9.txt", 0)


@pytest.mark.parametrize("name", ["", "two words", "a/b", "a\\b"])
def test_encode_rejects_bad_name(name):
    with pytest.raises(ProtocolError):
        encode_request(name, 0)


def test_protocol_error_is_value_error():
    with pytest.raises(ValueError):
        decode_request(io.BytesIO(b"nope\n"))

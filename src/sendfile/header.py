from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from .constants import FILE_TOKEN, FROM_TOKEN, MAX_LINE_LENGTH, SIZE_TOKEN
from .errors import ProtocolError

_INT_RE = re.compile(rb"-?[0-9]+")
_BAD_NAME_RE = re.compile(r"[\s/\\]")


class Reader(Protocol):
    def read(self, n: int, /) -> bytes: ...


def check_filename(filename: str) -> str:
    if not filename or _BAD_NAME_RE.search(filename):
        raise ProtocolError(f"invalid file name token: {filename!r}")
    return filename


def encode_filename(filename: str) -> bytes:
    check_filename(filename)
    try:
        return filename.encode("utf-8")
    except UnicodeEncodeError as e:
        # undecodable bytes from the OS come back as lone surrogates
        raise ProtocolError(f"file name is not valid unicode: {filename!r}") from e


def read_line(stream: Reader) -> bytes:
    # one byte at a time so nothing past the header leaves the stream
    buf = bytearray()
    while True:
        ch = stream.read(1)
        if not ch:
            raise ProtocolError("stream closed while reading header")
        if ch == b"\n":
            return bytes(buf)
        buf += ch
        if len(buf) >= MAX_LINE_LENGTH:
            raise ProtocolError(f"header line longer than {MAX_LINE_LENGTH} bytes")


def _field(stream: Reader, token: bytes) -> bytes:
    line = read_line(stream)
    if not line.startswith(token):
        raise ProtocolError(f"expected {token.decode()!r}, got {line[:32]!r}")
    return line[len(token) :]


def _read_name(stream: Reader) -> str:
    raw = _field(stream, FILE_TOKEN)
    try:
        name = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"file name is not utf-8: {raw[:32]!r}") from e
    return check_filename(name)


def _read_int(stream: Reader, token: bytes) -> int:
    raw = _field(stream, token)
    if not _INT_RE.fullmatch(raw):
        raise ProtocolError(f"bad integer after {token.decode().strip()}: {raw[:32]!r}")
    return int(raw)


@dataclass(frozen=True, slots=True)
class RequestHeader:
    filename: str
    offset: int

    def to_bytes(self) -> bytes:
        return b"".join(
            (
                FILE_TOKEN, encode_filename(self.filename), b"\n",
                FROM_TOKEN, b"%d\n" % self.offset,
            )
        )

    @staticmethod
    def read_from(stream: Reader) -> "RequestHeader":
        filename = _read_name(stream)
        offset = _read_int(stream, FROM_TOKEN)
        return RequestHeader(filename=filename, offset=offset)


@dataclass(frozen=True, slots=True)
class ResponseHeader:
    filename: str
    offset: int
    size: int

    def to_bytes(self) -> bytes:
        return b"".join(
            (
                FILE_TOKEN, encode_filename(self.filename), b"\n",
                FROM_TOKEN, b"%d\n" % self.offset,
                SIZE_TOKEN, b"%d\n" % self.size,
            )
        )

    @staticmethod
    def read_from(stream: Reader) -> "ResponseHeader":
        filename = _read_name(stream)
        offset = _read_int(stream, FROM_TOKEN)
        size = _read_int(stream, SIZE_TOKEN)
        return ResponseHeader(filename=filename, offset=offset, size=size)


def encode_request(filename: str, offset: int) -> bytes:
    return RequestHeader(filename, offset).to_bytes()


def encode_response(filename: str, offset: int, size: int) -> bytes:
    return ResponseHeader(filename, offset, size).to_bytes()


def decode_request(stream: Reader) -> RequestHeader:
    return RequestHeader.read_from(stream)


def decode_response(stream: Reader) -> ResponseHeader:
    return ResponseHeader.read_from(stream)

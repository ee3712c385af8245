from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import BinaryIO

from .constants import DEFAULT_CHUNK_SIZE
from .errors import MismatchError, ProtocolError
from .header import RequestHeader, ResponseHeader
from .net import TcpConnection


@dataclass(slots=True)
class Metrics:
    filename: str = ""
    offset: int = 0
    size: int = 0
    bytes_transferred: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_transferred * 8 / 1_000_000) / self.duration_s


def local_size(f: BinaryIO) -> int:
    if not f.seekable():
        return 0
    f.seek(0, os.SEEK_END)
    return f.tell()


@dataclass(slots=True)
class Receiver:
    conn: TcpConnection
    out: BinaryIO
    name: str | None = None
    offset: int | None = None
    strict: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def run(self) -> Metrics:
        filename = self.name or os.path.basename(self.out.name)
        offset = local_size(self.out) if self.offset is None else self.offset
        metrics = Metrics(filename=filename, offset=offset)

        self.conn.write(RequestHeader(filename, offset).to_bytes())
        logging.info("request sent; file=%s from=%d", filename, offset)

        resp = ResponseHeader.read_from(self.conn)
        logging.info("response; file=%s from=%d size=%d", resp.filename, resp.offset, resp.size)

        # nothing may reach the file before these checks
        if resp.filename != filename and offset != 0:
            raise MismatchError(filename, resp.filename)
        if resp.offset != offset:
            raise ProtocolError(f"sender answered from={resp.offset}, requested from={offset}")
        metrics.size = resp.size

        if self.strict:
            metrics.bytes_transferred = self._copy_exact(resp.size)
        else:
            metrics.bytes_transferred = self._copy_until_eof()
            if metrics.bytes_transferred != resp.size:
                logging.warning(
                    "size mismatch; announced=%d received=%d", resp.size, metrics.bytes_transferred
                )

        self.out.flush()
        metrics.end_ts = time.monotonic()
        logging.info(
            "receive done; file=%s bytes=%d mbps=%.2f",
            filename,
            metrics.bytes_transferred,
            metrics.throughput_mbps,
        )
        return metrics

    def _copy_until_eof(self) -> int:
        received = 0
        while True:
            chunk = self.conn.read(self.chunk_size)
            if not chunk:
                return received
            self.out.write(chunk)
            received += len(chunk)

    def _copy_exact(self, size: int) -> int:
        received = 0
        while received < size:
            chunk = self.conn.read(min(self.chunk_size, size - received))
            if not chunk:
                raise ProtocolError(f"stream ended after {received} of {size} bytes")
            self.out.write(chunk)
            received += len(chunk)
        return received

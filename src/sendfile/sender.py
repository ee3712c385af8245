from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import BinaryIO

from .constants import DEFAULT_CHUNK_SIZE
from .header import RequestHeader, ResponseHeader
from .net import TcpConnection
from .receiver import Metrics


@dataclass(slots=True)
class Sender:
    conn: TcpConnection
    f: BinaryIO
    name: str | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def run(self) -> Metrics:
        filename = self.name or os.path.basename(self.f.name)

        req = RequestHeader.read_from(self.conn)
        logging.info("request; file=%s from=%d", req.filename, req.offset)
        if req.filename != filename:
            logging.debug("requested name differs; local=%s requested=%s", filename, req.filename)

        length = self.f.seek(0, os.SEEK_END)
        if not 0 <= req.offset <= length:
            raise OSError(f"can not seek to position {req.offset}: file has {length} bytes")
        self.f.seek(req.offset, os.SEEK_SET)

        remain = length - req.offset
        metrics = Metrics(filename=filename, offset=req.offset, size=remain)
        self.conn.write(ResponseHeader(filename, req.offset, remain).to_bytes())
        logging.info("send start; file=%s from=%d size=%d", filename, req.offset, remain)

        while remain > 0:
            n = self.conn.send_from(self.f, min(self.chunk_size, remain))
            if n == 0:
                raise OSError(f"{filename} ended with {remain} bytes still to send")
            remain -= n
            metrics.bytes_transferred += n

        metrics.end_ts = time.monotonic()
        logging.info(
            "send done; file=%s bytes=%d mbps=%.2f",
            filename,
            metrics.bytes_transferred,
            metrics.throughput_mbps,
        )
        return metrics

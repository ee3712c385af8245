from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from typing import BinaryIO, ContextManager

from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_LISTEN_HOST, DEFAULT_TIMEOUT_MS, STDOUT_NAME
from .errors import TransferError
from .net import TcpConnection, TcpListener, parse_address, parse_port
from .receiver import Receiver
from .sender import Sender

USAGE = """\
sendfile <file> <host:port>   send file to the receiver listening at host:port
sendfile -r <port> [file]     receive a file, appending to [file] or writing to stdout
sendfile -h, --help           this help"""


def cmd_recv(args: argparse.Namespace) -> int:
    out_cm: ContextManager[BinaryIO]
    if args.path:
        out_cm = open(args.path, "ab")
    else:
        out_cm = contextlib.nullcontext(sys.stdout.buffer)

    with out_cm as out, TcpListener.bind(args.listen_host, args.receive, timeout_ms=args.timeout_ms) as listener:
        with listener.accept_once() as conn:
            if args.path:
                receiver = Receiver(conn, out, strict=args.strict, chunk_size=args.chunk_size)
            else:
                receiver = Receiver(
                    conn,
                    out,
                    name=STDOUT_NAME,
                    offset=0,
                    strict=args.strict,
                    chunk_size=args.chunk_size,
                )
            receiver.run()
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    host, port = args.address
    with open(args.path, "rb") as f:
        with TcpConnection.connect(host, port, timeout_ms=args.timeout_ms) as conn:
            Sender(conn, f, chunk_size=args.chunk_size).run()
    return 0


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {n}")
    return n


def _port(value: str) -> int:
    try:
        return parse_port(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sendfile",
        usage=USAGE,
        description="Resumable single-file transfer over TCP.",
    )
    p.add_argument("-r", "--receive", metavar="PORT", type=_port, help="receive mode: listen on PORT")
    p.add_argument("paths", nargs="*", metavar="ARG", help="<file> <host:port> to send, [file] to receive")
    p.add_argument("--listen-host", default=DEFAULT_LISTEN_HOST)
    p.add_argument("--chunk-size", type=_positive_int, default=DEFAULT_CHUNK_SIZE)
    p.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS, help="socket timeout, 0 blocks forever")
    p.add_argument("--strict", action="store_true", help="receiver stops at the announced SIZE and fails on a short stream")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return p


def parse_args(p: argparse.ArgumentParser, argv: list[str]) -> argparse.Namespace:
    args = p.parse_args(argv)
    if args.receive is not None:
        if len(args.paths) > 1:
            p.error("receive mode takes at most one file")
        args.path = args.paths[0] if args.paths else None
        args.func = cmd_recv
    else:
        if len(args.paths) != 2:
            p.error("send mode takes <file> <host:port>")
        args.path = args.paths[0]
        try:
            args.address = parse_address(args.paths[1])
        except ValueError as e:
            p.error(str(e))
        args.func = cmd_send
    return args


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    p = build_parser()
    if not argv:
        p.print_help()
        return 0

    args = parse_args(p, argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    try:
        return int(args.func(args))
    except (TransferError, OSError) as e:
        logging.error("transfer failed: %s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

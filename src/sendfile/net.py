from __future__ import annotations

import logging
import socket
from typing import BinaryIO, Tuple

from .constants import DEFAULT_TIMEOUT_MS
from .errors import NetworkError


def _apply_timeout(sock: socket.socket, timeout_ms: int) -> None:
    if timeout_ms > 0:
        sock.settimeout(timeout_ms / 1000.0)
    else:
        sock.settimeout(None)


def parse_address(addr: str) -> Tuple[str, int]:
    host, sep, port_s = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address must be host:port, got {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or "localhost", parse_port(port_s)


def parse_port(value: str) -> int:
    try:
        port = int(value, 10)
    except ValueError:
        raise ValueError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


class TcpConnection:
    def __init__(self, sock: socket.socket, peer: Tuple[str, int]):
        self.sock = sock
        self.peer = peer

    @classmethod
    def connect(cls, host: str, port: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> "TcpConnection":
        try:
            sock = socket.create_connection((host, port), timeout=timeout_ms / 1000.0 if timeout_ms > 0 else None)
        except OSError as e:
            raise NetworkError(f"can not connect to {host}:{port}: {e}") from e
        _apply_timeout(sock, timeout_ms)
        logging.info("connected; peer=%s:%d", host, port)
        return cls(sock, (host, port))

    def read(self, n: int) -> bytes:
        try:
            return self.sock.recv(n)
        except OSError as e:
            raise NetworkError(f"recv from {self.peer} failed: {e}") from e

    def write(self, data: bytes) -> None:
        try:
            self.sock.sendall(data)
        except OSError as e:
            raise NetworkError(f"send to {self.peer} failed: {e}") from e

    def send_from(self, f: BinaryIO, count: int) -> int:
        """Send up to ``count`` bytes from the current position of ``f``.

        Returns the number of bytes actually sent, which may be short;
        0 means ``f`` hit end of file.
        """
        try:
            return self.sock.sendfile(f, count=count)
        except OSError as e:
            raise NetworkError(f"sendfile to {self.peer} failed: {e}") from e

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "TcpConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class TcpListener:
    """Listens once: ``accept_once`` hands out one connection and stops listening."""

    def __init__(self, sock: socket.socket, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.sock = sock
        self.timeout_ms = timeout_ms

    @classmethod
    def bind(cls, host: str, port: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> "TcpListener":
        try:
            if not host and socket.has_dualstack_ipv6():
                # all interfaces, IPv4 and IPv6 alike
                sock = socket.create_server(
                    ("", port), family=socket.AF_INET6, backlog=1, dualstack_ipv6=True
                )
            else:
                family = socket.AF_INET6 if ":" in host else socket.AF_INET
                sock = socket.create_server((host, port), family=family, backlog=1)
        except OSError as e:
            raise NetworkError(f"can not listen on {host}:{port}: {e}") from e
        _apply_timeout(sock, timeout_ms)
        return cls(sock, timeout_ms)

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self.sock.getsockname()[:2]
        return host, port

    def accept_once(self) -> TcpConnection:
        logging.info("listening; addr=%s:%d", *self.address)
        try:
            conn, peer = self.sock.accept()
        except OSError as e:
            raise NetworkError(f"can not accept connection: {e}") from e
        finally:
            self.close()
        _apply_timeout(conn, self.timeout_ms)
        logging.info("accepted; peer=%s:%d", *peer[:2])
        return TcpConnection(conn, peer[:2])

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "TcpListener":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

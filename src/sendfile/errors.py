from __future__ import annotations


class TransferError(Exception):
    pass


class ProtocolError(TransferError, ValueError):
    pass


class MismatchError(TransferError):
    def __init__(self, expected: str, got: str):
        super().__init__(f"file name mismatch: want {expected!r} but got {got!r}")
        self.expected = expected
        self.got = got


class NetworkError(TransferError):
    pass

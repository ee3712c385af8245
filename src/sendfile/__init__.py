"""sendfile: resumable single-file transfer over TCP

One process, one connection, one file:
- the receiver listens once, asks for the file from the size it already has
- the sender dials in, seeks to that offset and streams the rest

Headers are a few lines of ASCII followed by the raw file bytes.
"""

from .errors import MismatchError, NetworkError, ProtocolError, TransferError
from .header import RequestHeader, ResponseHeader

__all__ = [
    "MismatchError",
    "NetworkError",
    "ProtocolError",
    "RequestHeader",
    "ResponseHeader",
    "TransferError",
]

from __future__ import annotations

FILE_TOKEN = b"FILE "
FROM_TOKEN = b"FROM "
SIZE_TOKEN = b"SIZE "

MAX_LINE_LENGTH = 4096  # header line, newline included

DEFAULT_CHUNK_SIZE = 1024 * 1024
DEFAULT_TIMEOUT_MS = 0  # block forever
DEFAULT_LISTEN_HOST = ""
STDOUT_NAME = "stdout"

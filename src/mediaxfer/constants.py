from __future__ import annotations

START_MARKER = 0x00
LENGTH_FORMAT = "!I"  # u32 big-endian: file name length, payload length
DIGEST_LEN = 32
MAX_LENGTH = 2**32 - 1
MAX_FILE_NAME_LEN = 4096

STATUS_FAILURE = 0
STATUS_SUCCESS = 1

DEFAULT_HOST = "localhost"
DEFAULT_TCP_PORT = 8080
DEFAULT_UDP_PORT = 8000
DEFAULT_TRANSPORT = "tcp"
DEFAULT_CHUNK_SIZE = 1024
DEFAULT_TIMEOUT_MS = 0  # block forever
DEFAULT_CONFIG_PATH = "config.json"

MAX_DATAGRAM = 65535

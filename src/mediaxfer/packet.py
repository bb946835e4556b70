from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol

from .constants import (
    DIGEST_LEN,
    LENGTH_FORMAT,
    MAX_FILE_NAME_LEN,
    MAX_LENGTH,
    START_MARKER,
    STATUS_FAILURE,
    STATUS_SUCCESS,
)
from .errors import DecodeError
from .integrity import digest as compute_digest

LENGTH_SIZE = struct.calcsize(LENGTH_FORMAT)


class Status(enum.IntEnum):
    FAILURE = STATUS_FAILURE
    SUCCESS = STATUS_SUCCESS

    def as_byte(self) -> bytes:
        return bytes([self])


class ByteSink(Protocol):
    def send(self, data: bytes) -> None: ...


class ByteSource(Protocol):
    def read_exact(self, n: int) -> bytes: ...


PayloadWriter = Callable[[ByteSink, bytes], None]
PayloadReader = Callable[[ByteSource, int], bytes]


class BufferSource:
    """read_exact over an in-memory buffer."""

    def __init__(self, raw: bytes):
        self._buf = io.BytesIO(raw)

    def read_exact(self, n: int) -> bytes:
        data = self._buf.read(n)
        if len(data) != n:
            raise DecodeError(f"short read: wanted {n} bytes, got {len(data)}")
        return data

    def remaining(self) -> int:
        return len(self._buf.getbuffer()) - self._buf.tell()


def _pack_length(n: int, what: str) -> bytes:
    if n > MAX_LENGTH:
        raise ValueError(f"{what} too large for u32 length field: {n}")
    return struct.pack(LENGTH_FORMAT, n)


def _read_length(source: ByteSource) -> int:
    (n,) = struct.unpack(LENGTH_FORMAT, source.read_exact(LENGTH_SIZE))
    return n


@dataclass(frozen=True, slots=True)
class Frame:
    file_name: str
    payload: bytes
    digest: bytes

    @staticmethod
    def build(file_name: str, payload: bytes) -> "Frame":
        return Frame(file_name=file_name, payload=payload, digest=compute_digest(payload))

    def fields(self) -> Iterator[bytes]:
        """Yield the wire fields in order: marker, name length, name, payload length, payload, digest."""
        name = self.file_name.encode("utf-8")
        yield bytes([START_MARKER])
        yield _pack_length(len(name), "file name")
        yield name
        yield _pack_length(len(self.payload), "payload")
        yield self.payload
        yield self.digest

    def to_bytes(self) -> bytes:
        return b"".join(self.fields())

    def encode(self, sink: ByteSink, write_payload: Optional[PayloadWriter] = None) -> None:
        """Send each field to ``sink``.

        ``write_payload`` replaces the single payload send, which is how the
        datagram channel splits the payload into chunks.
        """
        if len(self.digest) != DIGEST_LEN:
            raise ValueError(f"digest must be {DIGEST_LEN} bytes, got {len(self.digest)}")
        marker, name_len, name, payload_len, payload, dig = self.fields()
        for field in (marker, name_len, name, payload_len):
            sink.send(field)
        if write_payload is None:
            sink.send(payload)
        else:
            write_payload(sink, payload)
        sink.send(dig)

    @staticmethod
    def decode(source: ByteSource, read_payload: Optional[PayloadReader] = None) -> "Frame":
        marker = source.read_exact(1)
        if marker[0] != START_MARKER:
            raise DecodeError(f"bad start marker: 0x{marker[0]:02x}")

        name_len = _read_length(source)
        if name_len > MAX_FILE_NAME_LEN:
            raise DecodeError(f"file name length {name_len} exceeds {MAX_FILE_NAME_LEN}")
        try:
            file_name = source.read_exact(name_len).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("file name is not valid utf-8") from e

        payload_len = _read_length(source)
        if read_payload is None:
            payload = source.read_exact(payload_len)
        else:
            payload = read_payload(source, payload_len)

        dig = source.read_exact(DIGEST_LEN)
        return Frame(file_name=file_name, payload=payload, digest=dig)

    @staticmethod
    def from_bytes(raw: bytes) -> "Frame":
        source = BufferSource(raw)
        frame = Frame.decode(source)
        if source.remaining():
            raise DecodeError(f"{source.remaining()} trailing bytes after frame")
        return frame

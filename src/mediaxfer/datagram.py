"""Frame transfer over UDP.

Every header field travels in its own datagram, the payload is split into
fixed-size chunks and the receiver rebuilds it purely from the declared total
length. There are no sequence numbers on the wire, so a transfer is only
correct when no datagram is lost or reordered. The chunking algorithm lives
behind ``ChunkingStrategy`` so a stricter scheme can be swapped in without
touching the frame codec or the sender/receiver state machines.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Protocol, Tuple

from .constants import DEFAULT_CHUNK_SIZE, MAX_DATAGRAM
from .net import Address
from .packet import ByteSink, ByteSource, Frame


class DatagramTransport(Protocol):
    def recvfrom(self, bufsize: int = MAX_DATAGRAM) -> Tuple[bytes, Address]: ...


class ChunkingStrategy(Protocol):
    def write(self, sink: ByteSink, payload: bytes) -> None: ...

    def reassemble(self, source: ByteSource, total: int) -> bytes: ...


@dataclass(frozen=True, slots=True)
class SizeDrivenChunking:
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk size must be positive, got {self.chunk_size}")

    def split(self, payload: bytes) -> Iterator[bytes]:
        for start in range(0, len(payload), self.chunk_size):
            yield payload[start : start + self.chunk_size]

    def write(self, sink: ByteSink, payload: bytes) -> None:
        for chunk in self.split(payload):
            sink.send(chunk)

    def reassemble(self, source: ByteSource, total: int) -> bytes:
        received = bytearray()
        while len(received) < total:
            read_size = min(self.chunk_size, total - len(received))
            received.extend(source.read_exact(read_size))
        return bytes(received)


class DatagramSource:
    """read_exact over a datagram socket, bound to the first sender seen.

    Surplus bytes of a datagram are kept for the next read rather than
    truncated. Datagrams from any other address are dropped.
    """

    def __init__(self, transport: DatagramTransport, peer: Address | None = None):
        self.transport = transport
        self.peer = peer
        self.datagrams = 0
        self._pending = bytearray()

    def read_exact(self, n: int) -> bytes:
        while len(self._pending) < n:
            data, addr = self.transport.recvfrom(MAX_DATAGRAM)
            if self.peer is None:
                self.peer = addr
            elif addr != self.peer:
                logging.warning("dropping %d byte datagram from %s during transfer from %s", len(data), addr, self.peer)
                continue
            self.datagrams += 1
            self._pending.extend(data)
        out = bytes(self._pending[:n])
        del self._pending[:n]
        return out

    @property
    def leftover(self) -> int:
        return len(self._pending)


def send_frame(sink: ByteSink, frame: Frame, chunking: ChunkingStrategy | None = None) -> None:
    chunking = chunking or SizeDrivenChunking()
    frame.encode(sink, write_payload=chunking.write)
    logging.debug("udp: sent %r (%d bytes)", frame.file_name, len(frame.payload))


def receive(source: DatagramSource, chunking: ChunkingStrategy | None = None) -> Frame:
    chunking = chunking or SizeDrivenChunking()
    frame = Frame.decode(source, read_payload=chunking.reassemble)
    if source.leftover:
        logging.debug("udp: discarding %d surplus bytes from %s", source.leftover, source.peer)
    logging.debug(
        "udp: received %r (%d bytes, %d datagrams) from %s",
        frame.file_name,
        len(frame.payload),
        source.datagrams,
        source.peer,
    )
    return frame


def recv_frame(transport: DatagramTransport, chunking: ChunkingStrategy | None = None) -> Tuple[Frame, Address]:
    source = DatagramSource(transport)
    frame = receive(source, chunking)
    assert source.peer is not None
    return frame, source.peer

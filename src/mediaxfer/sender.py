from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

from . import datagram, stream
from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT_MS
from .datagram import SizeDrivenChunking
from .errors import DecodeError, TransferRejected
from .net import StreamConnection, UdpEndpoint
from .packet import ByteSink, Frame, Status
from .receiver import Metrics


def load_frame(path: str) -> Frame:
    """Read the whole file and build its frame; the file name sent is the basename."""
    with open(path, "rb") as f:
        payload = f.read()
    return Frame.build(os.path.basename(path), payload)


class MeteredSink:
    def __init__(self, sink: ByteSink, metrics: Metrics):
        self.sink = sink
        self.metrics = metrics

    def send(self, data: bytes) -> None:
        self.sink.send(data)
        self.metrics.packets_sent += 1
        self.metrics.bytes_sent += len(data)


def check_reply(reply: bytes) -> None:
    if reply != Status.SUCCESS.as_byte():
        raise TransferRejected(f"receiver could not store the file (reply={reply!r})")


@dataclass(slots=True)
class StreamSender:
    host: str
    port: int
    path: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def run(self) -> Metrics:
        frame = load_frame(self.path)
        metrics = Metrics(file_name=frame.file_name)

        conn = StreamConnection.connect(self.host, self.port, timeout_ms=self.timeout_ms)
        try:
            stream.send_frame(MeteredSink(conn, metrics), frame)
            try:
                reply = conn.read_exact(1)
            except DecodeError as e:
                raise TransferRejected("connection closed before the receiver replied") from e
        finally:
            conn.close()

        check_reply(reply)
        metrics.end_ts = time.monotonic()
        logging.info("tcp: %s stored by %s:%d (%d bytes)", frame.file_name, self.host, self.port, len(frame.payload))
        return metrics


@dataclass(slots=True)
class DatagramSender:
    host: str
    port: int
    path: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def run(self) -> Metrics:
        frame = load_frame(self.path)
        metrics = Metrics(file_name=frame.file_name)
        chunking = SizeDrivenChunking(self.chunk_size)

        udp = UdpEndpoint.connected(self.host, self.port, timeout_ms=self.timeout_ms)
        try:
            datagram.send_frame(MeteredSink(udp, metrics), frame, chunking)
            reply = udp.recv(1)
        finally:
            udp.close()

        check_reply(reply)
        metrics.end_ts = time.monotonic()
        logging.info(
            "udp: %s stored by %s:%d (%d bytes in %d datagrams)",
            frame.file_name,
            self.host,
            self.port,
            len(frame.payload),
            metrics.packets_sent,
        )
        return metrics

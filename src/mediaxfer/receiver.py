from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from . import datagram, stream
from .datagram import ChunkingStrategy, DatagramSource, SizeDrivenChunking
from .errors import TransferError
from .integrity import digest, verify
from .net import StreamConnection, StreamListener, UdpEndpoint
from .packet import Frame, Status
from .storage import MediaStore


@dataclass(slots=True)
class Metrics:
    file_name: str = ""
    packets_sent: int = 0
    bytes_sent: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_sent * 8 / 1_000_000) / self.duration_s


def process_frame(frame: Frame, store: MediaStore) -> Path:
    """Classify, verify and persist a received frame. Returns the stored path."""
    category = store.classify(frame.file_name)
    directory = store.target_dir(category)
    store.ensure_directory(directory)

    verify(digest(frame.payload), frame.digest)

    out_path = directory / frame.file_name
    store.persist(out_path, frame.payload)
    logging.info("uploaded %s at %s", out_path, datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
    return out_path


def handle_frame(frame: Frame, store: MediaStore) -> Status:
    try:
        process_frame(frame, store)
    except (TransferError, OSError, ValueError) as e:
        # ValueError: names the filesystem refuses, e.g. embedded NUL
        logging.warning("rejecting %r: %s", frame.file_name, e)
        return Status.FAILURE
    return Status.SUCCESS


@dataclass(slots=True)
class StreamReceiver:
    listener: StreamListener
    store: MediaStore

    def handle_connection(self, conn: StreamConnection) -> Status:
        try:
            try:
                frame = stream.recv_frame(conn)
            except (TransferError, OSError) as e:
                logging.warning("tcp: bad message from %s: %s", conn.peer, e)
                status = Status.FAILURE
            else:
                status = handle_frame(frame, self.store)

            try:
                conn.send(status.as_byte())
            except OSError as e:
                logging.warning("tcp: could not send status to %s: %s", conn.peer, e)
            return status
        finally:
            conn.close()

    def accept_once(self) -> threading.Thread:
        """Accept one connection and hand it to its own worker thread."""
        conn = self.listener.accept()
        worker = threading.Thread(target=self.handle_connection, args=(conn,), daemon=True)
        worker.start()
        return worker

    def serve_forever(self) -> None:
        host, port = self.listener.address
        logging.info("tcp receiver listening on %s:%d", host, port)
        while True:
            try:
                self.accept_once()
            except OSError as e:
                if self.listener.sock.fileno() == -1:
                    break
                logging.warning("tcp: accept failed: %s", e)

    def close(self) -> None:
        self.listener.close()


@dataclass(slots=True)
class DatagramReceiver:
    udp: UdpEndpoint
    store: MediaStore
    chunking: ChunkingStrategy = field(default_factory=SizeDrivenChunking)

    def serve_once(self) -> Status:
        """Receive, verify, persist and answer exactly one transfer."""
        source = DatagramSource(self.udp)
        try:
            frame = datagram.receive(source, self.chunking)
        except (TransferError, OSError) as e:
            logging.warning("udp: bad message from %s: %s", source.peer, e)
            status = Status.FAILURE
        else:
            status = handle_frame(frame, self.store)

        if source.peer is None:
            return status
        try:
            self.udp.sendto(status.as_byte(), source.peer)
        except OSError as e:
            logging.warning("udp: could not send status to %s: %s", source.peer, e)
        return status

    def serve_forever(self) -> None:
        host, port = self.udp.address
        logging.info("udp receiver listening on %s:%d", host, port)
        while self.udp.sock.fileno() != -1:
            self.serve_once()

    def close(self) -> None:
        self.udp.close()

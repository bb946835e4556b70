from __future__ import annotations

import os
import tempfile
import threading
from dataclasses import dataclass
from typing import Literal, Union

from .config import ServerConfig
from .constants import DEFAULT_CHUNK_SIZE
from .datagram import SizeDrivenChunking
from .net import StreamListener, UdpEndpoint
from .receiver import DatagramReceiver, StreamReceiver
from .sender import DatagramSender, StreamSender
from .storage import MediaStore

BENCH_FILE_NAME = "bench.txt"


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    transport: str
    bytes_transferred: int
    duration_s: float
    throughput_mbps: float
    packets_sent: int


def run_benchmark(
    *,
    transport: Literal["tcp", "udp"],
    size_bytes: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout_ms: int = 10_000,
) -> BenchmarkResult:
    payload = b"A" * size_bytes
    config = ServerConfig(chunk_size=chunk_size)

    with tempfile.TemporaryDirectory() as work:
        store = MediaStore(config, root=os.path.join(work, "store"))
        src_path = os.path.join(work, BENCH_FILE_NAME)
        with open(src_path, "wb") as f:
            f.write(payload)

        if transport == "tcp":
            listener = StreamListener.listening("127.0.0.1", 0)
            tcp_recv = StreamReceiver(listener, store)
            host, port = listener.address
            recv_thread = threading.Thread(target=lambda: tcp_recv.accept_once().join(), daemon=True)
            closer = tcp_recv.close
            sender: Union[StreamSender, DatagramSender] = StreamSender(host, port, src_path, timeout_ms=timeout_ms)
        else:
            udp = UdpEndpoint.listening("127.0.0.1", 0)
            udp_recv = DatagramReceiver(udp, store, SizeDrivenChunking(chunk_size))
            host, port = udp.address
            recv_thread = threading.Thread(target=udp_recv.serve_once, daemon=True)
            closer = udp_recv.close
            sender = DatagramSender(host, port, src_path, chunk_size=chunk_size, timeout_ms=timeout_ms)

        recv_thread.start()
        try:
            metrics = sender.run()
        finally:
            recv_thread.join(timeout=timeout_ms / 1000.0)
            closer()

        stored = store.target_dir(store.classify(BENCH_FILE_NAME)) / BENCH_FILE_NAME
        actual_size = os.path.getsize(stored)
        if actual_size != size_bytes:
            raise RuntimeError(f"stored {actual_size} bytes, expected {size_bytes}")

    duration_s = max(0.001, metrics.duration_s)
    return BenchmarkResult(
        transport=transport,
        bytes_transferred=size_bytes,
        duration_s=duration_s,
        throughput_mbps=(size_bytes * 8 / 1_000_000) / duration_s,
        packets_sent=metrics.packets_sent,
    )

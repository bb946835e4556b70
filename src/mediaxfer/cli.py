from __future__ import annotations

import argparse
import json
import logging
import threading
from dataclasses import asdict
from typing import Union

from .bench import run_benchmark
from .config import load_config
from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONFIG_PATH,
    DEFAULT_HOST,
    DEFAULT_TCP_PORT,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_TRANSPORT,
)
from .datagram import SizeDrivenChunking
from .errors import ConfigError, TransferError
from .net import StreamListener, UdpEndpoint
from .receiver import DatagramReceiver, StreamReceiver
from .sender import DatagramSender, StreamSender
from .storage import MediaStore
from .validate import is_valid_file_path, is_valid_ip, is_valid_port


def cmd_send(args: argparse.Namespace) -> int:
    if not is_valid_file_path(args.file):
        print(f"invalid file path: {args.file}")
        return 1
    if not is_valid_ip(args.ip):
        print(f"invalid IP address: {args.ip}")
        return 1
    if not is_valid_port(args.port):
        print(f"invalid port number: {args.port}")
        return 1

    port = int(args.port)
    if args.transport == "tcp":
        sender: Union[StreamSender, DatagramSender] = StreamSender(
            args.ip,
            port,
            args.file,
            timeout_ms=args.timeout_ms,
        )
    else:
        sender = DatagramSender(
            args.ip,
            port,
            args.file,
            chunk_size=args.chunk_size,
            timeout_ms=args.timeout_ms,
        )

    try:
        metrics = sender.run()
    except (TransferError, OSError, ValueError) as e:
        print(f"error sending file: {e}")
        return 1

    payload = {
        "role": "sender",
        "transport": args.transport,
        "file": metrics.file_name,
        "bytes": metrics.bytes_sent,
        "packets": metrics.packets_sent,
        "seconds": metrics.duration_s,
        "mbps": metrics.throughput_mbps,
    }
    print(json.dumps(payload, indent=2) if args.json else "file stored successfully.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except ConfigError as e:
        logging.error("reading configuration: %s", e)
        return 1

    store = MediaStore(config, root=args.root)
    try:
        listener = StreamListener.listening(config.host, config.tcp_port)
    except OSError as e:
        logging.error("starting tcp listener on %s:%d: %s", config.host, config.tcp_port, e)
        return 1
    try:
        udp = UdpEndpoint.listening(config.host, config.udp_port)
    except OSError as e:
        listener.close()
        logging.error("starting udp listener on %s:%d: %s", config.host, config.udp_port, e)
        return 1

    tcp_recv = StreamReceiver(listener, store)
    udp_recv = DatagramReceiver(udp, store, SizeDrivenChunking(config.chunk_size))
    threads = [
        threading.Thread(target=tcp_recv.serve_forever, name="tcp-receiver", daemon=True),
        threading.Thread(target=udp_recv.serve_forever, name="udp-receiver", daemon=True),
    ]
    for t in threads:
        t.start()

    try:
        for t in threads:
            t.join()
    except KeyboardInterrupt:
        logging.info("shutting down")
    finally:
        tcp_recv.close()
        udp_recv.close()
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    r = run_benchmark(
        transport=args.transport,
        size_bytes=args.size_bytes,
        chunk_size=args.chunk_size,
    )
    payload = {"role": "bench", **asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mediaxfer", description="Send a file over TCP or UDP and verify it with SHA-256.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    send = sub.add_parser("send", help="send a file to a receiver")
    send.add_argument("file")
    send.add_argument("--ip", default=DEFAULT_HOST)
    send.add_argument("-p", "--port", default=str(DEFAULT_TCP_PORT))
    send.add_argument("-t", "--transport", choices=["tcp", "udp"], default=DEFAULT_TRANSPORT)
    send.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="udp chunk size in bytes")
    send.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS, help="0 waits forever")
    send.add_argument("--json", action="store_true")
    send.set_defaults(func=cmd_send)

    serve = sub.add_parser("serve", help="receive files over tcp and udp")
    serve.add_argument("--config", default=DEFAULT_CONFIG_PATH)
    serve.add_argument("--root", default=".", help="directory the category paths are relative to")
    serve.set_defaults(func=cmd_serve)

    bench = sub.add_parser("bench", help="loopback transfer into a temporary directory")
    bench.add_argument("-t", "--transport", choices=["tcp", "udp"], default=DEFAULT_TRANSPORT)
    bench.add_argument("--size-bytes", type=int, default=1_000_000)
    bench.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    bench.add_argument("--json", action="store_true")
    bench.set_defaults(func=cmd_bench)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())

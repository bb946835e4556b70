from __future__ import annotations

import contextlib
import socket
from typing import Callable, Tuple

from .constants import MAX_DATAGRAM
from .errors import DecodeError

Address = Tuple[str, int]


def _apply_timeout(sock: socket.socket, timeout_ms: int) -> None:
    if timeout_ms > 0:
        sock.settimeout(timeout_ms / 1000.0)


def _open(host: str, port: int, socktype: int, setup: Callable[[socket.socket, tuple], None]) -> socket.socket:
    """Try each address ``host`` resolves to until ``setup`` succeeds on one."""
    err: OSError | None = None
    for family, _, proto, _, sockaddr in socket.getaddrinfo(host, port, type=socktype):
        sock = None
        try:
            sock = socket.socket(family, socktype, proto)
            setup(sock, sockaddr)
            return sock
        except OSError as e:
            err = e
            if sock is not None:
                sock.close()
    if err is None:
        err = OSError(f"no addresses for {host}:{port}")
    raise err


class StreamConnection:
    """A connected TCP socket with a read-fully primitive."""

    def __init__(self, sock: socket.socket, peer: Address | None = None):
        self.sock = sock
        self.peer = peer

    @classmethod
    def connect(cls, host: str, port: int, timeout_ms: int = 0) -> "StreamConnection":
        sock = socket.create_connection((host, port))
        _apply_timeout(sock, timeout_ms)
        return cls(sock, (host, port))

    def send(self, data: bytes) -> None:
        self.sock.sendall(data)

    def read_exact(self, n: int) -> bytes:
        buf = bytearray()
        while len(buf) < n:
            chunk = self.sock.recv(n - len(buf))
            if not chunk:
                raise DecodeError(f"connection closed after {len(buf)} of {n} bytes")
            buf.extend(chunk)
        return bytes(buf)

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "StreamConnection":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class StreamListener:
    def __init__(self, sock: socket.socket, timeout_ms: int = 0):
        self.sock = sock
        self.timeout_ms = timeout_ms

    @classmethod
    def listening(cls, host: str, port: int, timeout_ms: int = 0, backlog: int = 16) -> "StreamListener":
        def setup(sock: socket.socket, sockaddr: tuple) -> None:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(sockaddr)
            sock.listen(backlog)

        return cls(_open(host, port, socket.SOCK_STREAM, setup), timeout_ms)

    @property
    def address(self) -> Address:
        return self.sock.getsockname()[:2]

    def accept(self) -> StreamConnection:
        conn, addr = self.sock.accept()
        _apply_timeout(conn, self.timeout_ms)
        return StreamConnection(conn, addr)

    def close(self) -> None:
        # wakes a thread blocked in accept()
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
        self.sock.close()


class UdpEndpoint:
    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def listening(cls, host: str, port: int, timeout_ms: int = 0) -> "UdpEndpoint":
        sock = _open(host, port, socket.SOCK_DGRAM, socket.socket.bind)
        _apply_timeout(sock, timeout_ms)
        return cls(sock)

    @classmethod
    def connected(cls, host: str, port: int, timeout_ms: int = 0) -> "UdpEndpoint":
        """Socket bound to a single peer; send() and recv() talk to it only."""
        sock = _open(host, port, socket.SOCK_DGRAM, socket.socket.connect)
        _apply_timeout(sock, timeout_ms)
        return cls(sock)

    @property
    def address(self) -> Address:
        return self.sock.getsockname()[:2]

    def send(self, data: bytes) -> None:
        self.sock.send(data)

    def sendto(self, data: bytes, addr: Address) -> None:
        self.sock.sendto(data, addr)

    def recv(self, bufsize: int = MAX_DATAGRAM) -> bytes:
        return self.sock.recv(bufsize)

    def recvfrom(self, bufsize: int = MAX_DATAGRAM) -> Tuple[bytes, Address]:
        return self.sock.recvfrom(bufsize)

    def close(self) -> None:
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
        self.sock.close()

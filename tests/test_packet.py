from __future__ import annotations

import hashlib
import struct

import pytest

from mediaxfer.errors import DecodeError
from mediaxfer.packet import BufferSource, Frame, Status


class RecordingSink:
    def __init__(self):
        self.sent: list[bytes] = []

    def send(self, data: bytes) -> None:
        self.sent.append(data)


def test_roundtrip():
    f = Frame.build("song.mp3", b"hello")
    p = Frame.from_bytes(f.to_bytes())
    assert p == f
    assert p.digest == hashlib.sha256(b"hello").digest()


def test_roundtrip_empty_payload():
    f = Frame.build("empty.txt", b"")
    assert Frame.from_bytes(f.to_bytes()) == f


def test_wire_layout():
    f = Frame.build("a.txt", b"hi")
    raw = f.to_bytes()
    assert raw[0] == 0
    assert raw[1:5] == struct.pack("!I", 5)
    assert raw[5:10] == b"a.txt"
    assert raw[10:14] == struct.pack("!I", 2)
    assert raw[14:16] == b"hi"
    assert raw[16:] == hashlib.sha256(b"hi").digest()
    assert len(raw) == 1 + 4 + 5 + 4 + 2 + 32


def test_encode_sends_one_field_at_a_time():
    f = Frame.build("a.txt", b"payload")
    sink = RecordingSink()
    f.encode(sink)
    assert sink.sent == [b"\x00", struct.pack("!I", 5), b"a.txt", struct.pack("!I", 7), b"payload", f.digest]


def test_encode_payload_hook():
    f = Frame.build("a.txt", b"abcdef")
    sink = RecordingSink()
    def in_fours(s, p):
        for i in range(0, len(p), 4):
            s.send(p[i : i + 4])

    f.encode(sink, write_payload=in_fours)
    assert sink.sent[4:-1] == [b"abcd", b"ef"]


def test_bad_start_marker():
    raw = bytearray(Frame.build("a.txt", b"x").to_bytes())
    raw[0] = 0x7F
    with pytest.raises(DecodeError):
        Frame.from_bytes(bytes(raw))


@pytest.mark.parametrize("cut", [0, 1, 3, 7, 12, 15, 40])
def test_short_read(cut):
    raw = Frame.build("a.txt", b"hi").to_bytes()
    with pytest.raises(DecodeError):
        Frame.from_bytes(raw[:cut])


def test_trailing_bytes():
    raw = Frame.build("a.txt", b"hi").to_bytes()
    with pytest.raises(DecodeError):
        Frame.from_bytes(raw + b"\x00")


def test_file_name_length_limit():
    raw = b"\x00" + struct.pack("!I", 1 << 20) + b"x" * 16
    with pytest.raises(DecodeError):
        Frame.decode(BufferSource(raw))


def test_file_name_must_be_utf8():
    raw = b"\x00" + struct.pack("!I", 2) + b"\xff\xfe" + struct.pack("!I", 0) + b"\x00" * 32
    with pytest.raises(DecodeError):
        Frame.from_bytes(raw)


def test_decode_does_not_check_digest():
    f = Frame(file_name="a.txt", payload=b"tampered", digest=b"\x01" * 32)
    assert Frame.from_bytes(f.to_bytes()) == f


def test_encode_rejects_wrong_digest_length():
    with pytest.raises(ValueError):
        Frame(file_name="a.txt", payload=b"", digest=b"short").encode(RecordingSink())


def test_status_byte():
    assert Status.SUCCESS.as_byte() == b"\x01"
    assert Status.FAILURE.as_byte() == b"\x00"

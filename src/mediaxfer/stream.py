from __future__ import annotations

import logging

from .net import StreamConnection
from .packet import ByteSink, Frame


def send_frame(sink: ByteSink, frame: Frame) -> None:
    # the frame's own length prefixes are the only message boundaries on a stream
    frame.encode(sink)
    logging.debug("tcp: sent %r (%d bytes)", frame.file_name, len(frame.payload))


def recv_frame(conn: StreamConnection) -> Frame:
    frame = Frame.decode(conn)
    logging.debug("tcp: received %r (%d bytes) from %s", frame.file_name, len(frame.payload), conn.peer)
    return frame

"""mediaxfer: single-file transfer over TCP or UDP.

The package keeps the same separation in both transports:
- frame encoding/decoding is independent of the socket type
- the stream and datagram channels only move frames
- senders and receivers own the per-transfer state machine and reply
  with a single status byte

A receiver classifies each uploaded file by extension and stores it under
the matching category directory once its SHA-256 digest checks out.
"""

__all__ = []

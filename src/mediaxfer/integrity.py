from __future__ import annotations

import hashlib
import hmac

from .constants import DIGEST_LEN
from .errors import IntegrityError


def digest(payload: bytes) -> bytes:
    return hashlib.sha256(payload).digest()


def verify(computed: bytes, received: bytes) -> None:
    """Raise IntegrityError unless both digests are identical."""
    if len(received) != DIGEST_LEN or not hmac.compare_digest(computed, received):
        raise IntegrityError("digest mismatch")

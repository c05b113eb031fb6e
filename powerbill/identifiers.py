"""
Identifier Generation

Properties and meters get opaque string identifiers in canonical UUID
form (version 4, 122 random bits).

The OS entropy source is preferred. When it is not available the
identifier is built from a process-local pseudo-random generator mixed
with the clock, the process id and a counter. Those identifiers are still
unique within a process with overwhelming probability, but they are not
unpredictable.
"""

import itertools
import os
import random
import threading
import time
import uuid
from typing import Callable

import structlog

_logger = structlog.get_logger("powerbill.identifiers")

_fallback_random = random.Random()
_fallback_counter = itertools.count()
_fallback_lock = threading.Lock()
_fallback_warned = False


def _fallback_bytes() -> bytes:
    """128 bits from the pseudo-random combination scheme."""
    global _fallback_warned

    with _fallback_lock:
        if not _fallback_warned:
            _logger.warning("secure_random_unavailable", fallback="pseudo_random")
            _fallback_warned = True
        counter = next(_fallback_counter)
        bits = _fallback_random.getrandbits(128)

    mixed = bits ^ (time.time_ns() << 32) ^ (os.getpid() << 16) ^ counter
    return (mixed & ((1 << 128) - 1)).to_bytes(16, "big")


def new_id(random_bytes: Callable[[int], bytes] = os.urandom) -> str:
    """
    Generate a new identifier.

    Args:
        random_bytes: Entropy source taking a byte count.
                      Defaults to the OS source.

    Returns:
        A UUID4 string such as '0f1e2d3c-...'
    """
    try:
        raw = random_bytes(16)
    except NotImplementedError:
        raw = _fallback_bytes()

    return str(uuid.UUID(bytes=raw, version=4))

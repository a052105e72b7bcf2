from __future__ import annotations

import os
import re
import time
import uuid

_CODE_WHITESPACE = re.compile(r"\s+")


def generate_uuid7() -> str:
    """
    Generate a time-ordered UUIDv7 string.

    Used as the primary-key default on every table, so ids sort by
    creation time and can break ties between rows sharing a timestamp.
    """
    ts_ms = int(time.time() * 1000)
    raw = bytearray(ts_ms.to_bytes(6, "big", signed=False) + os.urandom(10))
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def normalise_code(value: str) -> str:
    """Canonical form for procedure / document codes: trimmed, upper-case, dashes for spaces."""
    return _CODE_WHITESPACE.sub("-", value.strip()).upper()

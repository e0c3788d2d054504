"""
Record identifiers.

Records are keyed by a 12-byte reference rendered as 24 lowercase hex
characters. The first 4 bytes are the big-endian creation time in unix
seconds, the remaining 8 are random, so identifiers sort roughly by creation
order. The all-zero identifier is reserved and never valid.
"""
from __future__ import annotations

import os
import re
import struct
import time
from typing import Any, Optional

from arbitrage_hub.errors import InvalidReferenceError

RECORD_ID_BYTES = 12
NULL_RECORD_ID = "0" * (RECORD_ID_BYTES * 2)

_HEX_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_record_id(timestamp: Optional[float] = None) -> str:
    """Generate a fresh identifier."""
    seconds = int(time.time() if timestamp is None else timestamp) & 0xFFFFFFFF
    return (struct.pack(">I", seconds) + os.urandom(RECORD_ID_BYTES - 4)).hex()


def is_valid_record_id(value: Any) -> bool:
    """Check a value is a well-formed, non-zero identifier. Never raises."""
    if not isinstance(value, str) or not _HEX_RE.match(value):
        return False
    return value.lower() != NULL_RECORD_ID


def parse_record_id(value: Any, field: str = "id") -> str:
    """Return the canonical (lowercase) form of an identifier.

    Raises:
        InvalidReferenceError: If the value is malformed or all zeros
    """
    if not is_valid_record_id(value):
        raise InvalidReferenceError(f"Invalid identifier for {field}: {value!r}")
    return value.lower()

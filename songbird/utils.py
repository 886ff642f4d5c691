from __future__ import annotations

import secrets
import string
import time

_NANOID_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def nanoid(size: int = 7) -> str:
    return "".join(secrets.choice(_NANOID_ALPHABET) for _ in range(size))


def now_in_milliseconds() -> float:
    return time.time() * 1000


def format_seconds(s: float, include_hours: bool = False) -> str:
    total = int(s)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if include_hours:
        return f"{hours % 24:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def convert_nano_timestamp_to_milli_timestamp(nano_timestamp: int) -> float:
    return nano_timestamp / 1_000_000


def is_timestamp_difference_beyond_threshold(
    timestamp1: float,
    timestamp2: float,
    threshold_in_minutes: float = 5,
) -> bool:
    """Both timestamps are in milliseconds."""
    return abs(timestamp1 - timestamp2) > threshold_in_minutes * 60 * 1000

"""Display helpers for raw Quartz column values."""

from __future__ import annotations

import base64
import binascii
import time
from datetime import datetime
from typing import Any

NOT_SET = "N/A"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRUTHY = {"1", "t", "true", "y", "yes"}
_UNITS = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))


def is_set(millis: int | None) -> bool:
    return millis is not None and int(millis) > 0


def format_timestamp(millis: int | None) -> str:
    """Render epoch milliseconds as local time, or ``N/A`` when unset (NULL or <= 0)."""
    if not is_set(millis):
        return NOT_SET
    return datetime.fromtimestamp(int(millis) / 1000).strftime(TIMESTAMP_FORMAT)


def format_relative(millis: int | None, now_millis: int | None = None) -> str:
    """Render epoch milliseconds relative to now, e.g. ``3m ago`` or ``2h``."""
    if not is_set(millis):
        return NOT_SET
    if now_millis is None:
        now_millis = int(time.time() * 1000)

    diff = int(millis) - now_millis
    future = diff > 0
    seconds = abs(diff) // 1000
    if seconds < 1:
        return "now" if future else "just now"

    for unit, size in _UNITS:
        if seconds >= size:
            break
    amount = f"{seconds // size}{unit}"
    return amount if future else f"{amount} ago"


def millis(value: Any) -> int:
    """Normalise a nullable BIGINT timestamp column to an int (0 when unset)."""
    if value is None:
        return 0
    value = int(value)
    return value if value > 0 else 0


def as_bool(value: Any) -> bool:
    """Quartz stores flags as BOOL, '1'/'0' or 't'/'f' depending on the DDL."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUTHY


def has_payload(value: Any) -> bool:
    return value is not None


def decode_job_data(value: Any) -> str | None:
    """Best-effort text rendering of a job-data blob for detail views.

    Tries strict Base64, then a ``\\x``-prefixed hex string; anything else is
    returned unchanged.
    """
    if value is None:
        return None
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    text = str(value)

    try:
        return base64.b64decode(text, validate=True).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        pass

    if text.startswith("\\x"):
        try:
            return bytes.fromhex(text[2:]).decode("utf-8", errors="replace")
        except ValueError:
            pass
    return text

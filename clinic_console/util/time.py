"""Time-related helpers for Clinic Console."""

from __future__ import annotations

import datetime
import time


def utc_now_iso() -> str:
    """Return current UTC time in ISO format without sub-second precision."""
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


def elapsed_ms(start: float) -> int:
    """Return whole milliseconds elapsed since monotonic ``start``."""
    return int((time.monotonic() - start) * 1000)

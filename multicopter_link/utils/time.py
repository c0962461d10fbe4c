"""Clock helpers; patch these in tests to control time."""

from __future__ import annotations

import time


def now_ms() -> float:
    """Wall-clock time in milliseconds, used to stamp received frames."""

    return time.time() * 1000.0


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0

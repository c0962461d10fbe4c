"""Small utilities shared across modules."""

from .time import monotonic_ms, now_ms

__all__ = ["monotonic_ms", "now_ms"]

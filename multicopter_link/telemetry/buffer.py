"""Latest-frame holder shared between the link thread and its owner."""

from __future__ import annotations

import threading

from .frame import TelemetryFrame


class TelemetryBuffer:
    """Thread-safe holder for the latest telemetry frame."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame: TelemetryFrame | None = None

    def update(self, frame: TelemetryFrame) -> None:
        with self._lock:
            self._frame = frame

    def latest(self) -> TelemetryFrame | None:
        with self._lock:
            return self._frame

    def clear(self) -> None:
        with self._lock:
            self._frame = None

"""Telemetry containers for the simulator state vector."""

from .buffer import TelemetryBuffer
from .frame import TelemetryFrame

__all__ = ["TelemetryBuffer", "TelemetryFrame"]

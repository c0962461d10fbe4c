"""Motor/telemetry UDP link to a MulticopterSim vehicle."""

from .configs import LinkConfig
from .errors import (
    BindError,
    FramingError,
    LinkError,
    LinkStateError,
    ReceiveError,
    ResolveError,
    SendError,
    TransportError,
)
from .link import LinkState, LinkStats, MotorCommand, MulticopterLink
from .telemetry import TelemetryBuffer, TelemetryFrame
from .transport import DatagramChannel, Endpoint

__all__ = [
    "BindError",
    "DatagramChannel",
    "Endpoint",
    "FramingError",
    "LinkConfig",
    "LinkError",
    "LinkState",
    "LinkStateError",
    "LinkStats",
    "MotorCommand",
    "MulticopterLink",
    "ReceiveError",
    "ResolveError",
    "SendError",
    "TelemetryBuffer",
    "TelemetryFrame",
    "TransportError",
]

"""UDP transport primitives for the simulator link."""

from .endpoint import Endpoint
from .udp_channel import DatagramChannel

__all__ = ["DatagramChannel", "Endpoint"]

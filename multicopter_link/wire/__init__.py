"""Binary framing of double vectors exchanged with the simulator."""

from .codec import DOUBLE_SIZE, decode, encode, payload_size

__all__ = ["DOUBLE_SIZE", "decode", "encode", "payload_size"]

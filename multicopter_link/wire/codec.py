"""Little-endian IEEE-754 double vector codec.

A datagram payload is nothing but ``n`` binary64 values laid end to end, least
significant byte first. There is no header, no length prefix and no checksum,
so the payload length alone tells how many values it carries.
"""

from __future__ import annotations

import struct
from typing import Sequence

from ..errors import FramingError

DOUBLE_SIZE = 8


def payload_size(count: int) -> int:
    """Number of bytes needed to carry ``count`` doubles."""

    return DOUBLE_SIZE * count


def encode(values: Sequence[float]) -> bytes:
    """Pack ``values`` in order as little-endian doubles."""

    return struct.pack(f"<{len(values)}d", *values)


def decode(payload: bytes) -> tuple[float, ...]:
    """Unpack a payload produced by :func:`encode` (or by the simulator)."""

    count, remainder = divmod(len(payload), DOUBLE_SIZE)
    if remainder:
        raise FramingError(
            f"Payload of {len(payload)} bytes is not a multiple of {DOUBLE_SIZE}"
        )
    return struct.unpack(f"<{count}d", payload)

"""Structured representation of a telemetry datagram."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from ..utils import now_ms


@dataclass(frozen=True, slots=True)
class TelemetryFrame:
    """One decoded telemetry datagram.

    The meaning of ``values`` is defined by the simulator; the link only keeps
    their order.
    """

    values: tuple[float, ...]
    sequence: int
    received_at_ms: float

    def __len__(self) -> int:
        return len(self.values)

    @property
    def packet_age_ms(self) -> float:
        """Return how old the frame is compared to the current wall-clock."""

        return max(0.0, now_ms() - self.received_at_ms)

    def as_dict(self, field_names: Sequence[str] = ()) -> Mapping[str, float]:
        """Name each value, falling back to ``telemetry_<index>``."""

        named: dict[str, float] = {}
        for index, value in enumerate(self.values):
            name = field_names[index] if index < len(field_names) else f"telemetry_{index}"
            named[name] = value
        return named

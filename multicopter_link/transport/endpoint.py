"""Peer addressing."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Simulator host plus the two ports used by the link."""

    host: str
    motor_port: int
    telemetry_port: int

    def __post_init__(self) -> None:
        if self.motor_port == self.telemetry_port:
            raise ValueError("motor_port and telemetry_port must differ")

    @property
    def motor_address(self) -> tuple[str, int]:
        return self.host, self.motor_port

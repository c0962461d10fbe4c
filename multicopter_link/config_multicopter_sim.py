"""LeRobot configuration for the simulated multicopter."""

from __future__ import annotations

from dataclasses import dataclass

from lerobot.robots.config import RobotConfig  # type: ignore

from .configs import (
    DEFAULT_HOST,
    DEFAULT_MOTOR_COUNT,
    DEFAULT_MOTOR_PORT,
    DEFAULT_TELEMETRY_PORT,
    DEFAULT_TIMEOUT_SEC,
    LinkConfig,
)


@RobotConfig.register_subclass("multicopter_sim")
@dataclass(kw_only=True)
class MulticopterSimConfig(RobotConfig):
    """Dataclass capturing runtime knobs for the simulated multicopter."""

    host: str = DEFAULT_HOST
    motor_port: int = DEFAULT_MOTOR_PORT
    telemetry_port: int = DEFAULT_TELEMETRY_PORT
    bind_host: str = "0.0.0.0"
    motor_count: int = DEFAULT_MOTOR_COUNT
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    # Names of the telemetry values, in the order the simulator sends them.
    telemetry_fields: tuple[str, ...] = ()
    motor_limits: tuple[float, float] = (0.0, 1.0)
    connect_timeout_sec: float = 1.0
    max_rate_hz: float = 0.0

    def __post_init__(self) -> None:
        super().__post_init__()
        lo, hi = self.motor_limits
        if lo >= hi:
            raise ValueError(f"Invalid motor limits: min {lo} >= max {hi}")
        if self.connect_timeout_sec < 0:
            raise ValueError("connect_timeout_sec cannot be negative")
        if len(set(self.telemetry_fields)) != len(self.telemetry_fields):
            raise ValueError("telemetry_fields must be unique")
        # Raises pydantic.ValidationError (a ValueError) on bad network settings.
        self.link_config()

    def link_config(self) -> LinkConfig:
        return LinkConfig(
            host=self.host,
            motor_port=self.motor_port,
            telemetry_port=self.telemetry_port,
            bind_host=self.bind_host,
            motor_count=self.motor_count,
            timeout_sec=self.timeout_sec,
            telemetry_size=len(self.telemetry_fields) or None,
            max_rate_hz=self.max_rate_hz,
        )

    @property
    def motor_names(self) -> tuple[str, ...]:
        return tuple(f"motor_{index}" for index in range(self.motor_count))

    def clip_motor(self, value: float) -> float:
        lo, hi = self.motor_limits
        return float(min(max(value, lo), hi))

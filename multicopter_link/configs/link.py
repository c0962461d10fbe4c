"""Pydantic configuration for the motor/telemetry link."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..transport.endpoint import Endpoint

DEFAULT_HOST = "127.0.0.1"
DEFAULT_MOTOR_PORT = 5000
DEFAULT_TELEMETRY_PORT = 5001
DEFAULT_MOTOR_COUNT = 4
DEFAULT_TIMEOUT_SEC = 1.0


class LinkConfig(BaseModel):
    """Everything the link needs to reach one simulator peer."""

    host: str = DEFAULT_HOST
    motor_port: int = DEFAULT_MOTOR_PORT
    telemetry_port: int = DEFAULT_TELEMETRY_PORT
    motor_count: int = Field(default=DEFAULT_MOTOR_COUNT, ge=1)
    timeout_sec: float = Field(default=DEFAULT_TIMEOUT_SEC, gt=0.0)
    bind_host: str = "0.0.0.0"
    # Number of doubles per telemetry datagram, when agreed with the peer.
    telemetry_size: Optional[int] = Field(default=None, ge=1)
    max_rate_hz: float = Field(default=0.0, ge=0.0)

    model_config = {"frozen": True}

    @field_validator("host", "bind_host")
    @classmethod
    def _ensure_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("host must not be empty")
        return value

    @field_validator("motor_port", "telemetry_port")
    @classmethod
    def _ensure_port(cls, value: int) -> int:
        if not (0 < value < 65536):
            raise ValueError("port must be within 1-65535")
        return value

    @model_validator(mode="after")
    def _ensure_distinct_ports(self) -> "LinkConfig":
        if self.motor_port == self.telemetry_port:
            raise ValueError(
                f"motor_port and telemetry_port must differ (both {self.motor_port})"
            )
        return self

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(
            host=self.host,
            motor_port=self.motor_port,
            telemetry_port=self.telemetry_port,
        )

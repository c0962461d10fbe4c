"""Configuration models for the multicopter link."""

from .link import (
    DEFAULT_HOST,
    DEFAULT_MOTOR_COUNT,
    DEFAULT_MOTOR_PORT,
    DEFAULT_TELEMETRY_PORT,
    DEFAULT_TIMEOUT_SEC,
    LinkConfig,
)

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_MOTOR_COUNT",
    "DEFAULT_MOTOR_PORT",
    "DEFAULT_TELEMETRY_PORT",
    "DEFAULT_TIMEOUT_SEC",
    "LinkConfig",
]

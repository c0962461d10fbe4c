"""LeRobot Robot implementation for the simulated multicopter."""

from __future__ import annotations

import logging
from logging import Formatter, BASIC_FORMAT
import math
import time
from functools import cached_property
from typing import Any, Callable

from lerobot.robots.robot import Robot  # type: ignore
from lerobot.utils.errors import DeviceAlreadyConnectedError, DeviceNotConnectedError  # type: ignore

from .config_multicopter_sim import MulticopterSimConfig
from .link import MulticopterLink
from .telemetry import TelemetryFrame
from .utils import monotonic_ms

logger = logging.getLogger(__name__)
handler = logging.StreamHandler()
handler.setLevel(logging.INFO)
handler.setFormatter(Formatter(BASIC_FORMAT))
logger.addHandler(handler)


class MulticopterSim(Robot):
    """Flies a MulticopterSim vehicle through the UDP motor/telemetry link."""

    config_class = MulticopterSimConfig
    name = "multicopter_sim"

    def __init__(
        self,
        config: MulticopterSimConfig,
        *,
        link_factory: Callable[[], MulticopterLink] | None = None,
    ):
        super().__init__(config)
        self.config = config
        logger.debug(
            "Initializing MulticopterSim (id=%s) with %d motors and %d telemetry fields.",
            config.id,
            config.motor_count,
            len(config.telemetry_fields),
        )
        self._link_factory = link_factory
        self._link: MulticopterLink | None = None
        self._last_sent = tuple(0.0 for _ in config.motor_names)

    # ------------------------------------------------------------------ #
    @cached_property
    def observation_features(self) -> dict[str, Any]:
        features: dict[str, Any] = {name: float for name in self.config.telemetry_fields}
        features["packet_age_ms"] = float
        features["status.link_state"] = str
        features["status.frames_received"] = int
        return features

    @cached_property
    def action_features(self) -> dict[str, Any]:
        return {f"{name}.value": float for name in self.config.motor_names}

    # ------------------------------------------------------------------ #
    @property
    def is_connected(self) -> bool:
        return self._link is not None and self._link.fault is None

    def connect(self, calibrate: bool = True) -> None:
        if self.is_connected:
            raise DeviceAlreadyConnectedError(f"{self} already connected")
        if self._link is not None:
            logger.warning("Replacing faulted link: %s", self._link.fault)
            self._release_link()

        logger.debug(
            "Connecting MulticopterSim (id=%s) | motors -> %s:%s | telemetry <- %s:%s",
            self.config.id,
            self.config.host,
            self.config.motor_port,
            self.config.bind_host,
            self.config.telemetry_port,
        )
        link = self._build_link()
        link.set_motors(self._last_sent)
        link.start()
        self._link = link

        if calibrate:
            self.calibrate()
        self.configure()
        self._wait_for_frame()
        logger.debug("MulticopterSim connected and ready.")

    def disconnect(self) -> None:
        if self._link is None:
            raise DeviceNotConnectedError(f"{self} is not connected.")
        logger.debug("Disconnecting MulticopterSim (id=%s).", self.config.id)
        self._release_link()
        logger.debug("MulticopterSim disconnected.")

    # ------------------------------------------------------------------ #
    @property
    def is_calibrated(self) -> bool:
        return True

    def calibrate(self) -> None:
        logger.debug("MulticopterSim does not require calibration.")

    def configure(self) -> None:
        pass

    # ------------------------------------------------------------------ #
    def get_observation(self) -> dict[str, Any]:
        link = self._require_link()
        frame = link.latest_telemetry()
        values = frame.values if frame is not None else ()
        obs: dict[str, Any] = {}
        # Only declared fields; undeclared trailing values are dropped.
        for index, name in enumerate(self.config.telemetry_fields):
            obs[name] = values[index] if index < len(values) else math.nan
        obs["packet_age_ms"] = frame.packet_age_ms if frame is not None else math.nan
        obs["status.link_state"] = link.state.value
        obs["status.frames_received"] = link.stats.frames_received
        return obs

    def send_action(self, action: dict[str, Any]) -> dict[str, Any]:
        link = self._require_link()
        motors: list[float] = []
        for index, name in enumerate(self.config.motor_names):
            value = action.get(f"{name}.value")
            if value is None or (isinstance(value, float) and math.isnan(value)):
                motors.append(self._last_sent[index])
                continue
            clipped = self.config.clip_motor(float(value))
            if clipped != value:
                logger.debug("Motor %s clipped from %.3f to %.3f.", name, value, clipped)
            motors.append(clipped)

        link.set_motors(motors)
        self._last_sent = tuple(motors)
        return {f"{name}.value": value for name, value in zip(self.config.motor_names, motors)}

    # ------------------------------------------------------------------ #
    def _require_link(self) -> MulticopterLink:
        if self._link is None:
            raise DeviceNotConnectedError(f"{self} is not connected.")
        fault = self._link.fault
        if fault is not None:
            raise DeviceNotConnectedError(f"{self} lost its link: {fault}") from fault
        return self._link

    def _release_link(self) -> None:
        assert self._link is not None
        self._link.halt(immediate=True)
        if not self._link.join(timeout=self.config.timeout_sec + 1.0):
            logger.warning("Link thread did not stop within the expected time.")
        self._link = None

    def _wait_for_frame(self) -> None:
        deadline = monotonic_ms() + self.config.connect_timeout_sec * 1000.0
        while monotonic_ms() < deadline:
            if self._link is not None and self._link.latest_telemetry() is not None:
                return
            time.sleep(0.01)
        logger.warning(
            "No telemetry from %s within %.1fs; continuing without it.",
            self.config.host,
            self.config.connect_timeout_sec,
        )

    def _on_telemetry(self, frame: TelemetryFrame) -> None:
        logger.debug("Telemetry frame %d (%d values).", frame.sequence, len(frame))

    def _build_link(self) -> MulticopterLink:
        if self._link_factory:
            return self._link_factory()
        return MulticopterLink(
            self.config.link_config(),
            on_telemetry=self._on_telemetry,
        )

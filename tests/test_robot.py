from __future__ import annotations

import math
import time

import pytest
from lerobot.utils.errors import DeviceAlreadyConnectedError, DeviceNotConnectedError  # type: ignore

from multicopter_link import LinkState, LinkStats, TelemetryBuffer, TelemetryFrame
from multicopter_link.config_multicopter_sim import MulticopterSimConfig
from multicopter_link.errors import SendError
from multicopter_link.multicopter_sim import MulticopterSim

class DummyLink:
    def __init__(self) -> None:
        self.buffer = TelemetryBuffer()
        self.motor_history: list[tuple[float, ...]] = []
        self.state = LinkState.STOPPED
        self.stats = LinkStats()
        self.fault = None
        self.halted_immediately = False

    def set_motors(self, values) -> None:
        self.motor_history.append(tuple(values))

    def start(self) -> None:
        self.state = LinkState.RUNNING

    def halt(self, *, immediate: bool = False) -> None:
        self.halted_immediately = immediate
        self.state = LinkState.STOPPED

    def join(self, timeout=None) -> bool:
        return True

    def latest_telemetry(self):
        return self.buffer.latest()

def _make_robot(config: MulticopterSimConfig) -> tuple[MulticopterSim, DummyLink]:
    link = DummyLink()
    robot = MulticopterSim(config, link_factory=lambda: link)  # type: ignore[arg-type,return-value]
    robot.connect()
    return robot, link

def test_config_rejects_bad_limits(tmp_path) -> None:
    with pytest.raises(ValueError):
        MulticopterSimConfig(calibration_dir=tmp_path, motor_limits=(1.0, 0.0))

def test_config_rejects_shared_ports(tmp_path) -> None:
    with pytest.raises(ValueError):
        MulticopterSimConfig(calibration_dir=tmp_path, motor_port=6000, telemetry_port=6000)

def test_config_builds_link_config(sim_config: MulticopterSimConfig) -> None:
    link_config = sim_config.link_config()
    assert link_config.telemetry_size == 3
    assert link_config.motor_count == 4
    assert link_config.endpoint.telemetry_port == sim_config.telemetry_port

def test_features_follow_config(sim_config: MulticopterSimConfig) -> None:
    robot = MulticopterSim(sim_config, link_factory=DummyLink)  # type: ignore[arg-type]
    assert list(robot.action_features) == [f"motor_{i}.value" for i in range(4)]
    assert {"t", "z", "dz", "packet_age_ms"} <= set(robot.observation_features)

def test_robot_builds_observations(sim_config: MulticopterSimConfig) -> None:
    robot, link = _make_robot(sim_config)
    try:
        obs = robot.get_observation()
        assert math.isnan(obs["z"])
        link.buffer.update(TelemetryFrame((0.5, 1.25, -0.1), 1, time.time() * 1000.0))
        obs = robot.get_observation()
        assert obs["t"] == 0.5
        assert obs["z"] == 1.25
        assert obs["dz"] == -0.1
        assert obs["status.link_state"] == "running"
    finally:
        robot.disconnect()
    assert link.halted_immediately

def test_send_action_clips_and_keeps_missing_motors(sim_config: MulticopterSimConfig) -> None:
    robot, link = _make_robot(sim_config)
    try:
        assert link.motor_history[0] == (0.0, 0.0, 0.0, 0.0)
        robot.send_action({f"motor_{i}.value": 0.5 for i in range(4)})
        sent = robot.send_action({"motor_0.value": 1.7, "motor_1.value": -0.2})
        assert sent == {
            "motor_0.value": 1.0,
            "motor_1.value": 0.0,
            "motor_2.value": 0.5,
            "motor_3.value": 0.5,
        }
        assert link.motor_history[-1] == (1.0, 0.0, 0.5, 0.5)
    finally:
        robot.disconnect()

def test_robot_requires_connection(sim_config: MulticopterSimConfig) -> None:
    robot = MulticopterSim(sim_config, link_factory=DummyLink)  # type: ignore[arg-type]
    with pytest.raises(DeviceNotConnectedError):
        robot.get_observation()
    with pytest.raises(DeviceNotConnectedError):
        robot.send_action({})
    robot.connect()
    with pytest.raises(DeviceAlreadyConnectedError):
        robot.connect()
    robot.disconnect()
    assert not robot.is_connected

def test_link_fault_surfaces_as_disconnect(sim_config: MulticopterSimConfig) -> None:
    robot, link = _make_robot(sim_config)
    link.fault = SendError("socket gone")
    with pytest.raises(DeviceNotConnectedError):
        robot.get_observation()
    robot.disconnect()

def test_observation_keys_match_features_with_default_fields(tmp_path) -> None:
    config = MulticopterSimConfig(calibration_dir=tmp_path, connect_timeout_sec=0.0)
    robot, link = _make_robot(config)
    try:
        link.buffer.update(TelemetryFrame((0.5, 1.25), 1, time.time() * 1000.0))
        obs = robot.get_observation()
        assert set(obs) == set(robot.observation_features)
        assert "telemetry_0" not in obs
    finally:
        robot.disconnect()


def test_short_frame_fills_missing_fields_with_nan(sim_config: MulticopterSimConfig) -> None:
    robot, link = _make_robot(sim_config)
    try:
        link.buffer.update(TelemetryFrame((0.5,), 1, time.time() * 1000.0))
        obs = robot.get_observation()
        assert obs["t"] == 0.5
        assert math.isnan(obs["z"]) and math.isnan(obs["dz"])
        assert set(obs) == set(robot.observation_features)
    finally:
        robot.disconnect()


def test_faulted_link_reports_disconnected_and_reconnects(sim_config: MulticopterSimConfig) -> None:
    links: list[DummyLink] = []

    def _factory() -> DummyLink:
        links.append(DummyLink())
        return links[-1]

    robot = MulticopterSim(sim_config, link_factory=_factory)  # type: ignore[arg-type]
    robot.connect()
    links[0].fault = SendError("socket gone")
    assert not robot.is_connected

    robot.connect()
    assert robot.is_connected
    assert len(links) == 2
    assert links[0].halted_immediately
    robot.get_observation()
    robot.disconnect()
    assert not robot.is_connected


def test_robot_over_loopback(peer, sim_config: MulticopterSimConfig) -> None:
    robot = MulticopterSim(sim_config)
    robot.connect()
    try:
        robot.send_action({f"motor_{i}.value": 0.6 for i in range(4)})
        deadline = time.monotonic() + 2.0
        while peer.receive_motors() != (0.6, 0.6, 0.6, 0.6):
            assert time.monotonic() < deadline
        peer.send_telemetry([0.01, 2.0, 0.0])
        deadline = time.monotonic() + 2.0
        while robot.get_observation()["status.frames_received"] < 1:
            assert time.monotonic() < deadline
            time.sleep(0.01)
        assert robot.get_observation()["z"] == 2.0
    finally:
        robot.disconnect()

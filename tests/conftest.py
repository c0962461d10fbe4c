from __future__ import annotations

import socket
from typing import Iterator

import pytest

from multicopter_link import LinkConfig
from multicopter_link.wire import decode, encode


class UdpPeer:
    """Plays the simulator: owns the motor port and sends telemetry."""

    def __init__(self, telemetry_port: int) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(2.0)
        self.motor_port = self.sock.getsockname()[1]
        self.telemetry_port = telemetry_port

    def receive_motors(self) -> tuple[float, ...]:
        payload, _ = self.sock.recvfrom(65535)
        return decode(payload)

    def send_telemetry(self, values) -> None:
        self.send_raw(encode(values))

    def send_raw(self, payload: bytes) -> None:
        self.sock.sendto(payload, ("127.0.0.1", self.telemetry_port))

    def close(self) -> None:
        self.sock.close()


def free_udp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture()
def free_port() -> int:
    return free_udp_port()


@pytest.fixture()
def peer() -> Iterator[UdpPeer]:
    udp_peer = UdpPeer(free_udp_port())
    yield udp_peer
    udp_peer.close()


@pytest.fixture()
def link_config(peer: UdpPeer) -> LinkConfig:
    return LinkConfig(
        host="127.0.0.1",
        motor_port=peer.motor_port,
        telemetry_port=peer.telemetry_port,
        bind_host="127.0.0.1",
        timeout_sec=0.2,
    )


@pytest.fixture()
def sim_config(tmp_path, peer: UdpPeer):
    from multicopter_link.config_multicopter_sim import MulticopterSimConfig

    return MulticopterSimConfig(
        id="test_copter",
        calibration_dir=tmp_path,
        host="127.0.0.1",
        motor_port=peer.motor_port,
        telemetry_port=peer.telemetry_port,
        bind_host="127.0.0.1",
        timeout_sec=0.2,
        telemetry_fields=("t", "z", "dz"),
        connect_timeout_sec=0.0,
    )

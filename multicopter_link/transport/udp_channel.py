"""UDP transport for motor commands and telemetry."""

from __future__ import annotations

import logging
from logging import Formatter, BASIC_FORMAT
import socket
import threading
from typing import Sequence

from ..errors import BindError, FramingError, ReceiveError, ResolveError, SendError
from ..wire import decode, encode, payload_size
from .endpoint import Endpoint

logger = logging.getLogger(__name__)
handler = logging.StreamHandler()
handler.setLevel(logging.INFO)
handler.setFormatter(Formatter(BASIC_FORMAT))
logger.addHandler(handler)

RECV_BUFFER_SIZE = 65535


class DatagramChannel:
    """Owns the motor (outbound) and telemetry (inbound) sockets for one peer.

    The motor socket is bound to an ephemeral local port and sends to
    ``endpoint.motor_port`` on the peer. The telemetry socket is bound to
    ``endpoint.telemetry_port`` locally and accepts datagrams from any sender.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        *,
        motor_count: int,
        timeout_sec: float = 1.0,
        bind_host: str = "0.0.0.0",
        telemetry_size: int | None = None,
    ):
        if motor_count < 1:
            raise ValueError("motor_count must be at least 1")
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be greater than zero")
        self.endpoint = endpoint
        self.motor_count = motor_count
        self.timeout_sec = timeout_sec
        self.bind_host = bind_host
        self.telemetry_size = telemetry_size
        self._lock = threading.Lock()
        self._motor_sock: socket.socket | None = None
        self._telem_sock: socket.socket | None = None
        self._peer_address: tuple[str, int] | None = None
        self._current_timeout: float | None = None
        self._closed = False

    # ------------------------------------------------------------------ #
    @property
    def is_open(self) -> bool:
        return self._motor_sock is not None and self._telem_sock is not None

    @property
    def peer_address(self) -> tuple[str, int] | None:
        return self._peer_address

    @property
    def local_motor_address(self) -> tuple[str, int] | None:
        sock = self._motor_sock
        return sock.getsockname() if sock else None

    def open(self) -> None:
        with self._lock:
            if self.is_open:
                return
            peer_address = self._resolve()
            motor_sock = self._bind_socket(self.bind_host, 0, "motor")
            try:
                telem_sock = self._bind_socket(
                    self.bind_host, self.endpoint.telemetry_port, "telemetry"
                )
            except BindError:
                motor_sock.close()
                raise
            telem_sock.settimeout(self.timeout_sec)
            self._current_timeout = self.timeout_sec
            self._peer_address = peer_address
            self._motor_sock = motor_sock
            self._telem_sock = telem_sock
            self._closed = False

        logger.info(
            "Link channel open: motors -> %s:%s, telemetry <- %s:%s",
            peer_address[0],
            peer_address[1],
            self.bind_host,
            self.endpoint.telemetry_port,
        )

    def close(self) -> None:
        with self._lock:
            if self._closed or not self.is_open:
                self._closed = True
                return
            self._closed = True
            motor_sock, self._motor_sock = self._motor_sock, None
            telem_sock, self._telem_sock = self._telem_sock, None

        if telem_sock is not None:
            try:
                # Wakes up a receive blocked in another thread.
                telem_sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        for sock in (motor_sock, telem_sock):
            if sock is None:
                continue
            try:
                sock.close()
            except OSError:
                pass
        logger.info("Link channel closed.")

    # ------------------------------------------------------------------ #
    def send_motors(self, values: Sequence[float]) -> None:
        if len(values) != self.motor_count:
            raise ValueError(
                f"Expected {self.motor_count} motor values, got {len(values)}"
            )
        sock = self._motor_sock
        if sock is None or self._peer_address is None:
            raise SendError("Motor socket is closed")
        payload = encode(values)
        try:
            sock.sendto(payload, self._peer_address)
        except OSError as exc:
            raise SendError(f"Failed to send motor datagram: {exc}") from exc
        logger.debug("Sent motor datagram (%d bytes)", len(payload))

    def receive_telemetry(self, timeout_sec: float | None = None) -> tuple[float, ...] | None:
        """Wait for one telemetry datagram.

        Returns the decoded values, or ``None`` when nothing arrived within the
        timeout. Raises :class:`~multicopter_link.errors.FramingError` for a
        malformed payload.
        """

        sock = self._telem_sock
        if sock is None:
            raise ReceiveError("Telemetry socket is closed")
        timeout = self.timeout_sec if timeout_sec is None else timeout_sec
        try:
            if timeout != self._current_timeout:
                sock.settimeout(timeout)
                self._current_timeout = timeout
            data, sender = sock.recvfrom(RECV_BUFFER_SIZE)
        except socket.timeout:
            return None
        except OSError as exc:
            raise ReceiveError(f"Failed to receive telemetry: {exc}") from exc

        if self._closed:
            raise ReceiveError("Telemetry socket closed while receiving")

        logger.debug("Received telemetry datagram (%d bytes) from %s", len(data), sender)
        values = decode(data)
        if self.telemetry_size is not None and len(values) != self.telemetry_size:
            raise FramingError(
                f"Expected {payload_size(self.telemetry_size)} telemetry bytes, got {len(data)}"
            )
        return values

    # ------------------------------------------------------------------ #
    def _resolve(self) -> tuple[str, int]:
        try:
            infos = socket.getaddrinfo(
                self.endpoint.host,
                self.endpoint.motor_port,
                socket.AF_INET,
                socket.SOCK_DGRAM,
            )
        except (socket.gaierror, UnicodeError) as exc:
            raise ResolveError(f"Cannot resolve host {self.endpoint.host!r}: {exc}") from exc
        if not infos:
            raise ResolveError(f"Cannot resolve host {self.endpoint.host!r}")
        address = infos[0][4]
        return address[0], address[1]

    @staticmethod
    def _bind_socket(host: str, port: int, role: str) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
        except OSError as exc:
            sock.close()
            raise BindError(f"Cannot bind {role} socket on {host}:{port}: {exc}") from exc
        return sock

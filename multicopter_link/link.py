"""Background control loop exchanging motor commands and telemetry with the simulator."""

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from logging import Formatter, BASIC_FORMAT
import threading
import time
from typing import Callable, Sequence

from .configs import LinkConfig
from .errors import FramingError, LinkStateError, TransportError
from .telemetry import TelemetryBuffer, TelemetryFrame
from .transport import DatagramChannel
from .utils import now_ms

logger = logging.getLogger(__name__)
handler = logging.StreamHandler()
handler.setLevel(logging.INFO)
handler.setFormatter(Formatter(BASIC_FORMAT))
logger.addHandler(handler)

TelemetryCallback = Callable[[TelemetryFrame], None]


class LinkState(str, enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    HALTING = "halting"


@dataclass(frozen=True, slots=True)
class LinkStats:
    """Counters accumulated since the link was last started."""

    motor_datagrams_sent: int = 0
    frames_received: int = 0
    timeouts: int = 0
    framing_errors: int = 0


class TickPacer:
    """Spaces loop ticks at least one period apart; a rate of 0 disables it.

    Waiting happens on the halt event, so a halt cuts the pause short.
    """

    def __init__(self, rate_hz: float, halt: threading.Event) -> None:
        self._period = 0.0 if rate_hz <= 0 else 1.0 / rate_hz
        self._halt = halt
        self._next = 0.0

    def wait(self) -> bool:
        """Return ``False`` when a halt arrived while pacing."""

        if self._period > 0:
            remaining = self._next - time.monotonic()
            if remaining > 0 and self._halt.wait(remaining):
                return False
            self._next = time.monotonic() + self._period
        return not self._halt.is_set()


class MotorCommand:
    """Thread-safe holder for the motor values sent on every tick."""

    def __init__(self, motor_count: int) -> None:
        self._lock = threading.Lock()
        self._values: tuple[float, ...] = (0.0,) * motor_count

    def __len__(self) -> int:
        return len(self._values)

    def update(self, values: Sequence[float]) -> None:
        if len(values) != len(self._values):
            raise ValueError(f"Expected {len(self._values)} motor values, got {len(values)}")
        snapshot = tuple(float(value) for value in values)
        with self._lock:
            self._values = snapshot

    def snapshot(self) -> tuple[float, ...]:
        with self._lock:
            return self._values


class MulticopterLink:
    """Sends the current motor command and polls for telemetry on its own thread.

    Every tick sends one motor datagram, then waits up to ``timeout_sec`` for a
    telemetry datagram. Sending never depends on telemetry having arrived. The
    owner talks to the loop only through :meth:`set_motors` and :meth:`halt`;
    received frames land in :attr:`buffer` and, when given, in ``on_telemetry``
    (called on the loop thread).
    """

    def __init__(
        self,
        config: LinkConfig | None = None,
        *,
        on_telemetry: TelemetryCallback | None = None,
        buffer: TelemetryBuffer | None = None,
        channel_factory: Callable[[LinkConfig], DatagramChannel] | None = None,
    ):
        self.config = config or LinkConfig()
        self.buffer = buffer or TelemetryBuffer()
        self._on_telemetry = on_telemetry
        self._channel_factory = channel_factory or _default_channel
        self._motors = MotorCommand(self.config.motor_count)
        self._state = LinkState.STOPPED
        self._state_lock = threading.Lock()
        self._halt = threading.Event()
        self._thread: threading.Thread | None = None
        self._channel: DatagramChannel | None = None
        self._fault: Exception | None = None
        self._stats = LinkStats()

    # ------------------------------------------------------------------ #
    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LinkState.RUNNING

    @property
    def fault(self) -> Exception | None:
        """Error that ended the last session, if any."""

        return self._fault

    @property
    def stats(self) -> LinkStats:
        return self._stats

    @property
    def motors(self) -> tuple[float, ...]:
        return self._motors.snapshot()

    def latest_telemetry(self) -> TelemetryFrame | None:
        return self.buffer.latest()

    def set_motors(self, values: Sequence[float]) -> None:
        """Replace the motor command; the next tick sends the latest values."""

        self._motors.update(values)

    # ------------------------------------------------------------------ #
    def start(self) -> None:
        with self._state_lock:
            if self._state is not LinkState.STOPPED:
                raise LinkStateError(f"Cannot start link while {self._state.value}")
            channel = self._channel_factory(self.config)
            # Resolve/bind failures propagate here; the link stays stopped.
            channel.open()
            self._channel = channel
            self._fault = None
            self._stats = LinkStats()
            self._halt.clear()
            self._state = LinkState.RUNNING
            self._thread = threading.Thread(
                target=self._run, args=(channel,), name="multicopter-link", daemon=True
            )
            self._thread.start()

        logger.info(
            "Multicopter link started (%d motors, peer %s:%s, telemetry port %s).",
            self.config.motor_count,
            self.config.host,
            self.config.motor_port,
            self.config.telemetry_port,
        )

    def halt(self, *, immediate: bool = False) -> None:
        """Ask the loop to stop.

        Without ``immediate`` the loop notices within one receive timeout.
        ``immediate`` also closes the sockets from the calling thread, which
        wakes up a pending receive right away.
        """

        with self._state_lock:
            self._halt.set()
            if self._state is LinkState.RUNNING:
                self._state = LinkState.HALTING
                logger.debug("Halt requested.")
            channel = self._channel
        if immediate and channel is not None:
            channel.close()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the loop thread to finish; return ``True`` once stopped."""

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        return self._state is LinkState.STOPPED

    # ------------------------------------------------------------------ #
    def _run(self, channel: DatagramChannel) -> None:
        pacer = TickPacer(self.config.max_rate_hz, self._halt)
        sent = received = timeouts = framing_errors = 0
        try:
            while pacer.wait():
                channel.send_motors(self._motors.snapshot())
                sent += 1
                try:
                    values = channel.receive_telemetry(self.config.timeout_sec)
                except FramingError as exc:
                    framing_errors += 1
                    logger.warning("Discarding malformed telemetry datagram: %s", exc)
                else:
                    if values is None:
                        timeouts += 1
                        logger.debug("No telemetry within %.3fs.", self.config.timeout_sec)
                    else:
                        received += 1
                        self._deliver(TelemetryFrame(values, received, now_ms()))
                self._stats = LinkStats(sent, received, timeouts, framing_errors)
        except TransportError as exc:
            if self._halt.is_set():
                logger.debug("Transport closed during halt: %s", exc)
            else:
                self._fault = exc
                logger.error("Multicopter link stopped after socket fault: %s", exc)
        except Exception as exc:
            self._fault = exc
            logger.exception("Multicopter link stopped after unexpected error: %s", exc)
        finally:
            with self._state_lock:
                self._state = LinkState.HALTING
            channel.close()
            with self._state_lock:
                self._channel = None
                self._state = LinkState.STOPPED
            logger.info(
                "Multicopter link stopped (%d motor datagrams, %d frames, %d timeouts).",
                sent,
                received,
                timeouts,
            )

    def _deliver(self, frame: TelemetryFrame) -> None:
        self.buffer.update(frame)
        if self._on_telemetry is None:
            return
        try:
            self._on_telemetry(frame)
        except Exception:
            logger.exception("Telemetry callback failed for frame %d.", frame.sequence)


def _default_channel(config: LinkConfig) -> DatagramChannel:
    return DatagramChannel(
        config.endpoint,
        motor_count=config.motor_count,
        timeout_sec=config.timeout_sec,
        bind_host=config.bind_host,
        telemetry_size=config.telemetry_size,
    )

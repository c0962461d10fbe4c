# hover_demo.py
"""Start the link, hold a hover command for a while, then halt."""

import argparse
import logging
import sys
import time

from multicopter_link import LinkConfig, LinkError, MulticopterLink, TelemetryFrame


def main():
    ap = argparse.ArgumentParser(description="Hover a MulticopterSim vehicle over UDP")
    ap.add_argument("--host", default="127.0.0.1", help="simulator host")
    ap.add_argument("--motor-port", type=int, default=5000)
    ap.add_argument("--telemetry-port", type=int, default=5001)
    ap.add_argument("--motors", type=int, default=4, help="number of rotors")
    ap.add_argument("--throttle", type=float, default=0.6, help="hover motor value (0.0-1.0)")
    ap.add_argument("--duration", type=float, default=1.0, help="seconds to hold the command")
    ap.add_argument("--timeout", type=float, default=1.0, help="telemetry receive timeout (s)")
    ap.add_argument("--fields", nargs="*", default=[], help="names for the telemetry values")
    ap.add_argument("-v", "--verbose", action="store_true", help="print every telemetry frame")
    args = ap.parse_args()

    logging.getLogger("multicopter_link").setLevel(logging.INFO)

    config = LinkConfig(
        host=args.host,
        motor_port=args.motor_port,
        telemetry_port=args.telemetry_port,
        motor_count=args.motors,
        timeout_sec=args.timeout,
    )

    def show(frame: TelemetryFrame) -> None:
        named = frame.as_dict(args.fields)
        print(f"[FRAME {frame.sequence:5d}] " + ", ".join(f"{k}={v:+.3f}" for k, v in named.items()))

    copter = MulticopterLink(config, on_telemetry=show if args.verbose else None)
    copter.set_motors([args.throttle] * args.motors)
    try:
        copter.start()
    except LinkError as exc:
        print(f"[ERROR] cannot start link: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        time.sleep(args.duration)
    except KeyboardInterrupt:
        print("\n[INFO] stopped by user (Ctrl+C).")
    finally:
        copter.halt()
        copter.join(timeout=args.timeout + 1.0)

    stats = copter.stats
    print(
        f"[INFO] sent {stats.motor_datagrams_sent} motor datagrams, "
        f"received {stats.frames_received} frames, {stats.timeouts} timeouts"
    )
    if copter.fault is not None:
        print(f"[ERROR] link fault: {copter.fault}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

# multicopter_sim_mock.py
"""Stand-in for the simulator: eats motor datagrams, emits altitude telemetry.

Telemetry layout: time, altitude, vertical speed, mean motor value.
"""

import argparse
import socket
import struct
import sys
import time

GRAVITY = 9.80665


def pack_doubles(values):
    return struct.pack(f"<{len(values)}d", *values)


def unpack_doubles(payload):
    if len(payload) % 8:
        return None
    return struct.unpack(f"<{len(payload) // 8}d", payload)


def main():
    ap = argparse.ArgumentParser(description="Mock MulticopterSim UDP peer")
    ap.add_argument("--host", default="127.0.0.1", help="telemetry destination host")
    ap.add_argument("--motor-port", type=int, default=5000, help="motor listen port")
    ap.add_argument("--telemetry-port", type=int, default=5001, help="telemetry destination port")
    ap.add_argument("--fps", type=int, default=100, help="telemetry frames per second")
    ap.add_argument(
        "--hover", type=float, default=0.6, help="motor value that exactly cancels gravity"
    )
    args = ap.parse_args()

    motor_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    motor_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        motor_sock.bind(("0.0.0.0", args.motor_port))
    except OSError as e:
        print(f"[ERROR] motor bind failed on port {args.motor_port}: {e}", file=sys.stderr)
        sys.exit(2)
    motor_sock.setblocking(False)

    telem_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    dst = (args.host, args.telemetry_port)
    print(f"[INFO] motors on udp://0.0.0.0:{args.motor_port}, telemetry to udp://{dst[0]}:{dst[1]}")

    period = 1.0 / max(1, args.fps)
    motors = ()
    altitude = 0.0
    velocity = 0.0
    t0 = time.perf_counter()
    tick = 0

    try:
        while True:
            while True:
                try:
                    payload, _ = motor_sock.recvfrom(65535)
                except (BlockingIOError, InterruptedError):
                    break
                values = unpack_doubles(payload)
                if values is None:
                    print(f"[WARN] dropped {len(payload)}-byte motor datagram")
                    continue
                motors = values

            thrust = sum(motors) / len(motors) if motors else 0.0
            accel = GRAVITY * (thrust / args.hover - 1.0)
            velocity += accel * period
            altitude += velocity * period
            if altitude <= 0.0:
                altitude, velocity = 0.0, max(0.0, velocity)

            t = time.perf_counter() - t0
            telem_sock.sendto(pack_doubles((t, altitude, velocity, thrust)), dst)

            tick += 1
            sleep_s = t0 + tick * period - time.perf_counter()
            if sleep_s > 0:
                time.sleep(sleep_s)
    except KeyboardInterrupt:
        print("\n[INFO] stopped by user (Ctrl+C).")
    finally:
        motor_sock.close()
        telem_sock.close()


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Debug launcher commands against a real or simulated launcher.

Runs a short session step by step and prints every raw response, to see
what the firmware actually returns.
"""

import argparse
import sys
import time

sys.path.insert(0, "src")

from openlauncher.config import DeviceConfig
from openlauncher.device_client import DeviceClient
from openlauncher.mock_device import MockLauncherDevice
from openlauncher.types import LaunchMode, LaunchParameters


def run_command(description, command):
    """Run a command and print the raw result."""
    print(f"  {description}...")
    result = command()
    if result.ok:
        print(f"           → {result.value if result.value else '(empty body)'}")
    else:
        print(f"           → ERROR: {result.error}")
    time.sleep(0.1)
    return result


def main():
    parser = argparse.ArgumentParser(description="Launcher command debugger")
    parser.add_argument("--device-host", help="Launcher IP (default: 192.168.4.1)")
    parser.add_argument("--mock", action="store_true", help="Use the simulated launcher")
    parser.add_argument("--mode", default="FOREHAND", choices=[m.value for m in LaunchMode])
    parser.add_argument("--balls", type=int, default=3, help="Balls to throw (default: 3)")
    args = parser.parse_args()

    print("=" * 70)
    print("  Launcher Command Debugger")
    print("=" * 70)
    print()

    config = DeviceConfig.from_env()
    if args.device_host:
        config.host = args.device_host

    transport = MockLauncherDevice().transport() if args.mock else None
    with DeviceClient(config, transport=transport) as client:
        print(f"Launcher: {client.base_url}")
        print()

        print("-" * 70)
        print("Querying status:")
        print("-" * 70)
        if not run_command("GET /status", client.get_status).ok:
            print()
            print("  Launcher not reachable. Join its WiFi access point and retry.")
            return 1

        params = LaunchParameters(mode=LaunchMode(args.mode), ball_count=args.balls)

        print()
        print("-" * 70)
        print(f"Running a {args.balls}-ball {args.mode} session:")
        print("-" * 70)
        run_command(f"POST /start-session {params.to_payload()}",
                    lambda: client.start_session(params))
        run_command("GET /status", client.get_status)

        for n in range(args.balls):
            run_command(f"POST /throw-ball ({n + 1}/{args.balls})", client.throw_ball)
            run_command("GET /status", client.get_status)

        run_command("POST /stop-session", client.stop_session)
        run_command("GET /statistics", client.get_statistics)

    print()
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

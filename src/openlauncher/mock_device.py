"""
Simulated launcher for development without hardware.

MockLauncherDevice implements the launcher's HTTP API in-process and is
plugged into DeviceClient through httpx.MockTransport:

    device = MockLauncherDevice()
    client = DeviceClient(transport=device.transport())

Shots get realistic per-mode angles and speeds. Faults can be injected
per path to exercise error handling.
"""

import json
import random
import threading
import time
from typing import Callable, Dict, List, Optional, Set, Tuple

import httpx

from .types import LaunchMode, LaunchParameters

# Typical horizontal aim per mode (degrees, std dev); 126 points at the table center
MODE_DIRECTIONS = {
    LaunchMode.FOREHAND: (150, 8),
    LaunchMode.BACKHAND: (100, 8),
    LaunchMode.HARDCORE: (126, 30),
}


class MockLauncherDevice:
    """In-process stand-in for the launcher firmware."""

    def __init__(self, seed: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the simulated launcher.

        Args:
            seed: Seed for shot randomization
            clock: Monotonic clock in seconds, injectable for tests
        """
        self._rng = random.Random(seed)
        self._clock = clock
        self._lock = threading.Lock()

        self.params: Optional[LaunchParameters] = None
        self.session_active = False
        self.balls_remaining = 0
        self.shots: List[dict] = []
        self._started_at: Optional[float] = None
        self._stopped_at: Optional[float] = None

        self.requests: List[Tuple[str, str]] = []
        self._failures: Dict[str, List[int]] = {}
        self._malformed: Set[str] = set()
        self.unreachable = False

    def transport(self) -> httpx.MockTransport:
        """httpx transport that routes requests to this device."""
        return httpx.MockTransport(self.handle)

    # =========================================================================
    # Fault injection
    # =========================================================================

    def fail(self, path: str, status_code: int = 500, times: int = 1):
        """Answer the next `times` requests to `path` with `status_code`."""
        with self._lock:
            self._failures.setdefault(path, []).extend([status_code] * times)

    def malform(self, path: str):
        """Answer every request to `path` with a body that is not JSON."""
        with self._lock:
            self._malformed.add(path)

    def request_count(self, path: Optional[str] = None) -> int:
        """Number of requests received, optionally for one path."""
        with self._lock:
            if path is None:
                return len(self.requests)
            return sum(1 for _, p in self.requests if p == path)

    # =========================================================================
    # Request handling
    # =========================================================================

    def handle(self, request: httpx.Request) -> httpx.Response:
        """Dispatch one HTTP request."""
        path = request.url.path
        with self._lock:
            self.requests.append((request.method, path))
            if self.unreachable:
                raise httpx.ConnectError("Launcher unreachable", request=request)
            failures = self._failures.get(path)
            if failures:
                return httpx.Response(failures.pop(0), text="Simulated failure")
            if path in self._malformed:
                return httpx.Response(200, text="{not json")

            routes = {
                ("GET", "/status"): self._status,
                ("POST", "/start-session"): self._start_session,
                ("POST", "/stop-session"): self._stop_session,
                ("POST", "/throw-ball"): self._throw_ball,
                ("GET", "/statistics"): self._statistics,
            }
            route = routes.get((request.method, path))
            if route is None:
                return httpx.Response(404, text="Not found")
            return route(request)

    def _elapsed(self) -> int:
        if self._started_at is None:
            return 0
        end = self._clock() if self.session_active else self._stopped_at
        return int(end - self._started_at)

    def _status(self, request: httpx.Request) -> httpx.Response:  # pylint: disable=unused-argument
        return httpx.Response(200, json={
            "sessionActive": self.session_active,
            "ballsRemaining": self.balls_remaining,
            "currentShot": len(self.shots),
            "sessionTime": self._elapsed(),
        })

    def _start_session(self, request: httpx.Request) -> httpx.Response:
        try:
            data = json.loads(request.content or b"{}")
            self.params = LaunchParameters.from_dict(data)
        except ValueError as e:
            return httpx.Response(400, text=f"Invalid session parameters: {e}")

        self.session_active = True
        self.balls_remaining = self.params.ball_count
        self.shots = []
        self._started_at = self._clock()
        self._stopped_at = None
        return httpx.Response(200, text="Session started")

    def _stop_session(self, request: httpx.Request) -> httpx.Response:  # pylint: disable=unused-argument
        if self.session_active:
            self._stopped_at = self._clock()
        self.session_active = False
        return httpx.Response(200, text="Session stopped")

    def _throw_ball(self, request: httpx.Request) -> httpx.Response:  # pylint: disable=unused-argument
        if not self.session_active:
            return httpx.Response(409, text="No active session")
        if self.balls_remaining <= 0:
            return httpx.Response(409, text="No balls remaining")

        self.balls_remaining -= 1
        horizontal, vertical, speed = self._next_shot(len(self.shots))
        self.shots.append({
            "shotNumber": len(self.shots) + 1,
            "horizontalAngle": horizontal,
            "verticalAngle": vertical,
            "speed": speed,
            "timestamp": int((self._clock() - self._started_at) * 1000),
        })
        return httpx.Response(200, text="Ball thrown")

    def _statistics(self, request: httpx.Request) -> httpx.Response:  # pylint: disable=unused-argument
        speeds = [s["speed"] for s in self.shots]
        return httpx.Response(200, json={
            "totalBalls": len(self.shots),
            "sessionDuration": self._elapsed(),
            "averageSpeed": round(sum(speeds) / len(speeds)) if speeds else 0,
            "shots": list(self.shots),
        })

    def _next_shot(self, index: int) -> Tuple[int, int, int]:
        """Angles and speed for the next shot in the current mode."""
        params = self.params
        mode = params.mode

        if mode is LaunchMode.MANUAL:
            return params.direction, params.vertical_angle, params.speed

        if mode is LaunchMode.FOREHAND_BACKHAND:
            # Alternates sides, starting on the forehand
            mode = LaunchMode.FOREHAND if index % 2 == 0 else LaunchMode.BACKHAND

        if mode is LaunchMode.RANDOM:
            low, high = LaunchParameters.DIRECTION_RANGE
            horizontal = self._rng.randint(low, high)
            speed = self._rng.randint(30, 100)
        else:
            center, spread = MODE_DIRECTIONS[mode]
            horizontal = round(self._rng.gauss(center, spread))
            if mode is LaunchMode.HARDCORE:
                speed = self._rng.randint(80, 100)
            else:
                speed = params.speed

        low, high = LaunchParameters.DIRECTION_RANGE
        horizontal = max(low, min(high, horizontal))
        low, high = LaunchParameters.VERTICAL_ANGLE_RANGE
        vertical = max(low, min(high, round(self._rng.gauss(90, 6))))
        return horizontal, vertical, speed

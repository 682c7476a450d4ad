"""
Data types for the launcher control layer.

These types describe what the operator asks the launcher to do
(LaunchParameters), what the launcher reports back while a session runs
(SessionState, ShotRecord), and the read-only summary produced when a
session ends.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class LaunchMode(Enum):
    """Training modes understood by the launcher firmware."""
    MANUAL = "MANUAL"
    FOREHAND = "FOREHAND"
    BACKHAND = "BACKHAND"
    FOREHAND_BACKHAND = "FOREHAND_BACKHAND"
    HARDCORE = "HARDCORE"
    RANDOM = "RANDOM"

    @property
    def uses_manual_angles(self) -> bool:
        """Only MANUAL mode lets the operator aim; other modes aim on the device."""
        return self is LaunchMode.MANUAL

    @property
    def uses_speed_control(self) -> bool:
        """HARDCORE and RANDOM pick their own speed on the device."""
        return self not in (LaunchMode.HARDCORE, LaunchMode.RANDOM)


@dataclass
class LaunchParameters:
    """
    Parameters sent to the launcher when a session starts.

    Attributes:
        mode: Training mode
        speed: Launch speed in percent (0-100)
        direction: Horizontal direction in degrees (72-180), MANUAL only
        vertical_angle: Vertical angle in degrees (25-140), MANUAL only
        ball_count: Number of balls in the session
        throw_interval: Seconds between autonomous throws (fractions allowed)
    """
    mode: LaunchMode
    speed: int = 50
    direction: int = 90
    vertical_angle: int = 90
    ball_count: int = 20
    throw_interval: float = 3.0

    SPEED_RANGE = (0, 100)
    DIRECTION_RANGE = (72, 180)
    VERTICAL_ANGLE_RANGE = (25, 140)
    DEFAULT_BALL_COUNT = 20
    DEFAULT_THROW_INTERVAL = 3.0

    def __post_init__(self):
        if not isinstance(self.mode, LaunchMode):
            self.mode = LaunchMode(self.mode)
        _check_range("speed", self.speed, self.SPEED_RANGE)
        _check_range("direction", self.direction, self.DIRECTION_RANGE)
        _check_range("vertical_angle", self.vertical_angle, self.VERTICAL_ANGLE_RANGE)
        if self.ball_count <= 0:
            raise ValueError(f"ball_count must be positive, got {self.ball_count}")
        if not math.isfinite(self.throw_interval) or self.throw_interval <= 0:
            raise ValueError(f"throw_interval must be a positive number, got {self.throw_interval}")

    def to_payload(self) -> Dict[str, Any]:
        """Body of the /start-session command."""
        return {
            "mode": self.mode.value,
            "speed": self.speed,
            "direction": self.direction,
            "verticalAngle": self.vertical_angle,
            "ballCount": self.ball_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable dict including the local-only throw interval."""
        data = self.to_payload()
        data["throwInterval"] = self.throw_interval
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaunchParameters":
        """
        Build parameters from UI input.

        Accepts camelCase or snake_case keys. Ball count and throw interval
        arrive as free text from the UI; unparsable values fall back to the
        defaults instead of failing. Out-of-range values still raise ValueError.
        """
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] not in (None, ""):
                    return data[key]
            return default

        ball_count = _to_int(pick("ballCount", "ball_count"), cls.DEFAULT_BALL_COUNT)
        throw_interval = _to_float(
            pick("throwInterval", "throw_interval"), cls.DEFAULT_THROW_INTERVAL
        )

        return cls(
            mode=LaunchMode(str(pick("mode", default="")).upper()),
            speed=int(pick("speed", default=50)),
            direction=int(pick("direction", default=90)),
            vertical_angle=int(pick("verticalAngle", "vertical_angle", default=90)),
            ball_count=ball_count,
            throw_interval=throw_interval,
        )


def _check_range(name: str, value: int, bounds: Tuple[int, int]):
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{name} must be within [{low}, {high}], got {value}")


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of the running session.

    Attributes:
        active: True between an accepted start and an accepted stop
        balls_remaining: Balls left in the session (never increases while active)
        current_shot: Index of the latest shot (never decreases while active)
        session_time: Elapsed session time in seconds (never decreases while active)
    """
    active: bool = False
    balls_remaining: int = 0
    current_shot: int = 0
    session_time: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionActive": self.active,
            "ballsRemaining": self.balls_remaining,
            "currentShot": self.current_shot,
            "sessionTime": self.session_time,
        }


@dataclass(frozen=True)
class ShotRecord:
    """A single launch as recorded by the device."""
    shot_number: int
    horizontal_angle: int
    vertical_angle: int
    speed: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shotNumber": self.shot_number,
            "horizontalAngle": self.horizontal_angle,
            "verticalAngle": self.vertical_angle,
            "speed": self.speed,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class SessionSummary:
    """
    Read-only summary of a finished session.

    Attributes:
        mode: Mode the session ran in
        total_balls: Balls in the session
        session_duration: Session length in seconds
        average_speed: Average launch speed in percent
        balls_per_minute: total_balls * 60 / session_duration (0 if no duration)
        shots: Per-shot records ordered by shot number (may be empty)
    """
    mode: LaunchMode
    total_balls: int
    session_duration: int
    average_speed: int
    balls_per_minute: float
    shots: Tuple[ShotRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "totalBalls": self.total_balls,
            "sessionDuration": self.session_duration,
            "averageSpeed": self.average_speed,
            "ballsPerMinute": round(self.balls_per_minute, 1),
            "shots": [s.to_dict() for s in self.shots],
        }


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a device operation: either a value or an error.

    Example:
        result = client.get("/status")
        if result.ok:
            print(result.value)
        else:
            print(f"Error: {result.error}")
    """
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value


def summary_as_dict(summary: Optional[SessionSummary]) -> Optional[Dict[str, Any]]:
    """Serialize an optional summary for the UI bridge."""
    return summary.to_dict() if summary else None

"""
Parsers for launcher JSON payloads.

The firmware may omit fields or send the wrong type for them. Missing or
unusable fields take defaults here so nothing downstream has to care;
only a body that is not a JSON object at all is reported as malformed.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .errors import MalformedResponse
from .types import SessionState, ShotRecord


@dataclass(frozen=True)
class DeviceStatistics:
    """
    Statistics reported by GET /statistics.

    Aggregate fields are None when the device omitted them so the summary
    can fall back to locally tracked values.
    """
    total_balls: Optional[int] = None
    session_duration: Optional[int] = None
    average_speed: Optional[int] = None
    shots: Tuple[ShotRecord, ...] = ()


def _load_object(body: str, what: str) -> Dict[str, Any]:
    try:
        data = json.loads(body)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Invalid {what} JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object for {what}, got {type(data).__name__}")
    return data


def _opt_int(data: Dict[str, Any], key: str, default: Optional[int] = 0) -> Optional[int]:
    value = data.get(key)
    if not isinstance(value, (bool, int, float, str)):
        return default
    try:
        return int(float(value)) if isinstance(value, str) else int(value)
    except (OverflowError, ValueError):
        return default


def _opt_bool(data: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = data.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return default


def parse_status(body: str) -> SessionState:
    """
    Parse a GET /status body into a SessionState.

    Raises:
        MalformedResponse: body is not a JSON object
    """
    data = _load_object(body, "status")
    return SessionState(
        active=_opt_bool(data, "sessionActive"),
        balls_remaining=max(0, _opt_int(data, "ballsRemaining")),
        current_shot=max(0, _opt_int(data, "currentShot")),
        session_time=max(0, _opt_int(data, "sessionTime")),
    )


def parse_shot(data: Dict[str, Any]) -> ShotRecord:
    """Parse one entry of the statistics shot list."""
    return ShotRecord(
        shot_number=_opt_int(data, "shotNumber"),
        horizontal_angle=_opt_int(data, "horizontalAngle"),
        vertical_angle=_opt_int(data, "verticalAngle"),
        speed=_opt_int(data, "speed"),
        timestamp=_opt_int(data, "timestamp"),
    )


def parse_statistics(body: str) -> DeviceStatistics:
    """
    Parse a GET /statistics body.

    Shot entries that are not objects are skipped; the remaining shots are
    ordered by shot number.

    Raises:
        MalformedResponse: body is not a JSON object
    """
    data = _load_object(body, "statistics")

    shots_data = data.get("shots")
    shots = []
    if isinstance(shots_data, list):
        shots = [parse_shot(s) for s in shots_data if isinstance(s, dict)]
    shots.sort(key=lambda s: s.shot_number)

    return DeviceStatistics(
        total_balls=_opt_int(data, "totalBalls", default=None),
        session_duration=_opt_int(data, "sessionDuration", default=None),
        average_speed=_opt_int(data, "averageSpeed", default=None),
        shots=tuple(shots),
    )

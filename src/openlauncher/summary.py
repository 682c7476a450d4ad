"""
Post-session summary aggregation.

The launcher is the source of truth for session statistics, but the
summary must always be produced: any field the device omits, and the
whole statistics payload when it is missing or malformed, falls back to
what the controller tracked locally.
"""

import logging
from typing import Optional

from .errors import MalformedResponse
from .parsing import DeviceStatistics, parse_statistics
from .types import LaunchParameters, SessionState, SessionSummary

logger = logging.getLogger(__name__)


def balls_per_minute(total_balls: int, duration_seconds: int) -> float:
    """
    Launch rate over the session.

    Returns:
        total_balls * 60 / duration_seconds, or 0 when the duration is 0
    """
    if duration_seconds <= 0:
        return 0.0
    return total_balls * 60 / duration_seconds


def build_summary(
    params: LaunchParameters,
    state: SessionState,
    statistics_body: Optional[str] = None,
) -> SessionSummary:
    """
    Build the summary for a finished session.

    Args:
        params: Parameters the session was started with
        state: Last locally tracked session state
        statistics_body: Raw GET /statistics body, or None if the fetch failed

    Returns:
        SessionSummary; never raises for bad device data
    """
    stats = DeviceStatistics()
    if statistics_body is not None:
        try:
            stats = parse_statistics(statistics_body)
        except MalformedResponse as e:
            logger.warning("Using local session values for summary: %s", e)

    total_balls = stats.total_balls if stats.total_balls is not None else params.ball_count
    duration = (
        stats.session_duration if stats.session_duration is not None else state.session_time
    )
    average_speed = stats.average_speed if stats.average_speed is not None else params.speed

    return SessionSummary(
        mode=params.mode,
        total_balls=total_balls,
        session_duration=duration,
        average_speed=average_speed,
        balls_per_minute=balls_per_minute(total_balls, duration),
        shots=stats.shots,
    )

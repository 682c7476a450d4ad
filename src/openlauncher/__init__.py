"""OpenLauncher - control layer for a WiFi table tennis ball launcher."""

__version__ = "0.1.0"

from .config import DeviceConfig
from .connection import ConnectionSession
from .controller import TrainingSessionController
from .device_client import DeviceClient
from .errors import (
    CommandRejected,
    ConnectionFailed,
    InvalidSessionState,
    LauncherError,
    MalformedResponse,
    TransportError,
)
from .summary import balls_per_minute, build_summary
from .types import (
    LaunchMode,
    LaunchParameters,
    Result,
    SessionState,
    SessionSummary,
    ShotRecord,
)

__all__ = [
    "DeviceConfig",
    "DeviceClient",
    "ConnectionSession",
    "TrainingSessionController",
    "LaunchMode",
    "LaunchParameters",
    "Result",
    "SessionState",
    "SessionSummary",
    "ShotRecord",
    "LauncherError",
    "ConnectionFailed",
    "CommandRejected",
    "TransportError",
    "MalformedResponse",
    "InvalidSessionState",
    "balls_per_minute",
    "build_summary",
]

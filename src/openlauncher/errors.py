"""
Error kinds reported by the launcher control layer.

Device operations never raise these to the caller; they are carried inside
a Result so the UI can turn them into status text.
"""

from typing import Optional


class LauncherError(Exception):
    """Base class for all launcher errors."""


class ConnectionFailed(LauncherError):
    """The launcher could not be reached after all connect attempts."""

    def __init__(self, attempts: int, message: Optional[str] = None):
        self.attempts = attempts
        if message is None:
            message = (
                f"Failed to connect to launcher after {attempts} attempts. "
                "Make sure the launcher is powered on and this device has joined "
                "its WiFi access point."
            )
        super().__init__(message)


class CommandRejected(LauncherError):
    """The launcher answered a request with a non-2xx HTTP status."""

    def __init__(self, status_code: int, path: str):
        self.status_code = status_code
        self.path = path
        super().__init__(f"Launcher rejected {path} (HTTP {status_code})")


class TransportError(LauncherError):
    """Network failure or timeout while talking to the launcher."""


class MalformedResponse(LauncherError):
    """A status or statistics payload could not be parsed as JSON."""


class InvalidSessionState(LauncherError):
    """A command is not valid in the current session state."""

"""
HTTP client for the launcher command API.

The launcher firmware serves a small JSON API:

    GET  /status          session status
    POST /start-session   start a session with launch parameters
    POST /stop-session    stop the running session
    POST /throw-ball      launch one ball
    GET  /statistics      aggregate statistics for the last session

Every call returns a Result instead of raising, so callers can turn
failures into status text. The only retry is the transport's single
reconnect attempt; anything more is up to the caller.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .config import DeviceConfig
from .errors import CommandRejected, TransportError
from .types import LaunchParameters, Result

logger = logging.getLogger(__name__)

STATUS_PATH = "/status"
START_SESSION_PATH = "/start-session"
STOP_SESSION_PATH = "/stop-session"
THROW_BALL_PATH = "/throw-ball"
STATISTICS_PATH = "/statistics"


class DeviceClient:
    """
    Executes requests against the launcher.

    Example:
        client = DeviceClient(DeviceConfig())
        result = client.get_status()
        if result.ok:
            print(result.value)
    """

    TRANSPORT_RETRIES = 1

    def __init__(
        self,
        config: Optional[DeviceConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Device address and timeouts (defaults to the AP address)
            transport: Custom httpx transport, e.g. a simulated launcher.
                       Defaults to an HTTP transport with one connect retry.
        """
        self.config = config or DeviceConfig()
        timeout = httpx.Timeout(
            self.config.read_timeout,
            connect=self.config.connect_timeout,
            read=self.config.read_timeout,
            write=self.config.write_timeout,
        )
        if transport is None:
            transport = httpx.HTTPTransport(retries=self.TRANSPORT_RETRIES)
        self._client = httpx.Client(
            base_url=self.config.base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def get(self, path: str) -> Result[str]:
        """
        Issue a GET request.

        Returns:
            Result carrying the response body on 2xx, otherwise
            CommandRejected (HTTP status) or TransportError.
        """
        return self._request("GET", path)

    def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Result[str]:
        """
        Issue a POST request with an optional JSON payload.

        Parameterless commands send an empty JSON-typed body, which the
        firmware expects.
        """
        if payload is None:
            return self._request(
                "POST", path, content=b"", headers={"Content-Type": "application/json"}
            )
        return self._request("POST", path, json=payload)

    def _request(self, method: str, path: str, **kwargs) -> Result[str]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            return Result.failure(TransportError(f"{method} {path} failed: {e}"))

        if not response.is_success:
            logger.warning("%s %s returned HTTP %d", method, path, response.status_code)
            return Result.failure(CommandRejected(response.status_code, path))

        logger.debug("%s %s -> %s", method, path, response.text)
        return Result.success(response.text)

    # =========================================================================
    # Launcher commands
    # =========================================================================

    def get_status(self) -> Result[str]:
        """GET /status - current session status."""
        return self.get(STATUS_PATH)

    def get_statistics(self) -> Result[str]:
        """GET /statistics - statistics of the last session."""
        return self.get(STATISTICS_PATH)

    def start_session(self, params: LaunchParameters) -> Result[str]:
        """POST /start-session - start a session with the full parameter set."""
        return self.post(START_SESSION_PATH, params.to_payload())

    def stop_session(self) -> Result[str]:
        """POST /stop-session - stop the running session."""
        return self.post(STOP_SESSION_PATH)

    def throw_ball(self) -> Result[str]:
        """POST /throw-ball - launch one ball."""
        return self.post(THROW_BALL_PATH)

"""
Connection lifecycle for the launcher.

connect() probes the command API until the launcher answers, then opens
the telemetry WebSocket on a background thread. Stream errors are only
logged; reconnect policy belongs to the caller.
"""

import logging
import threading
import time
from typing import Callable, Optional

import websocket

from .device_client import DeviceClient
from .errors import ConnectionFailed
from .types import Result

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], None]


class ConnectionSession:
    """
    Owns the launcher's streaming channel.

    Example:
        session = ConnectionSession(client, ws_url="ws://192.168.4.1:81")
        session.on_message(lambda text: print(text))
        result = session.connect()
        if not result.ok:
            print(result.error)
    """

    MAX_ATTEMPTS = 3
    RETRY_DELAY_SEC = 2.0
    CLOSE_REASON = b"Disconnecting"

    def __init__(
        self,
        client: DeviceClient,
        ws_url: Optional[str] = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SEC,
    ):
        """
        Initialize the session.

        Args:
            client: Client used for the status probe
            ws_url: Telemetry stream URL. None disables the stream.
            max_attempts: Status probes before giving up
            retry_delay: Seconds between probes
        """
        self._client = client
        self._ws_url = ws_url
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._connected = False
        self._ws: Optional[websocket.WebSocketApp] = None
        self._ws_thread: Optional[threading.Thread] = None
        self._handler: Optional[MessageHandler] = None
        self._lock = threading.Lock()

    def connect(self) -> Result[None]:
        """
        Probe the launcher and open the stream.

        Returns:
            Success once a probe answers, ConnectionFailed after all attempts.
        """
        for attempt in range(1, self._max_attempts + 1):
            logger.info("Connecting to launcher (attempt %d/%d)", attempt, self._max_attempts)
            result = self._client.get_status()
            if result.ok:
                self._open_stream()
                with self._lock:
                    self._connected = True
                logger.info("Connected to launcher at %s", self._client.base_url)
                return Result.success()

            logger.warning("Connection attempt %d failed: %s", attempt, result.error)
            if attempt < self._max_attempts:
                time.sleep(self._retry_delay)

        return Result.failure(ConnectionFailed(self._max_attempts))

    def disconnect(self) -> None:
        """Close the stream with a normal closure. No-op when already disconnected."""
        with self._lock:
            ws, thread = self._ws, self._ws_thread
            self._ws = None
            self._ws_thread = None
            was_connected = self._connected
            self._connected = False

        self._close_stream(ws, thread)
        if was_connected:
            logger.info("Disconnected from launcher")

    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def on_message(self, handler: Optional[MessageHandler]) -> None:
        """Register the handler for inbound stream text, replacing any previous one."""
        with self._lock:
            self._handler = handler

    def _open_stream(self):
        if not self._ws_url:
            return

        ws = websocket.WebSocketApp(
            self._ws_url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        thread = threading.Thread(target=ws.run_forever, daemon=True)
        with self._lock:
            old_ws, old_thread = self._ws, self._ws_thread
            self._ws = ws
            self._ws_thread = thread

        # Reconnecting replaces the previous stream
        self._close_stream(old_ws, old_thread)
        thread.start()

    def _close_stream(self, ws, thread):
        if ws is not None:
            ws.close(status=websocket.STATUS_NORMAL, reason=self.CLOSE_REASON)
        if thread is not None and thread.is_alive():
            thread.join(timeout=2.0)

    def _on_open(self, ws):  # pylint: disable=unused-argument
        logger.info("Telemetry stream connected: %s", self._ws_url)

    def _on_message(self, ws, message):  # pylint: disable=unused-argument
        logger.debug("Received: %s", message)
        with self._lock:
            handler = self._handler
        if handler:
            handler(message)

    def _on_error(self, ws, error):  # pylint: disable=unused-argument
        logger.error("Telemetry stream error: %s", error)

    def _on_close(self, ws, close_status_code, close_msg):  # pylint: disable=unused-argument
        logger.info("Telemetry stream closed: %s %s", close_status_code, close_msg)

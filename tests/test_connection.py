"""Tests for the launcher connection lifecycle."""

from unittest.mock import Mock, patch

import websocket

from openlauncher.connection import ConnectionSession
from openlauncher.device_client import DeviceClient
from openlauncher.errors import ConnectionFailed
from openlauncher.mock_device import MockLauncherDevice


class TestConnect:
    """Tests for the status probe and retry policy."""

    def setup_method(self):
        """Set up a simulated launcher without a stream."""
        self.device = MockLauncherDevice()
        self.client = DeviceClient(transport=self.device.transport())
        self.session = ConnectionSession(self.client, ws_url=None, retry_delay=0)

    def test_connect_first_attempt(self):
        """A reachable launcher connects on the first probe."""
        result = self.session.connect()

        assert result.ok
        assert self.session.is_connected()
        assert self.device.request_count("/status") == 1

    def test_success_on_second_attempt(self):
        """A probe failure is retried and no third attempt is made."""
        self.device.fail("/status", 503, times=1)

        result = self.session.connect()

        assert result.ok
        assert self.session.is_connected()
        assert self.device.request_count("/status") == 2

    def test_three_failures(self):
        """Three failed probes yield ConnectionFailed."""
        self.device.unreachable = True

        result = self.session.connect()

        assert not result.ok
        assert isinstance(result.error, ConnectionFailed)
        assert result.error.attempts == 3
        assert "3 attempts" in str(result.error)
        assert "WiFi" in str(result.error)
        assert not self.session.is_connected()
        assert self.device.request_count("/status") == 3

    def test_retry_delay_between_attempts(self):
        """Probes are spaced by the retry delay, with no wait after the last one."""
        self.device.unreachable = True
        session = ConnectionSession(self.client, ws_url=None)

        with patch("openlauncher.connection.time.sleep") as sleep:
            session.connect()

        assert sleep.call_count == 2
        sleep.assert_called_with(2.0)

    def test_no_wait_on_success(self):
        session = ConnectionSession(self.client, ws_url=None)

        with patch("openlauncher.connection.time.sleep") as sleep:
            session.connect()

        sleep.assert_not_called()


class TestStream:
    """Tests for the telemetry stream lifecycle."""

    def setup_method(self):
        """Set up a simulated launcher with a patched WebSocketApp."""
        self.device = MockLauncherDevice()
        self.client = DeviceClient(transport=self.device.transport())
        self.session = ConnectionSession(
            self.client, ws_url="ws://192.168.4.1:81", retry_delay=0
        )

    def test_stream_opened_after_probe(self):
        """A successful connect opens the stream on a background thread."""
        with patch("openlauncher.connection.websocket.WebSocketApp") as app_cls:
            self.session.connect()

        app_cls.assert_called_once()
        assert app_cls.call_args[0][0] == "ws://192.168.4.1:81"
        self.session._ws_thread.join(timeout=1.0)
        app_cls.return_value.run_forever.assert_called_once()

    def test_stream_not_opened_on_failure(self):
        """No stream is opened when every probe fails."""
        self.device.unreachable = True

        with patch("openlauncher.connection.websocket.WebSocketApp") as app_cls:
            self.session.connect()

        app_cls.assert_not_called()

    def test_disconnect_normal_closure(self):
        """disconnect closes the stream with status 1000."""
        with patch("openlauncher.connection.websocket.WebSocketApp") as app_cls:
            self.session.connect()
            self.session.disconnect()

        app_cls.return_value.close.assert_called_once_with(
            status=websocket.STATUS_NORMAL, reason=b"Disconnecting"
        )
        assert not self.session.is_connected()

    def test_disconnect_idempotent(self):
        """A second disconnect is a no-op."""
        with patch("openlauncher.connection.websocket.WebSocketApp") as app_cls:
            self.session.connect()
            self.session.disconnect()
            self.session.disconnect()

        assert app_cls.return_value.close.call_count == 1

    def test_reconnect_replaces_stream(self):
        """Connecting again closes the previous stream, leaving one open."""
        streams = []

        def make_stream(*args, **kwargs):
            stream = Mock()
            streams.append(stream)
            return stream

        with patch("openlauncher.connection.websocket.WebSocketApp", side_effect=make_stream):
            self.session.connect()
            self.session.connect()

            assert len(streams) == 2
            streams[0].close.assert_called_once_with(
                status=websocket.STATUS_NORMAL, reason=b"Disconnecting"
            )
            streams[1].close.assert_not_called()
            assert self.session._ws is streams[1]

            self.session.disconnect()

        assert all(s.close.call_count == 1 for s in streams)
        assert self.session._ws is None

    def test_disconnect_when_never_connected(self):
        self.session.disconnect()

        assert not self.session.is_connected()


class TestMessageHandler:
    """Tests for inbound message dispatch."""

    def setup_method(self):
        self.session = ConnectionSession(Mock(), ws_url=None)

    def test_handler_receives_raw_text(self):
        """Messages are passed through unparsed."""
        handler = Mock()
        self.session.on_message(handler)

        self.session._on_message(None, '{"event": "shot"}')

        handler.assert_called_once_with('{"event": "shot"}')

    def test_handler_replaced(self):
        """Only the most recently registered handler is called."""
        first, second = Mock(), Mock()
        self.session.on_message(first)
        self.session.on_message(second)

        self.session._on_message(None, "hello")

        first.assert_not_called()
        second.assert_called_once_with("hello")

    def test_no_handler(self):
        """Messages without a handler are dropped."""
        self.session._on_message(None, "hello")

    def test_stream_errors_do_not_reconnect(self):
        """Close and error events are only logged."""
        self.session._on_error(None, RuntimeError("reset"))
        self.session._on_close(None, 1006, "abnormal")

        assert not self.session.is_connected()

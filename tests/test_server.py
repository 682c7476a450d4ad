"""Tests for the Socket.IO bridge."""

import time

import pytest

from openlauncher import server
from openlauncher import session_logger as session_logger_module
from openlauncher.config import DeviceConfig
from openlauncher.types import LaunchMode, LaunchParameters


def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def events(client, name):
    """Arguments of every received event with the given name."""
    return [msg["args"][0] for msg in client.get_received() if msg["name"] == name]


@pytest.fixture(autouse=True)
def no_session_log(monkeypatch):
    monkeypatch.setattr(session_logger_module, "_session_logger", None)


class TestBridge:
    """Tests for UI events relayed to the controller."""

    def setup_method(self):
        """Start a controller against the simulated launcher."""
        server.start_controller(DeviceConfig(poll_interval=0.05), mock=True)
        self.client = server.socketio.test_client(server.app)

    def teardown_method(self):
        if self.client.is_connected():
            self.client.disconnect()
        server.stop_controller()

    def test_connect_sends_session(self):
        """A new client immediately receives the session state."""
        payloads = events(self.client, "session_state")

        assert payloads
        assert payloads[0]["mock_mode"] is True
        assert payloads[0]["state"]["sessionActive"] is False
        assert payloads[0]["summary"] is None

    def test_api_state(self):
        response = server.app.test_client().get("/api/state")

        assert response.status_code == 200
        data = response.get_json()
        assert data["state"]["ballsRemaining"] == 0
        assert data["connected"] is False

    def test_invalid_parameters_rejected(self):
        """Invalid parameters are reported without contacting the launcher."""
        self.client.get_received()

        self.client.emit("start_session", {"mode": "LOB"})

        errors = events(self.client, "command_error")
        assert errors and errors[0]["command"] == "start"
        assert server.mock_device.request_count() == 0

    @pytest.mark.parametrize("payload", [5, "FOREHAND", {"mode": "MANUAL", "throwInterval": "nan"}])
    def test_unusable_start_payload_rejected(self, payload):
        """Payloads that cannot become parameters are reported as command_error."""
        self.client.get_received()

        self.client.emit("start_session", payload)

        errors = events(self.client, "command_error")
        assert errors and errors[0]["command"] == "start"
        assert server.mock_device.request_count() == 0

    def test_start_and_stop(self):
        """Start and stop events drive a full session."""
        self.client.emit("start_session", {"mode": "MANUAL", "ballCount": "3", "throwInterval": "30"})
        assert wait_until(lambda: server.controller.is_active)
        assert server.controller.parameters.ball_count == 3

        self.client.emit("stop_session")
        assert wait_until(lambda: server.controller.summary is not None)
        assert not server.controller.is_active

        self.client.emit("dismiss_summary")
        assert server.controller.summary is None

    def test_manual_throw(self):
        self.client.emit("start_session", {"mode": "BACKHAND", "ballCount": 5, "throwInterval": 30})
        assert wait_until(lambda: server.controller.is_active)

        self.client.emit("throw_ball")

        assert wait_until(lambda: server.controller.state.balls_remaining == 4)

    def test_throw_while_idle_reports_error(self):
        """Rejected commands come back as command_error."""
        self.client.emit("throw_ball")

        assert wait_until(lambda: server.controller.status_message.startswith("Cannot throw"))
        assert server.mock_device.request_count("/throw-ball") == 0

    def test_set_throw_interval(self):
        self.client.emit("start_session", {"mode": "FOREHAND", "throwInterval": 30})
        assert wait_until(lambda: server.controller.is_active)

        self.client.emit("set_throw_interval", {"interval": 1.5})

        assert server.controller.parameters.throw_interval == 1.5

    def test_set_throw_interval_invalid(self):
        self.client.get_received()

        self.client.emit("set_throw_interval", {"interval": "often"})
        self.client.emit("set_throw_interval", {"interval": "inf"})

        errors = events(self.client, "command_error")
        assert [e["command"] for e in errors] == ["set_throw_interval"] * 2

    def test_reconnect_device(self):
        """reconnect_device connects to the launcher."""
        self.client.emit("reconnect_device")

        assert wait_until(lambda: server.controller.is_connected)
        assert server.mock_device.request_count("/status") >= 1


class TestControllerLifecycle:
    """Tests for building and releasing the controller."""

    def test_stop_controller_stops_session(self):
        """Shutting down stops a running session first."""
        controller = server.start_controller(DeviceConfig(poll_interval=0.05), mock=True)
        controller.start_session(LaunchParameters(mode=LaunchMode.RANDOM, throw_interval=30))
        device = server.mock_device

        server.stop_controller()

        assert server.controller is None
        assert not device.session_active
        assert server.session_payload()["status"] == "Launcher controller not started"

    def test_restart_replaces_controller(self):
        first = server.start_controller(mock=True)
        second = server.start_controller(mock=True)
        try:
            assert server.controller is second
            assert second is not first
        finally:
            server.stop_controller()

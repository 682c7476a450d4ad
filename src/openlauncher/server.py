"""
WebSocket bridge for an OpenLauncher UI.

Relays the training session controller to a web front-end via
Flask-SocketIO: UI events become controller commands, and every status,
state and summary change is pushed back to all clients.
"""

import argparse
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO

from .config import DeviceConfig
from .connection import ConnectionSession
from .controller import TrainingSessionController
from .device_client import DeviceClient
from .mock_device import MockLauncherDevice
from .session_logger import init_session_logger
from .types import LaunchParameters, Result, SessionState, SessionSummary, summary_as_dict

# Configure logging
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode="threading")

# Global state
controller: Optional[TrainingSessionController] = None
mock_device: Optional[MockLauncherDevice] = None
mock_mode: bool = False

# Delay before the first connect attempt, letting the UI attach first
STARTUP_CONNECT_DELAY_SEC = 1.0


def session_payload() -> dict:
    """Everything a UI needs to render the current session."""
    if controller is None:
        return {
            "state": SessionState().to_dict(),
            "parameters": None,
            "summary": None,
            "status": "Launcher controller not started",
            "connected": False,
            "mock_mode": mock_mode,
        }

    params = controller.parameters
    return {
        "state": controller.state.to_dict(),
        "parameters": params.to_dict() if params else None,
        "summary": summary_as_dict(controller.summary),
        "status": controller.status_message,
        "connected": controller.is_connected,
        "mock_mode": mock_mode,
    }


@app.route("/api/state")
def api_state():
    """Current session as JSON."""
    return jsonify(session_payload())


def on_status(message: str):
    """Controller status callback - push to all clients."""
    socketio.emit("status", {"message": message})


def on_state(state: SessionState):  # pylint: disable=unused-argument
    """Controller state callback - push the full session to all clients."""
    socketio.emit("session_state", session_payload())


def on_summary(summary: SessionSummary):
    """Controller summary callback."""
    socketio.emit("session_summary", summary.to_dict())
    print(f"[SUMMARY] {summary.total_balls} balls in {summary.session_duration}s "
          f"({summary.balls_per_minute:.1f}/min, avg speed {summary.average_speed}%)")


def on_device_message(text: str):
    """Relay raw telemetry stream text; its format belongs to the firmware."""
    socketio.emit("device_message", {"data": text})


def run_command(name: str, command: Callable[[], Result]):
    """Run a controller command off the SocketIO handler thread."""
    def task():
        result = command()
        if not result.ok:
            socketio.emit("command_error", {"command": name, "error": str(result.error)})
    socketio.start_background_task(task)


@socketio.on("connect")
def handle_connect():
    """Handle client connection."""
    print("Client connected")
    socketio.emit("session_state", session_payload())


@socketio.on("disconnect")
def handle_disconnect():
    """Handle client disconnection."""
    print("Client disconnected")


@socketio.on("get_session")
def handle_get_session():
    """Get current session data."""
    socketio.emit("session_state", session_payload())


@socketio.on("start_session")
def handle_start_session(data):
    """Start a session with the parameters chosen in the UI."""
    if controller is None:
        socketio.emit("command_error", {"command": "start", "error": "Controller not started"})
        return

    try:
        params = LaunchParameters.from_dict(data or {})
    except (TypeError, ValueError) as e:
        socketio.emit("command_error", {"command": "start", "error": str(e)})
        return

    run_command("start", lambda: controller.start_session(params))


@socketio.on("stop_session")
def handle_stop_session():
    """Stop the running session."""
    if controller:
        run_command("stop", controller.stop_session)


@socketio.on("throw_ball")
def handle_throw_ball():
    """Launch one ball on demand."""
    if controller:
        run_command("throw", controller.throw_ball)


@socketio.on("set_throw_interval")
def handle_set_throw_interval(data):
    """Change the autonomous throw interval."""
    if not controller:
        return
    try:
        controller.update_throw_interval(float(data.get("interval")))
    except (TypeError, ValueError, AttributeError) as e:
        socketio.emit("command_error", {"command": "set_throw_interval", "error": str(e)})
        return
    socketio.emit("session_state", session_payload())


@socketio.on("dismiss_summary")
def handle_dismiss_summary():
    """Discard the pending session summary."""
    if controller:
        controller.dismiss_summary()
        socketio.emit("session_state", session_payload())


@socketio.on("reconnect_device")
def handle_reconnect_device():
    """Retry the launcher connection."""
    if controller:
        run_command("connect", controller.connect)


def start_controller(config: Optional[DeviceConfig] = None, mock: bool = False) -> TrainingSessionController:
    """
    Build the controller for one launcher.

    Args:
        config: Launcher address and timing
        mock: Use the in-process simulated launcher instead of the network
    """
    global controller, mock_device, mock_mode  # pylint: disable=global-statement

    # Stop any existing controller first
    if controller is not None:
        print("[CONTROLLER] Stopping existing controller before starting new one")
        stop_controller()

    config = config or DeviceConfig()
    mock_mode = mock

    if mock:
        mock_device = MockLauncherDevice()
        client = DeviceClient(config, transport=mock_device.transport())
        # The simulated launcher has no telemetry stream
        ws_url = None
    else:
        mock_device = None
        client = DeviceClient(config)
        ws_url = config.ws_url

    connection = ConnectionSession(
        client,
        ws_url=ws_url,
        max_attempts=config.connect_attempts,
        retry_delay=config.connect_retry_delay,
    )
    connection.on_message(on_device_message)

    controller = TrainingSessionController(
        client,
        connection,
        poll_interval=config.poll_interval,
        status_callback=on_status,
        state_callback=on_state,
        summary_callback=on_summary,
    )
    return controller


def stop_controller():
    """Stop any running session and release the launcher."""
    global controller  # pylint: disable=global-statement

    if controller:
        if controller.is_active:
            result = controller.stop_session()
            if not result.ok:
                print(f"[CONTROLLER] Could not stop session cleanly: {result.error}")
        controller.close()
        controller = None


def connect_on_startup():
    """Connect shortly after startup, as the UI expects a ready launcher."""
    time.sleep(STARTUP_CONNECT_DELAY_SEC)
    if controller:
        controller.connect()


def main():
    """Run the server."""
    parser = argparse.ArgumentParser(description="OpenLauncher UI Server")
    parser.add_argument("--device-host", help="Launcher IP (default: 192.168.4.1 or $OPENLAUNCHER_HOST)")
    parser.add_argument("--device-port", type=int, help="Launcher HTTP port (default: 80)")
    parser.add_argument("--ws-port", type=int, help="Launcher WebSocket port (default: 81)")
    parser.add_argument(
        "--mock", "-m", action="store_true", help="Run against a simulated launcher"
    )
    parser.add_argument(
        "--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--web-port", type=int, default=8080, help="Web server port (default: 8080)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-dir",
        help="Directory for session logs (default: ~/openlauncher_sessions)"
    )
    parser.add_argument(
        "--no-logging", action="store_true",
        help="Disable session logging"
    )
    args = parser.parse_args()

    print("=" * 50)
    print("  OpenLauncher UI Server")
    print("=" * 50)
    print()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize session logger
    if not args.no_logging and not args.mock:
        log_dir = Path(args.log_dir) if args.log_dir else None
        init_session_logger(log_dir=log_dir, enabled=True)
        print("Session logging enabled")
    else:
        init_session_logger(enabled=False)
        if args.no_logging:
            print("Session logging DISABLED")

    config = DeviceConfig.from_env()
    if args.device_host:
        config.host = args.device_host
    if args.device_port:
        config.http_port = args.device_port
    if args.ws_port:
        config.ws_port = args.ws_port

    start_controller(config, mock=args.mock)

    if args.mock:
        print("Running in MOCK mode - no launcher required")
    else:
        print(f"Launcher: {config.base_url} (telemetry {config.ws_url})")

    socketio.start_background_task(connect_on_startup)

    print(f"Server starting at http://{args.host}:{args.web_port}")
    print()

    try:
        socketio.run(app, host=args.host, port=args.web_port, debug=False, allow_unsafe_werkzeug=True)
    finally:
        stop_controller()


if __name__ == "__main__":
    main()

"""
Training session orchestration.

TrainingSessionController runs the session state machine

    Idle --start accepted--> Active --stop accepted--> Idle (+ summary)

and, while Active, two independent background threads:

- the status poller, which refreshes SessionState from the launcher
  every poll interval, and
- the throw scheduler, which launches a ball every throw interval until
  the launcher reports no balls remaining.

The launcher is the source of truth for consumed balls, so the scheduler
never counts throws itself; it only reads balls_remaining as updated by
status refreshes. Both threads are created on entering Active and are
stopped and joined on leaving it. Each is tagged with the session
generation it was spawned for, and status results from an older
generation are discarded.
"""

import logging
import math
import threading
from dataclasses import replace
from typing import Callable, Optional

from .connection import ConnectionSession
from .device_client import DeviceClient
from .errors import InvalidSessionState, MalformedResponse
from .parsing import parse_status
from .session_logger import get_session_logger
from .summary import build_summary
from .types import LaunchParameters, Result, SessionState, SessionSummary

logger = logging.getLogger(__name__)


class TrainingSessionController:
    """
    Controls one launcher's training sessions.

    Example:
        controller = TrainingSessionController(client, connection)
        controller.connect()

        params = LaunchParameters(mode=LaunchMode.FOREHAND, ball_count=30)
        result = controller.start_session(params)
        if not result.ok:
            print(controller.status_message)

        ...
        summary = controller.stop_session().value
        print(f"{summary.total_balls} balls, {summary.balls_per_minute:.1f}/min")
    """

    POLL_INTERVAL_SEC = 2.0
    LOOP_JOIN_TIMEOUT_SEC = 5.0
    INITIAL_STATUS = "Connect to the launcher's WiFi, then start a session"

    def __init__(
        self,
        client: DeviceClient,
        connection: Optional[ConnectionSession] = None,
        poll_interval: float = POLL_INTERVAL_SEC,
        status_callback: Optional[Callable[[str], None]] = None,
        state_callback: Optional[Callable[[SessionState], None]] = None,
        summary_callback: Optional[Callable[[SessionSummary], None]] = None,
    ):
        """
        Initialize the controller.

        Args:
            client: Client for launcher commands
            connection: Streaming connection, used by connect()/disconnect()
            poll_interval: Seconds between status polls while Active
            status_callback: Called with the status message on every change
            state_callback: Called with each new SessionState snapshot
            summary_callback: Called once with the summary of each session
        """
        self._client = client
        self._connection = connection
        self._poll_interval = poll_interval
        self._status_callback = status_callback
        self._state_callback = state_callback
        self._summary_callback = summary_callback

        # Held for the duration of start/stop/throw; concurrent commands are rejected
        self._command_lock = threading.Lock()
        # Guards every field below
        self._state_lock = threading.RLock()

        self._state = SessionState()
        self._params: Optional[LaunchParameters] = None
        self._summary: Optional[SessionSummary] = None
        self._status_message = self.INITIAL_STATUS
        self._generation = 0
        self._stop_event: Optional[threading.Event] = None
        self._poll_thread: Optional[threading.Thread] = None
        self._throw_thread: Optional[threading.Thread] = None

    # =========================================================================
    # UI-facing state
    # =========================================================================

    @property
    def state(self) -> SessionState:
        """Current SessionState snapshot."""
        with self._state_lock:
            return self._state

    @property
    def summary(self) -> Optional[SessionSummary]:
        """Summary of the last finished session, until dismissed or a new start."""
        with self._state_lock:
            return self._summary

    @property
    def parameters(self) -> Optional[LaunchParameters]:
        """Parameters of the current or last session."""
        with self._state_lock:
            return self._params

    @property
    def status_message(self) -> str:
        with self._state_lock:
            return self._status_message

    @property
    def is_active(self) -> bool:
        with self._state_lock:
            return self._state.active

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected()

    def dismiss_summary(self):
        """Discard the pending summary."""
        with self._state_lock:
            self._summary = None

    def update_throw_interval(self, seconds: float):
        """
        Change the autonomous throw interval.

        Takes effect on the scheduler's next iteration.
        """
        if not math.isfinite(seconds) or seconds <= 0:
            raise ValueError(f"throw interval must be a positive number, got {seconds}")
        with self._state_lock:
            if self._params is not None:
                self._params = replace(self._params, throw_interval=seconds)
        logger.info("Throw interval set to %.2fs", seconds)

    # =========================================================================
    # Connection
    # =========================================================================

    def connect(self) -> Result[None]:
        """Connect to the launcher and open the telemetry stream."""
        if self._connection is None:
            return Result.failure(InvalidSessionState("No connection configured"))

        self._set_status("Connecting to launcher...")
        result = self._connection.connect()
        if result.ok:
            self._set_status("Connected to launcher! Ready to start training.")
        else:
            self._set_status(f"Connection failed: {result.error}")
        return result

    def disconnect(self):
        """Close the telemetry stream."""
        if self._connection is not None:
            self._connection.disconnect()
            self._set_status("Disconnected from launcher")

    def close(self):
        """Stop background threads and release the stream and HTTP client."""
        self._teardown_loops()
        if self._connection is not None:
            self._connection.disconnect()
        self._client.close()

    # =========================================================================
    # Commands
    # =========================================================================

    def start_session(self, params: LaunchParameters) -> Result[None]:
        """
        Start a session with the given parameters.

        On success the controller is Active, SessionState reflects the
        launcher's initial status and both background threads are running.
        On failure the controller stays Idle and the error is returned.
        """
        if not self._command_lock.acquire(blocking=False):
            return self._reject("start", "Another command is in progress")
        try:
            if self.is_active:
                return self._reject("start", "Session already active")

            self._set_status("Starting session...")
            result = self._client.start_session(params)
            if not result.ok:
                self._set_status(f"Error starting session: {result.error}")
                return Result.failure(result.error)

            with self._state_lock:
                self._generation += 1
                generation = self._generation
                self._params = params
                self._summary = None
                self._state = SessionState(active=True, balls_remaining=params.ball_count)
                stop_event = threading.Event()
                self._stop_event = stop_event

            session_logger = get_session_logger()
            if session_logger:
                session_logger.start_session(params, device_url=self._client.base_url)

            logger.info("Session %d started: %s", generation, params)
            self._set_status(f"Session started: {params.mode.value} mode")
            self._notify_state()

            # Initial status must land before either loop reads state
            self._refresh_status(generation)
            self._start_loops(generation, stop_event)
            return Result.success()
        finally:
            self._command_lock.release()

    def stop_session(self) -> Result[SessionSummary]:
        """
        Stop the running session and build its summary.

        The summary is always produced once the launcher accepts the stop,
        using local values for anything the launcher's statistics lack.
        Rejected without contacting the launcher when Idle.
        """
        if not self._command_lock.acquire(blocking=False):
            return self._reject("stop", "Another command is in progress")
        try:
            if not self.is_active:
                return self._reject("stop", "No active session")

            self._set_status("Stopping session...")
            result = self._client.stop_session()
            if not result.ok:
                self._set_status(f"Error stopping session: {result.error}")
                return Result.failure(result.error)

            self._teardown_loops()
            self._set_status("Session stopped")

            final = self._fetch_status()
            with self._state_lock:
                if final.ok:
                    self._state = self._merge(self._state, final.value)
                self._state = replace(self._state, active=False)
                state = self._state
                params = self._params
            self._notify_state()

            stats = self._client.get_statistics()
            if not stats.ok:
                logger.warning("Statistics unavailable, using local values: %s", stats.error)
            summary = build_summary(params, state, stats.value if stats.ok else None)

            with self._state_lock:
                self._summary = summary

            session_logger = get_session_logger()
            if session_logger:
                session_logger.end_session(summary)

            self._set_status(
                f"Session complete: {summary.total_balls} balls in {summary.session_duration}s"
            )
            if self._summary_callback:
                self._summary_callback(summary)
            return Result.success(summary)
        finally:
            self._command_lock.release()

    def throw_ball(self) -> Result[None]:
        """Launch one ball on demand. Only valid while Active."""
        if not self._command_lock.acquire(blocking=False):
            return self._reject("throw", "Another command is in progress")
        try:
            with self._state_lock:
                if not self._state.active:
                    return self._reject("throw", "No active session")
                generation = self._generation

            result = self._client.throw_ball()
            if not result.ok:
                self._record_error(f"Error throwing ball: {result.error}")
                return Result.failure(result.error)

            session_logger = get_session_logger()
            if session_logger:
                session_logger.log_throw(source="manual")
            self._refresh_status(generation)
            return Result.success()
        finally:
            self._command_lock.release()

    # =========================================================================
    # Background loops
    # =========================================================================

    def _start_loops(self, generation: int, stop_event: threading.Event):
        poll_thread = threading.Thread(
            target=self._poll_loop,
            args=(generation, stop_event),
            name=f"status-poller-{generation}",
            daemon=True,
        )
        throw_thread = threading.Thread(
            target=self._throw_loop,
            args=(generation, stop_event),
            name=f"throw-scheduler-{generation}",
            daemon=True,
        )
        with self._state_lock:
            self._poll_thread = poll_thread
            self._throw_thread = throw_thread
        poll_thread.start()
        throw_thread.start()

    def _teardown_loops(self):
        """Leave Active: signal both loops and wait for them to exit."""
        with self._state_lock:
            stop_event = self._stop_event
            threads = [self._poll_thread, self._throw_thread]
            self._stop_event = None
            self._poll_thread = None
            self._throw_thread = None
            if self._state.active:
                self._state = replace(self._state, active=False)

        if stop_event is not None:
            stop_event.set()
        for thread in threads:
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout=self.LOOP_JOIN_TIMEOUT_SEC)
                if thread.is_alive():
                    logger.warning("%s still finishing a request; its result will be discarded",
                                   thread.name)

    def _poll_loop(self, generation: int, stop_event: threading.Event):
        logger.debug("Status poller %d started", generation)
        while not stop_event.wait(self._poll_interval):
            self._refresh_status(generation)
        logger.debug("Status poller %d stopped", generation)

    def _throw_loop(self, generation: int, stop_event: threading.Event):
        logger.debug("Throw scheduler %d started", generation)
        while not stop_event.is_set() and self._balls_remaining() > 0:
            with self._state_lock:
                interval = self._params.throw_interval

            if stop_event.wait(interval):
                break
            if self._balls_remaining() <= 0:
                break

            result = self._client.throw_ball()
            if stop_event.is_set():
                break
            if result.ok:
                session_logger = get_session_logger()
                if session_logger:
                    session_logger.log_throw(source="auto")
                self._refresh_status(generation)
            else:
                self._record_error(f"Error throwing ball: {result.error}")
        logger.debug("Throw scheduler %d stopped", generation)

    def _balls_remaining(self) -> int:
        with self._state_lock:
            return self._state.balls_remaining

    # =========================================================================
    # Status handling
    # =========================================================================

    def _fetch_status(self) -> Result[SessionState]:
        result = self._client.get_status()
        if not result.ok:
            return Result.failure(result.error)
        try:
            return Result.success(parse_status(result.value))
        except MalformedResponse as e:
            return Result.failure(e)

    def _refresh_status(self, generation: int):
        """Fetch status and merge it into SessionState if still current."""
        result = self._fetch_status()
        if not result.ok:
            self._record_error(f"Error getting status: {result.error}")
            return

        reported = result.value
        with self._state_lock:
            if generation != self._generation or not self._state.active:
                logger.debug("Discarding status from stale session %d", generation)
                return
            self._state = self._merge(self._state, reported)
            state = self._state

        if not reported.active:
            logger.info("Launcher reports no active session")

        session_logger = get_session_logger()
        if session_logger:
            session_logger.log_status(state)

        self._set_status(f"Shot {state.current_shot}, {state.balls_remaining} balls remaining")
        self._notify_state()

    @staticmethod
    def _merge(local: SessionState, reported: SessionState) -> SessionState:
        """Apply launcher values while keeping the session counters monotonic."""
        return replace(
            local,
            balls_remaining=min(local.balls_remaining, reported.balls_remaining),
            current_shot=max(local.current_shot, reported.current_shot),
            session_time=max(local.session_time, reported.session_time),
        )

    # =========================================================================
    # Status reporting
    # =========================================================================

    def _reject(self, command: str, reason: str) -> Result:
        logger.warning("Rejected %s: %s", command, reason)
        self._set_status(f"Cannot {command}: {reason}")
        return Result.failure(InvalidSessionState(reason))

    def _record_error(self, message: str):
        logger.error(message)
        session_logger = get_session_logger()
        if session_logger:
            session_logger.log_error(message)
        self._set_status(message)

    def _set_status(self, message: str):
        with self._state_lock:
            self._status_message = message
        if self._status_callback:
            self._status_callback(message)

    def _notify_state(self):
        if self._state_callback:
            self._state_callback(self.state)

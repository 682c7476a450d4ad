"""
Session logging for OpenLauncher training sessions.

Provides a structured JSON Lines record of every session: the parameters
it started with, status updates, throws, errors and the final summary.
"""

import json
import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .types import LaunchParameters, SessionState, SessionSummary

logger = logging.getLogger(__name__)


@dataclass
class SessionMetadata:
    """Metadata about a logged training session."""
    session_id: str
    start_time: str
    device_url: Optional[str]
    parameters: Dict[str, Any]


class SessionLogger:
    """
    Per-session logger for training runs.

    Creates one file per session:
    - session_YYYYMMDD_HHMMSS_<mode>.jsonl

    Log entry types:
    - session_start: Session metadata and launch parameters
    - status: Status reported by the launcher
    - throw: A throw command was accepted (source: "auto" or "manual")
    - error: Any command or parsing error
    - session_end: Session summary
    """

    DEFAULT_LOG_DIR = Path.home() / "openlauncher_sessions"

    def __init__(self, log_dir: Optional[Path] = None, enabled: bool = True):
        """
        Initialize session logger.

        Args:
            log_dir: Directory for log files (default: ~/openlauncher_sessions)
            enabled: Whether logging is enabled
        """
        self.log_dir = Path(log_dir) if log_dir else self.DEFAULT_LOG_DIR
        self.enabled = enabled

        self._session_id: Optional[str] = None
        self._session_file: Optional[Any] = None
        self._session_path: Optional[Path] = None
        # Poller and scheduler threads write concurrently
        self._lock = threading.Lock()

        self._stats = {
            "status_updates": 0,
            "throws": 0,
            "errors": 0,
        }

    def start_session(self, params: LaunchParameters, device_url: Optional[str] = None) -> str:
        """
        Start logging a new session.

        Args:
            params: Launch parameters of the session
            device_url: Base URL of the launcher

        Returns:
            Session ID
        """
        if not self.enabled:
            return ""

        if self._session_file:
            self.end_session()

        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now()
        self._session_id = timestamp.strftime("%Y%m%d_%H%M%S")
        self._session_path = self.log_dir / f"session_{self._session_id}_{params.mode.value.lower()}.jsonl"

        with self._lock:
            self._session_file = open(self._session_path, "w")  # pylint: disable=consider-using-with
            self._stats = {k: 0 for k in self._stats}

        metadata = SessionMetadata(
            session_id=self._session_id,
            start_time=timestamp.isoformat(),
            device_url=device_url,
            parameters=params.to_dict(),
        )
        self._write_entry("session_start", asdict(metadata))

        logger.info("Started session log: %s", self._session_path)
        return self._session_id

    def end_session(self, summary: Optional[SessionSummary] = None):
        """End the current session and write the summary."""
        if not self.enabled or not self._session_file:
            return

        self._write_entry("session_end", {
            "end_time": datetime.now().isoformat(),
            "stats": self.stats,
            "summary": summary.to_dict() if summary else None,
        })

        with self._lock:
            self._session_file.close()
            self._session_file = None

        logger.info("Session log saved: %s", self._session_path)

    def _write_entry(self, entry_type: str, data: Dict[str, Any]):
        """Write a log entry to the session file."""
        entry = {
            "ts": datetime.now().isoformat(),
            "type": entry_type,
            **data
        }

        with self._lock:
            if not self._session_file:
                return
            self._session_file.write(json.dumps(entry) + "\n")
            self._session_file.flush()

    def log_status(self, state: SessionState):
        """Log a status update applied to the session."""
        if not self.enabled:
            return

        with self._lock:
            self._stats["status_updates"] += 1

        self._write_entry("status", state.to_dict())

    def log_throw(self, source: str = "auto"):
        """Log an accepted throw command."""
        if not self.enabled:
            return

        with self._lock:
            self._stats["throws"] += 1
            throw_number = self._stats["throws"]

        self._write_entry("throw", {"throw_number": throw_number, "source": source})

    def log_error(self, error: str, context: Optional[Dict] = None):
        """Log an error."""
        if not self.enabled:
            return

        with self._lock:
            self._stats["errors"] += 1

        self._write_entry("error", {
            "error": error,
            "context": context or {},
        })

    @property
    def session_path(self) -> Optional[Path]:
        """Path of the current or last session file."""
        return self._session_path

    @property
    def session_id(self) -> Optional[str]:
        """Timestamp ID of the current or last session."""
        return self._session_id

    @property
    def stats(self) -> Dict[str, int]:
        """Status, throw and error counts for the current session."""
        with self._lock:
            return self._stats.copy()


# Global session logger instance
_session_logger: Optional[SessionLogger] = None


def get_session_logger() -> Optional[SessionLogger]:
    """Get the global session logger instance."""
    return _session_logger


def init_session_logger(log_dir: Optional[Path] = None, enabled: bool = True) -> SessionLogger:
    """
    Initialize and return the global session logger.

    Args:
        log_dir: Directory for log files
        enabled: Whether logging is enabled

    Returns:
        SessionLogger instance
    """
    global _session_logger  # pylint: disable=global-statement
    _session_logger = SessionLogger(log_dir=log_dir, enabled=enabled)
    return _session_logger

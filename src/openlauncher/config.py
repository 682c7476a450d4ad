"""
Launcher connection settings.

The launcher runs its own WiFi access point at a fixed address, so the
configuration surface is a single host plus the HTTP and WebSocket ports.
Environment variables override the defaults; the server CLI overrides both.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass
class DeviceConfig:
    """
    Address and timing settings for one launcher.

    Attributes:
        host: Launcher IP (the access point address by default)
        http_port: Port of the command API
        ws_port: Port of the telemetry WebSocket
        connect_timeout: Seconds to establish a TCP connection
        read_timeout: Seconds to wait for response data
        write_timeout: Seconds to send request data
        connect_attempts: Status probes made by connect()
        connect_retry_delay: Seconds between status probes
        poll_interval: Seconds between status polls during a session
    """
    host: str = "192.168.4.1"
    http_port: int = 80
    ws_port: int = 81
    connect_timeout: float = 15.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    connect_attempts: int = 3
    connect_retry_delay: float = 2.0
    poll_interval: float = 2.0

    ENV_HOST = "OPENLAUNCHER_HOST"
    ENV_HTTP_PORT = "OPENLAUNCHER_HTTP_PORT"
    ENV_WS_PORT = "OPENLAUNCHER_WS_PORT"

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.http_port}"

    @property
    def ws_url(self) -> str:
        return f"ws://{self.host}:{self.ws_port}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DeviceConfig":
        """Build a config from OPENLAUNCHER_* environment variables."""
        env = os.environ if environ is None else environ
        config = cls()
        if env.get(cls.ENV_HOST):
            config.host = env[cls.ENV_HOST]
        if env.get(cls.ENV_HTTP_PORT):
            config.http_port = int(env[cls.ENV_HTTP_PORT])
        if env.get(cls.ENV_WS_PORT):
            config.ws_port = int(env[cls.ENV_WS_PORT])
        return config

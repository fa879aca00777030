"""Server configuration.

Values come from, highest priority first:

1. Command-line options
2. Environment variables (``MINIHTTPD_*``)
3. The defaults below

``validate()`` runs eagerly at startup so a bad port or log level fails
before any socket is created.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from minihttpd.core.exceptions import ConfigError, InvalidAddress
from minihttpd.core.lib.endpoint import LOCALHOST, MAX_PORT, Endpoint
from minihttpd.core.lib.tcp_socket import DEFAULT_BACKLOG, DEFAULT_MAX_LENGTH
from minihttpd.core.utils.log_config import LOG_LEVELS

ENV_PREFIX: Final = "MINIHTTPD_"
DEFAULT_PORT: Final = 1701


@dataclass
class ServerConfig:
    """Settings for one server run.

    Attributes:
        host: IPv4 address to listen on
        port: Port to listen on; 0 lets the OS choose
        backlog: Listen queue depth
        data_dir: Directory files are served from
        max_header_size: Upper bound on a request's header block in bytes
        find_free_port: Fall back to a random free port if ``port`` is taken
        log_level: Console log level
    """

    host: str = LOCALHOST
    port: int = DEFAULT_PORT
    backlog: int = DEFAULT_BACKLOG
    data_dir: Path = field(default_factory=lambda: Path("data"))
    max_header_size: int = DEFAULT_MAX_LENGTH
    find_free_port: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ServerConfig":
        """Build a config from ``MINIHTTPD_*`` environment variables.

        Recognized variables:
            MINIHTTPD_HOST       Listen address (default: 127.0.0.1)
            MINIHTTPD_PORT       Listen port (default: 1701)
            MINIHTTPD_BACKLOG    Listen backlog (default: 128)
            MINIHTTPD_DATA_DIR   Served directory (default: data)
            MINIHTTPD_LOG_LEVEL  Console log level (default: INFO)
        """
        env = os.environ if environ is None else environ
        config = cls()
        try:
            if value := env.get(f"{ENV_PREFIX}HOST"):
                config.host = value
            if value := env.get(f"{ENV_PREFIX}PORT"):
                config.port = int(value)
            if value := env.get(f"{ENV_PREFIX}BACKLOG"):
                config.backlog = int(value)
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting in environment: {e}") from e
        if value := env.get(f"{ENV_PREFIX}DATA_DIR"):
            config.data_dir = Path(value)
        if value := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            config.log_level = value.upper()
        return config

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(self.host, self.port)

    def validate(self) -> None:
        """Raise ConfigError for values the server cannot run with."""
        try:
            Endpoint(self.host)
        except InvalidAddress as e:
            raise ConfigError(str(e)) from e
        if not 0 <= self.port <= MAX_PORT:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-{MAX_PORT}.")
        if self.backlog < 1:
            raise ConfigError(f"Invalid backlog: {self.backlog}. Must be positive.")
        if self.max_header_size < 1:
            raise ConfigError(f"Invalid max header size: {self.max_header_size}.")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level: {self.log_level}. Choose from {', '.join(LOG_LEVELS)}."
            )

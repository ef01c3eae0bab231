"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

One immutable value that every component receives at construction time.
Nothing reads configuration from globals after startup.

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest first), per field:                              │
    │                                                                     │
    │   1. Command-line argument                                          │
    │      └── fileserver --port=9000                                     │
    │                                                                     │
    │   2. Environment variable                                           │
    │      └── SERVER_PORT=9000 fileserver                                │
    │                                                                     │
    │   3. Default below                                                  │
    │      └── 8080                                                       │
    └─────────────────────────────────────────────────────────────────────┘

    ENVIRONMENT VARIABLES

    SERVER_HOST                 bind address          (default 0.0.0.0)
    SERVER_PORT                 bind port             (default 8080)
    SERVER_DOMAIN               expected Host header  (default: accept any)
    SERVER_WORKING_DIRECTORY    root of served files  (required)
    SERVER_LOG_LEVEL            logging level         (default INFO)

An empty value counts as unset, so SERVER_DOMAIN="" falls through to the
default exactly like a missing variable.

=============================================================================
IMMUTABILITY
=============================================================================

    @dataclass(frozen=True)

Handlers, the reader and the writer all hold a reference to the same
config. Freezing it means none of them can change what the others see,
and `dataclasses.replace(config, port=0)` gives tests a modified copy
without touching the original.

=============================================================================
"""

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional


# config field → environment variable
ENV_VARIABLES = {
    "host": "SERVER_HOST",
    "port": "SERVER_PORT",
    "server_domain": "SERVER_DOMAIN",
    "working_directory": "SERVER_WORKING_DIRECTORY",
    "log_level": "SERVER_LOG_LEVEL",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the file server.

    NETWORK
    - host, port, backlog, buffer_size, timeout

    FILES
    - working_directory, server_domain

    IDENTITY AND LOGGING
    - server_name, log_level, log_format

    Example:
        config = ServerConfig(working_directory="/srv/files", port=9000)
        config.validate()
    """

    host: str = "0.0.0.0"
    """Address to bind. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """Port to bind. 0 lets the OS choose a free one."""

    server_domain: str = ""
    """
    Expected Host header value. Requests naming another host get 400.
    Empty accepts any Host (or none).
    """

    working_directory: str = ""
    """Directory every request path is joined onto. Must exist."""

    backlog: int = 128
    """Connections the kernel may queue while one is being served."""

    buffer_size: int = 8192
    """Read buffer size per connection, in bytes."""

    timeout: Optional[float] = None
    """
    Per-connection socket deadline in seconds.
    None (the default) blocks forever: a client that stops mid-request
    stalls the whole server.
    """

    server_name: str = "HWServer"
    """Value of the Server response header."""

    log_level: str = "INFO"
    """DEBUG also logs every request line and header as it is read."""

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build a config from environment variables alone.

            SERVER_WORKING_DIRECTORY=/srv SERVER_PORT=9000 python -m fileserver
        """
        return cls.resolve({}, environ)

    @classmethod
    def resolve(
        cls,
        overrides: Mapping[str, object],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ServerConfig":
        """
        Merge command-line values, environment and defaults.

        Args:
            overrides: Field name → value from the command line. None or ""
                       means "not given".
            environ:   Environment mapping (os.environ by default).

        Raises:
            ValueError: If SERVER_PORT is not an integer.
        """
        if environ is None:
            environ = os.environ

        values = {}
        known = {f.name for f in fields(cls)}

        for name, value in overrides.items():
            if name in known and value not in (None, ""):
                values[name] = value

        for name, variable in ENV_VARIABLES.items():
            if name in values:
                continue
            env_value = environ.get(variable, "")
            if env_value:
                values[name] = env_value

        if "port" in values:
            values["port"] = _parse_port(values["port"])

        return cls(**values)

    def validate(self) -> None:
        """
        Check the configuration before anything binds or serves.

        Raises:
            ValueError: Describing the first problem found.
        """
        if not isinstance(self.port, int) or not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not self.working_directory:
            raise ValueError("No working directory given (--working-directory or SERVER_WORKING_DIRECTORY)")

        if not os.path.isdir(self.working_directory):
            raise ValueError(
                f"Working directory does not exist or is not a directory: "
                f"{self.working_directory}"
            )

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")


def _parse_port(value: object) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port: {value!r}. Must be an integer.") from None

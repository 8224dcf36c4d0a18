"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for TinyServe.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── tinyserve --port 3000                                      │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── TINYSERVE_PORT=3000 tinyserve                              │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The server core only READS a ServerConfig. Parsing command-line options is
the CLI's job (__main__.py); embedding code builds a ServerConfig directly.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .version import SERVER_NAME

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK         host, port, backlog, max_connections, timeout,
                    max_request_size
    CONTENT         root
    LOGGING         verbose, log_level
    IDENTITY        server_name

    =========================================================================
    EXAMPLES
    =========================================================================

        # Local development, any free port (tests)
        ServerConfig(host="127.0.0.1", port=0, root="tests/public")

        # Serve ./site on all interfaces with request dumps
        ServerConfig(port=3000, root="./site", verbose=True)

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces
    - "127.0.0.1" - Localhost only
    """

    port: int = 8080
    """
    The port number to listen on. 0 asks the OS for any free port; the
    real port is available from the server's `address` once it is ready.
    """

    max_connections: int = 50
    """
    Maximum number of accepted clients waiting to be served.
    One more gets a 503 and is closed.
    """

    backlog: Optional[int] = None
    """
    Listen backlog: connections the OS queues before we accept them.
    Defaults to max_connections.
    """

    timeout: float = 30.0
    """
    Socket timeout in seconds for every read and write on a client, and
    how long an accepted client may sit idle before it is closed.
    """

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """
    Most bytes one request may take, request line, headers and body
    together. Anything larger gets a 400 without its body being read.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root: str = "./public"
    """
    Document root for static files. Must be an existing directory when
    the server starts.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    verbose: bool = False
    """
    Log request headers and the start of each request body, and turn the
    log level down to DEBUG.
    """

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = SERVER_NAME
    """Value of the Server header."""

    def __post_init__(self):
        if self.backlog is None:
            self.backlog = self.max_connections

    @property
    def effective_log_level(self) -> int:
        """Numeric logging level; verbose mode forces DEBUG."""
        if self.verbose:
            return logging.DEBUG
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TINYSERVE_HOST              Bind address (default: 0.0.0.0)
        TINYSERVE_PORT              Port (default: 8080)
        TINYSERVE_ROOT              Document root (default: ./public)
        TINYSERVE_VERBOSE           1/true/yes/on to enable (default: off)
        TINYSERVE_MAX_CONNECTIONS   Connection limit (default: 50)
        TINYSERVE_TIMEOUT           Socket timeout in seconds (default: 30)
        TINYSERVE_MAX_REQUEST_SIZE  Request size limit in bytes (default: 10 MB)
        TINYSERVE_LOG_LEVEL         Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("TINYSERVE_HOST", "0.0.0.0"),
            port=int(os.getenv("TINYSERVE_PORT", "8080")),
            root=os.getenv("TINYSERVE_ROOT", "./public"),
            verbose=os.getenv("TINYSERVE_VERBOSE", "").strip().lower() in _TRUTHY,
            max_connections=int(os.getenv("TINYSERVE_MAX_CONNECTIONS", "50")),
            timeout=float(os.getenv("TINYSERVE_TIMEOUT", "30")),
            max_request_size=int(
                os.getenv("TINYSERVE_MAX_REQUEST_SIZE", str(10 * 1024 * 1024))
            ),
            log_level=os.getenv("TINYSERVE_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fails fast at startup rather than at first use.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < 1:
            raise ValueError("max_request_size must be >= 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of {', '.join(LOG_LEVELS)}."
            )

    def validate_root(self) -> None:
        """
        Check that the document root exists.

        Raises:
            ValueError: The root is missing or not a directory.
        """
        if not Path(self.root).is_dir():
            raise ValueError(f"Document root '{self.root}' does not exist")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# - Dataclass defaults match the command-line defaults
# - TINYSERVE_* environment variables for scripted setups
# - validate() at startup, validate_root() when serving begins
# =============================================================================

"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server.

Every value has a default that reproduces the server's fixed behaviour:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       DEFAULT BEHAVIOUR                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Listen on       0.0.0.0:8080                                      │
    │   Serve files     from ./www                                        │
    │   API prefix      /api                                              │
    │   Socket timeout  none (blocking reads and writes)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

So `python -m rawhttp` with no arguments and no environment behaves the
same as a hard-coded server would. Overrides come from code, from the
environment (ServerConfig.from_env) or from the command line (__main__).

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout, linger_timeout

    ROUTING
    - api_prefix, document_root

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces
    - "127.0.0.1" - Localhost only (tests, development)
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued, not yet accepted connections.
    """

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = blocking reads and writes with no deadline.
    """

    linger_timeout: float = 0.5
    """
    How long close() drains unread client data before releasing the socket.
    """

    # ─────────────────────────────────────────────────────────────────────
    # ROUTING
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "./www"
    """
    Directory static files are served from.
    GET /<path> maps to <document_root>/<path>.
    """

    api_prefix: str = "/api"
    """
    Requests whose path starts with this literal prefix go to the API handler.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    DEBUG also logs POST bodies and sniffed content types.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        RAWHTTP_HOST        Server host (default: 0.0.0.0)
        RAWHTTP_PORT        Server port (default: 8080)
        RAWHTTP_ROOT        Document root (default: ./www)
        RAWHTTP_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("RAWHTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("RAWHTTP_PORT", "8080")),
            document_root=os.getenv("RAWHTTP_ROOT", "./www"),
            log_level=os.getenv("RAWHTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once when the server is constructed so that a bad value
        fails at startup, not on the first connection.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.linger_timeout < 0:
            raise ValueError("linger_timeout must be >= 0")

        if not self.api_prefix.startswith("/"):
            raise ValueError(f"api_prefix must start with '/': {self.api_prefix!r}")

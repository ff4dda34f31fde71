"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

Run the server from the command line:

    python -m rawhttp
    python -m rawhttp --port 3000 --root ./public
    python -m rawhttp --log-level DEBUG

With no arguments the server listens on 0.0.0.0:8080 and serves ./www.
Environment variables (RAWHTTP_HOST, RAWHTTP_PORT, RAWHTTP_ROOT,
RAWHTTP_LOG_LEVEL) provide the defaults; command-line flags override them.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rawhttp",
        description="Minimal HTTP/1.1 server on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rawhttp                      # 0.0.0.0:8080, serving ./www
  python -m rawhttp --port 3000          # Custom port
  python -m rawhttp --root ./public      # Custom document root
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help=f"Document root for static files (default: {defaults.document_root})",
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"rawhttp {__version__}",
    )

    return parser


def main(argv=None):
    """Parse arguments, build the server and run it until interrupted."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(2)

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        document_root=args.root,
        log_level=args.log_level,
    )

    try:
        server = HTTPServer(config)
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
=============================================================================
TINYSERVE CLI ENTRY POINT
=============================================================================

    # Serve ./public on port 8080
    python -m tinyserve

    # Custom port and document root
    tinyserve --port 3000 --root ./site

    # Log request headers and bodies
    tinyserve --verbose

    # Allow cross-origin requests from any page
    tinyserve --cors

Defaults come from TINYSERVE_* environment variables when set (see
config.ServerConfig.from_env), otherwise from ServerConfig itself.
Command-line options override both.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from .config import LOG_LEVELS, ServerConfig
from .handlers.api import register_default_routes
from .middleware import CORSMiddleware
from .server import TinyServe
from .version import __version__


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, with defaults taken from `defaults`."""
    parser = argparse.ArgumentParser(
        prog="tinyserve",
        description="Minimal HTTP server for local development",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tinyserve                          # Serve ./public on 0.0.0.0:8080
  tinyserve --port 3000              # Custom port
  tinyserve --root ./site            # Custom document root
  tinyserve --verbose                # Log request headers and bodies
  tinyserve --cors                   # Enable CORS

API endpoints:
  GET  /api/status    Server status information
  POST /api/echo      Echo back request data
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--max-connections",
        type=int,
        default=defaults.max_connections,
        help=f"Maximum pending connections (default: {defaults.max_connections})"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help=f"Socket timeout in seconds (default: {defaults.timeout:g})"
    )

    parser.add_argument(
        "--max-request-size",
        type=int,
        default=defaults.max_request_size,
        help=f"Largest request accepted, in bytes (default: {defaults.max_request_size})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT AND LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.root,
        help=f"Document root directory (default: {defaults.root})"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=defaults.verbose,
        help="Log request headers and bodies"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--cors",
        action="store_true",
        help="Enable CORS for all origins"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"TinyServe {__version__}"
    )

    return parser


def build_server(args: argparse.Namespace) -> TinyServe:
    """Create a TinyServe with built-in routes from parsed arguments."""
    config = ServerConfig(
        host=args.host,
        port=args.port,
        root=args.root,
        verbose=args.verbose,
        max_connections=args.max_connections,
        timeout=args.timeout,
        max_request_size=args.max_request_size,
        log_level=args.log_level,
    )

    server = TinyServe(config)
    register_default_routes(server)

    if args.cors:
        server.add_middleware(CORSMiddleware())

    return server


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 on a startup
        error such as a missing document root or a port in use.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid TINYSERVE_* environment setting: {e}", file=sys.stderr)
        return 1

    args = build_parser(defaults).parse_args(argv)

    try:
        server = build_server(args)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

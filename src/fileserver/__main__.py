"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

Run the file server:

    python -m fileserver --working-directory=/srv/files
    fileserver --working-directory=/srv/files --port=9000

Every flag can also come from the environment; a flag on the command line
wins over the variable:

    ┌───────────────────────────┬──────────────────────────────┐
    │ Flag                      │ Environment variable         │
    ├───────────────────────────┼──────────────────────────────┤
    │ --host                    │ SERVER_HOST                  │
    │ --port                    │ SERVER_PORT                  │
    │ --server-domain           │ SERVER_DOMAIN                │
    │ --working-directory       │ SERVER_WORKING_DIRECTORY     │
    │ --log-level               │ SERVER_LOG_LEVEL             │
    └───────────────────────────┴──────────────────────────────┘

EXIT STATUS:

    0   server stopped normally (SIGINT / SIGTERM)
    1   bad configuration, or the address could not be bound
    2   unknown or malformed command-line argument

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import FileServer


def build_parser() -> argparse.ArgumentParser:
    """Command-line parser. Defaults are None so the environment can fill in."""
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Serve a directory over a minimal HTTP/1.1 file protocol",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fileserver --working-directory=./data                  # Serve ./data on 0.0.0.0:8080
  fileserver --working-directory=./data --port=9000      # Custom port
  fileserver --working-directory=./data --server-domain=files.local
  SERVER_WORKING_DIRECTORY=./data fileserver             # From the environment
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host",
        help="Address to bind (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--port",
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--server-domain",
        dest="server_domain",
        help="Expected Host header; other hosts get 400 (default: accept any)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--working-directory",
        dest="working_directory",
        help="Directory to serve (required, here or via SERVER_WORKING_DIRECTORY)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=LOG_FORMATS,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"fileserver {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, build the configuration and run the server.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.resolve(vars(args))
        server = FileServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

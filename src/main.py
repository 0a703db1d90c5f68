#!/usr/bin/env python3
"""Main entry point for the risk feed service.

Usage:
    python -m src.main               # Serve on the configured PORT
    python -m src.main --port 9000   # Serve on another port
    python -m src.main -v            # Serve with verbose logging
"""

import argparse
import sys

from src.api.runner import run


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="risk-feed",
        description="Guardian360 risk feed - country risk signals from public sources",
    )

    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Interface to bind (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind (default: PORT env var, else 8080)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    return parser.parse_args(args)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the risk feed.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parsed = parse_args(args)
    return run(host=parsed.host, port=parsed.port, verbose=parsed.verbose)


if __name__ == "__main__":
    sys.exit(main())

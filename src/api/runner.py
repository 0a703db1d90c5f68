"""Runner module for the risk feed service.

This module wires together configuration, logging and the HTTP server.
"""

import logging
import sys

import uvicorn

from src.api.app import create_app
from src.config.settings import ConfigurationError, load_settings


# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_SERVER_ERROR = 2


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def run(host: str = "0.0.0.0", port: int | None = None, verbose: bool = False) -> int:
    """Serve the risk feed until interrupted.

    Args:
        host: Interface to bind
        port: Port to bind; None uses the configured PORT
        verbose: If True, enable verbose/debug logging.

    Returns:
        Exit code:
        - 0: Clean shutdown
        - 1: Configuration error
        - 2: Server error
    """
    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(validate=True)
        logger.info("Configuration loaded successfully")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    bind_port = port if port is not None else settings.port
    app = create_app(settings)

    logger.info(f"Guardian360 risk feed running on {host}:{bind_port}")
    try:
        uvicorn.run(
            app,
            host=host,
            port=bind_port,
            log_level="debug" if verbose else "info",
        )
    except Exception as e:
        logger.exception(f"Server failed with unexpected error: {e}")
        return EXIT_SERVER_ERROR

    return EXIT_SUCCESS

"""Logging configuration for the GitHub exporter."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    Args:
        verbose: Log at DEBUG level, which includes every outgoing request.

    Returns:
        The package logger.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger("github_exporter")

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(level)

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger

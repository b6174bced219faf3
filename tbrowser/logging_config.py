"""Logging configuration for the browser."""

import sys

from loguru import logger


def configure_logging(*, verbose=False, log_file=None):
    """Send logs to a rotating file; echo warnings to stderr when verbose.

    The page is painted on stdout, so nothing goes to the terminal unless
    asked for.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    if log_file is not None:
        logger.add(log_file, level=level, rotation="1 MB", retention=3)
    if verbose:
        logger.add(sys.stderr, level="WARNING", format="{level.icon} {message}")

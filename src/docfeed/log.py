"""Logging setup for the docfeed command line."""

from __future__ import annotations

import logging

_LOGGER_NAME = "docfeed"


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Send docfeed log records to stderr, at DEBUG level when `verbose`."""
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process don't duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[docfeed] %(levelname)s %(message)s"))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging"]

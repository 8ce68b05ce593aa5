"""Logging utilities for Architekt commands."""

from __future__ import annotations

import logging

_LOGGER_NAME = "architekt"

# Between INFO and DEBUG: per-file progress messages shown with --verbose.
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the architekt hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def level_from_flags(
    *, silent: bool = False, verbose: bool = False, debug: bool = False
) -> int:
    """Map the CLI verbosity flags to a logging level.

    ``--silent`` wins over ``--verbose``, which wins over ``--debug``.
    """
    if silent:
        return logging.ERROR
    if verbose:
        return VERBOSE
    if debug:
        return logging.DEBUG
    return logging.INFO


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the architekt logger with a console handler on stderr."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    # Reset handlers to avoid duplicate output when CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(
        logging.Formatter("[architekt] %(levelname)s %(message)s")
    )
    logger.addHandler(stream_handler)
    return logger


__all__ = ["VERBOSE", "configure_logging", "get_logger", "level_from_flags"]

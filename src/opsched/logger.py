"""Logging for opsched, with two verbosity levels between INFO and DEBUG's neighbours."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30)
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20)

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Warnings and errors only
VERBOSITY_CHANGES = 1  # Start times, delays and solve outcomes
VERBOSITY_CHECKS = 2  # LP solves and operator reservations
VERBOSITY_DEBUG = 3  # Simplex pivots

_LEVELS = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class OpschedLogger(logging.Logger):
    """Logger with one method per verbosity level.

    changes() is shown from verbosity 1, checks() from verbosity 2 and debug()
    from verbosity 3.
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> OpschedLogger:
    """Return the shared "opsched" logger."""
    logging.setLoggerClass(OpschedLogger)
    logger = logging.getLogger("opsched")
    assert isinstance(logger, OpschedLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Send opsched log messages up to the given verbosity to stream.

    Can be called repeatedly; each call replaces the previous handler.

    Args:
        verbosity: VERBOSITY_SILENT .. VERBOSITY_DEBUG; larger values mean debug
        stream: Output stream (default: sys.stderr)
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVELS[max(VERBOSITY_SILENT, min(verbosity, VERBOSITY_DEBUG))])

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop all handlers and return to the silent level."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVELS[VERBOSITY_SILENT])


def changes_enabled() -> bool:
    """Check whether changes() messages are emitted (verbosity >= 1)."""
    return get_logger().isEnabledFor(CHANGES_LEVEL)


def checks_enabled() -> bool:
    """Check whether checks() messages are emitted (verbosity >= 2)."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """Check whether debug() messages are emitted (verbosity >= 3)."""
    return get_logger().isEnabledFor(logging.DEBUG)

"""Scheduler logging with verbosity levels.

The scheduler narrates its work at three depths: committed assignments,
the selection and candidate checks behind each assignment, and critical
path and matrix detail. Each depth maps onto a logging level, two of them
custom, and ``setup_logger`` picks the depth from the CLI's ``-v`` count.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30)
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20)

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Errors only
VERBOSITY_CHANGES = 1  # Assignments
VERBOSITY_CHECKS = 2  # Candidate evaluation
VERBOSITY_DEBUG = 3  # Critical path, ranks and matrix detail

_VERBOSITY_LEVELS = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class SchedsimLogger(logging.Logger):
    """Logger with one method per scheduler verbosity depth."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a committed assignment."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log task selection and candidate evaluation."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> SchedsimLogger:
    logging.setLoggerClass(SchedsimLogger)
    logger = logging.getLogger("schedsim")
    assert isinstance(logger, SchedsimLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Point the schedsim logger at a stream with the given verbosity.

    Verbosity outside 0..3 is clamped. Calling again replaces the handler.

    Args:
        verbosity: 0=silent, 1=assignments, 2=candidate checks, 3=debug
        stream: Output stream, sys.stderr by default
    """
    logger = get_logger()
    logger.handlers.clear()
    clamped = min(max(verbosity, VERBOSITY_SILENT), VERBOSITY_DEBUG)
    logger.setLevel(_VERBOSITY_LEVELS[clamped])

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to silent."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_VERBOSITY_LEVELS[VERBOSITY_SILENT])


def checks_enabled() -> bool:
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    return get_logger().isEnabledFor(logging.DEBUG)

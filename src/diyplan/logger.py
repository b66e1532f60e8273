"""Scheduler logging.

The scheduler reports what it decides (assignments, conflicts, warnings) at
the CHANGES level and why (every worker and slot it weighs) at the CHECKS
level. Calendar and critical path internals go to DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

# Levels between the standard ones for -v 1 and -v 2
CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30) - for verbosity level 1
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20) - for verbosity level 2

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_CHANGES = 1  # Show assignments and conflicts
VERBOSITY_CHECKS = 2  # Show every candidate worker/slot considered
VERBOSITY_DEBUG = 3  # Full debug output


class DiyplanLogger(logging.Logger):
    """Logger for scheduling runs.

    - changes(): -v 1, a task was scheduled or hit a conflict, a warning was raised
    - checks(): -v 2, a task is being placed and which slots were weighed
    - debug(): -v 3, calendar bookings, blocked slots, critical path runs
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a scheduling decision."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log the candidates behind a decision."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> DiyplanLogger:
    """Return the shared "diyplan" logger; the CLI configures it with setup_logger()."""
    logging.setLoggerClass(DiyplanLogger)
    logger = logging.getLogger("diyplan")
    assert isinstance(logger, DiyplanLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Point the diyplan logger at a stream for the given -v count.

    Replaces any previous handler, so the CLI callback and tests can call it
    repeatedly.

    Args:
        verbosity: 0=silent (errors only), 1=changes, 2=checks, 3=debug
        stream: Optional output stream (defaults to sys.stderr, useful for testing)
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        0: logging.ERROR,
        1: CHANGES_LEVEL,
        2: CHECKS_LEVEL,
        3: logging.DEBUG,
    }
    logger.setLevel(level_map.get(verbosity, logging.ERROR))

    output_stream = stream if stream is not None else sys.stderr

    # Clean formatting, no level prefix
    handler = logging.StreamHandler(output_stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Silence the logger and drop its handlers."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def changes_enabled() -> bool:
    """Whether scheduling decisions are being logged."""
    return get_logger().isEnabledFor(CHANGES_LEVEL)


def debug_enabled() -> bool:
    """Whether calendar and critical path internals are being logged."""
    return get_logger().isEnabledFor(logging.DEBUG)

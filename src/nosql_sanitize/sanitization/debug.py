"""Debug logging gated by the ``debug`` option group.

Messages go through the standard ``logging`` module. Nothing is emitted
unless ``debug.enabled`` is set and the message level is at or above the
configured ``debug.level``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

_LOGGER = logging.getLogger(__name__)

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Verbosity order, lowest first
LOG_LEVELS: dict[str, int] = {
    "silent": 0,
    "error": 1,
    "warn": 2,
    "info": 3,
    "debug": 4,
    "trace": 5,
}

_PY_LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


@dataclass(frozen=True)
class DebugOptions:
    """Resolved ``debug`` option group.

    Attributes:
        enabled: Master switch for debug output
        level: Most verbose level to emit (one of LOG_LEVELS)
        log_pattern_matches: Log keys and values dropped by remove_matches
        log_sanitized_values: Log before/after pairs of changed strings
        log_skipped_routes: Log requests skipped by the route matcher
    """

    enabled: bool = False
    level: str = "info"
    log_pattern_matches: bool = False
    log_sanitized_values: bool = False
    log_skipped_routes: bool = False

    def allows(self, level: str) -> bool:
        """Check whether a message at ``level`` should be emitted."""
        return self.enabled and LOG_LEVELS.get(self.level, 0) >= LOG_LEVELS[level]


def log(
    debug: DebugOptions | None,
    level: str,
    context: str,
    message: str,
    data: Any = None,
) -> None:
    """Emit a debug message if the debug options allow it.

    Args:
        debug: Resolved debug options (None disables output)
        level: Message level name from LOG_LEVELS
        context: Short upper-case tag for the emitting component
        message: Log message
        data: Optional payload, serialized as JSON
    """
    if debug is None or not debug.allows(level):
        return

    if data is None:
        _LOGGER.log(_PY_LEVELS[level], "[%s] %s", context, message)
    else:
        _LOGGER.log(
            _PY_LEVELS[level],
            "[%s] %s %s",
            context,
            message,
            json.dumps(data, default=str, ensure_ascii=False),
        )


def start_timing(debug: DebugOptions | None, operation: str) -> Callable[[], None]:
    """Start timing an operation.

    Args:
        debug: Resolved debug options
        operation: Label used in the trace messages

    Returns:
        Callable that logs the elapsed time when invoked
    """
    if debug is None or not debug.enabled:
        return lambda: None

    start = time.perf_counter()
    log(debug, "trace", "TIMING", f"Started: {operation}")

    def _end() -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        log(debug, "trace", "TIMING", f"Completed: {operation} in {elapsed_ms:.2f}ms")

    return _end

"""
In-process telemetry helpers.

These wrappers do not ship metrics anywhere; they provide structured logging,
counters and phase timers so callers (and tests) can assert instrumentation.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("mindchat.telemetry")

_COUNTERS: dict[str, int] = {}


@dataclass
class PhaseTiming:
    """Elapsed time of one timed block, filled in when the block exits."""

    name: str
    elapsed_ms: float = 0.0


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Callers pass ids and counts, never message text.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


def reset_counters() -> None:
    """
    Clear all counters (useful for tests).

    Side Effects:
        - Clears _COUNTERS dict (in-memory state)
    """
    _COUNTERS.clear()


@contextlib.contextmanager
def time_block(name: str) -> Iterator[PhaseTiming]:
    """
    Context manager for timing a pipeline phase.

    The yielded PhaseTiming is populated on exit, including when the block
    raises, so failed phases still report their duration.

    Side Effects:
        - Writes to logger (debug level) with timing
    """
    timing = PhaseTiming(name=name)
    start = time.perf_counter()
    try:
        yield timing
    finally:
        timing.elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("timing=%s_ms value=%.3f", name, timing.elapsed_ms)

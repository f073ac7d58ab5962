"""
Logger setup for mindchat.

One stream handler is attached to the root logger the first time a logger is
requested. The level comes from ``MINDCHAT_LOG_LEVEL`` and is re-read on every
call, so changing the variable takes effect for loggers created afterwards.
httpx request lines (which carry conversation ids in their URLs) are kept at
WARNING unless the configured level is stricter.
"""

from __future__ import annotations

import logging
import os
from typing import Final

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")


def resolve_level(level_name: str | None = None) -> int:
    """Map a level name (default: ``MINDCHAT_LOG_LEVEL``) to a level. Unknown names give INFO."""
    if level_name is None:
        level_name = os.getenv("MINDCHAT_LOG_LEVEL", "INFO")
    level = getattr(logging, level_name.strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None) -> int:
    """
    Attach the mindchat handler to the root logger (once) and set its level.

    Args:
        level: Explicit level; when omitted it is resolved from the environment

    Returns:
        The level that was applied
    """
    global _HANDLER_ATTACHED

    if level is None:
        level = resolve_level()

    root = logging.getLogger()
    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)
        _HANDLER_ATTACHED = True
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level


def get_logger(name: str) -> logging.Logger:
    """Return a module logger at the configured level."""
    level = configure_logging()
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger

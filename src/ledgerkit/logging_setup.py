"""Centralized logging configuration for the ``ledgerkit`` package.

- ``configure_logging(...)`` attaches a single ``StreamHandler`` to the
  package root logger. Entrypoints such as the CLI call it once at startup.
- ``get_logger(name)`` returns a logger and makes sure the package root logger
  has at least a ``NullHandler`` when nothing has been configured.

Library modules never attach their own handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "ledgerkit"
_CONFIGURED = False


def _level_from_name(name: str) -> int | None:
    # Accept numeric strings or standard level names (INFO/DEBUG/etc.).
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_name(level)
        if parsed is not None:
            return parsed
    # Env override when explicit ``level`` is None or unrecognized
    env_val = os.getenv("LEDGERKIT_LOG_LEVEL")
    if env_val:
        parsed = _level_from_name(env_val)
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Args:
        level: Level as an int or a name such as "INFO". When None, falls back
            to LEDGERKIT_LOG_LEVEL, then to INFO
        fmt: Format string for the handler; defaults to time, logger name,
            level and message
        stream: Output stream for the single StreamHandler
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Remove any existing NullHandlers to avoid swallowing logs after config.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(_parse_level(level))
    handler.setFormatter(logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s"))

    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, with a silent default until configured."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)

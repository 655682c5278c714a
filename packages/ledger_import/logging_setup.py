"""Logging configuration for the ``ledger_import`` package.

Entrypoints (the CLI, a host web application, the sync worker) call
``configure_logging(...)`` once; it attaches a single ``StreamHandler`` to the
package root logger ``"ledger_import"``. Library modules only ever call
``get_logger("ledger_import.<module>")`` and never attach handlers themselves.

The default format carries the thread name because imports triggered by an
upload and the periodic sync thread interleave in the same process.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "ledger_import"
_LEVEL_ENV = "LEDGER_IMPORT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv(_LEVEL_ENV) or "INFO"
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    # getLevelName returns "Level X" strings for unknown names
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> logging.Logger:
    """Attach the package handler and return the package root logger.

    Parameters
    ----------
    level:
        ``int`` or level name. ``None`` reads ``LEDGER_IMPORT_LOG_LEVEL`` and
        falls back to ``INFO``.
    fmt:
        Optional format string; defaults to a thread-aware format.
    stream:
        Output stream, ``sys.stderr`` when omitted.
    force:
        Replace a handler installed by an earlier call instead of keeping it.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None and not force:
        return logger
    if _handler is not None:
        logger.removeHandler(_handler)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger; silent until an entrypoint configures output."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]

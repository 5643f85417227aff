"""Logging setup shared by every ``fin_analyzer`` module.

Modules log through ``get_logger("fin_analyzer.<module>")`` using
``event:key=value`` messages (``normalize:done invoices=3 ...``) and never
attach handlers themselves. Until an entrypoint calls
:func:`configure_logging`, the package logger only carries a ``NullHandler``,
so importing the library is silent.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "fin_analyzer"
LEVEL_ENV_VAR = "FIN_ANALYZER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_state = {"configured": False}


def _parse_level(level: int | str | None) -> int:
    """Resolve ``level`` (or the env var when ``None``) to a numeric level.

    Unknown names fall back to ``INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR)
    if isinstance(level, int):
        return level
    name = (level or "").strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send package logs to ``stream``; later calls are no-ops.

    ``level`` accepts a number or a level name and defaults to
    ``$FIN_ANALYZER_LOG_LEVEL``, then ``INFO``.
    """

    if _state["configured"]:
        return

    resolved = _parse_level(level)
    pkg = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in pkg.handlers if isinstance(h, logging.NullHandler)]:
        pkg.removeHandler(existing)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    # Host applications configure the root logger separately.
    pkg.propagate = False

    _state["configured"] = True


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _state["configured"] and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]

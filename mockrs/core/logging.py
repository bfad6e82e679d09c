"""
Loguru setup for mockrs.

Everything goes through one handler whose per-module minimum levels come
from ``MockRSSettings``:

- ``log_level`` applies to every module not listed below;
- each ``log_debug_scopes`` entry (``core.topology`` or
  ``mockrs.core.topology``) is lowered to DEBUG;
- with ``verbose`` set, the member module is lowered to INFO so funneled
  traffic stays visible under a quieter base level.
"""

from __future__ import annotations

import sys
from typing import Any

from loguru import logger

from .config import MockRSSettings

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)

PACKAGE = "mockrs"
TRAFFIC_MODULE = f"{PACKAGE}.core.member"


def _level_no(level: str) -> int:
    return logger.level(level.upper()).no


def _qualified(scope: str) -> str:
    if scope == PACKAGE or scope.startswith(PACKAGE + "."):
        return scope
    return f"{PACKAGE}.{scope}"


def module_levels(settings: MockRSSettings) -> dict[str, int]:
    """Minimum level number per module; ``""`` is the default for the rest."""
    base = _level_no(settings.log_level)
    levels = {"": base}

    if settings.verbose:
        levels[TRAFFIC_MODULE] = min(base, _level_no("INFO"))

    debug = _level_no("DEBUG")
    for scope in settings.log_debug_scopes:
        scope = scope.strip()
        if scope:
            module = _qualified(scope)
            levels[module] = min(levels.get(module, base), debug)
    return levels


def configure_logging(
    settings: MockRSSettings | None = None,
    *,
    colorize: bool = False,
    sink: Any = sys.stderr,
) -> int:
    """Replace every loguru handler with one filtered by ``module_levels``.

    Returns the handler id so tests can remove it again.
    """
    levels = module_levels(settings if settings is not None else MockRSSettings())
    logger.remove()
    return logger.add(
        sink,
        level=min(levels.values()),
        format=DEFAULT_LOG_FORMAT,
        colorize=colorize,
        filter=levels,
    )

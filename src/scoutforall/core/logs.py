"""
structlog configuration shared by the engine and the command line entrypoint.

Engine modules only ask for loggers; the process entrypoint decides levels and
rendering through ``configure_logging``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _normalize_log_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    if not level:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)


def configure_logging(level: str | int | None = None, *, json: bool = False) -> None:
    resolved_level = _normalize_log_level(level)
    logging.basicConfig(level=resolved_level)
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    # PrintLogger has no name of its own, so it rides along in the context
    return structlog.get_logger(name, logger_name=name)

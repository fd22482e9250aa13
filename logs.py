"""Structured logging setup for the Albedo combat calculator.

Example:
    >>> from logs import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("attack resolved", attacker="Donut Steele", result="Hit")
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

from config import LOG_JSON, LOG_LEVEL

if TYPE_CHECKING:
    from structlog.types import EventDict, Processor, WrappedLogger


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every entry with the application name."""
    event_dict["app"] = "albedo"
    return event_dict


def configure_logging(*, level: str = LOG_LEVEL, json_format: bool = LOG_JSON) -> None:
    """Configure structlog for the calculator.

    Args:
        level: The logging level name (DEBUG, INFO, WARNING, ...).
        json_format: Render JSON lines instead of the coloured console format.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
    ]

    if json_format:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically with __name__."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind values that appear in every following log entry."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()

"""
SwarmCast - Structured Logging Configuration

Uses structlog for structured, JSON-formatted logging with context.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import Processor

from swarmcast.config import settings


def setup_logging() -> None:
    """Configure structured logging for the application."""

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.debug:
        # Development: colorful console output
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        # Production: JSON output
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Standard library logging for third-party libs
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("groq").setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a bound logger with optional initial context.

    Args:
        name: Logger name (usually __name__)
        **initial_context: Initial context key-value pairs

    Returns:
        Bound logger instance
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def get_swarm_logger() -> structlog.BoundLogger:
    """Get logger for swarm controller components."""
    return get_logger("swarmcast.swarm", component="swarm")


def bind_run_context(run_id: str) -> None:
    """
    Tag every log event in the current context with ``run_id``.

    Tasks created afterwards inherit the binding, so events from the
    orchestrator, analysts and consensus engine carry it too.
    """
    structlog.contextvars.bind_contextvars(run_id=run_id)


def clear_run_context() -> None:
    """Drop the run binding after a reset."""
    structlog.contextvars.unbind_contextvars("run_id")

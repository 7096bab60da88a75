from __future__ import annotations

import sys
from typing import Optional

import structlog

_LEVELS = {
    "ERROR": 40,
    "WARNING": 30,
    "INFO": 20,
    "DEBUG": 10,
}

_configured_level: Optional[int] = None


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for the whole process.

    Args:
        level: One of ERROR, WARNING, INFO, DEBUG (case-insensitive)
    """
    global _configured_level

    log_level = _LEVELS.get(level.upper(), 20)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,  # allow level changes after first use
    )
    _configured_level = log_level


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    The first call configures structlog from Settings when nothing has
    configured it yet.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    if _configured_level is None:
        from toolkeeper.config import Settings

        configure_logging(Settings.load().log_level)

    return structlog.get_logger(name)

"""Logging configuration.

stdlib logging owns the handlers; structlog formats the events. Modules
get their logger with ``structlog.get_logger(__name__)`` and log
key/value events.
"""

from __future__ import annotations

import logging
import sys

import structlog

from marketplace.infrastructure.config import Settings

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def get_log_level(settings: Settings) -> str:
    """Explicit level wins, otherwise derive it from the environment."""
    if settings.log_level:
        return settings.log_level.upper()
    return _LEVELS.get(settings.environment.lower(), "INFO")


def setup_stdlib_logging(settings: Settings) -> None:
    log_level = get_log_level(settings)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    # stderr keeps CLI output on stdout clean.
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)


def setup_structlog(settings: Settings) -> None:
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.environment.lower() in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Settings) -> None:
    """Configure all logging for the application."""
    setup_stdlib_logging(settings)
    setup_structlog(settings)

"""
Structured logging shared by the anxiety services.

Services ask for a logger with ``get_logger(__name__, component=...)`` and log
snake_case events with keyword context. Loggers are resolved lazily on every
call, so ``configure_logging`` takes effect for services that already exist.
"""

import logging
from typing import Any

import structlog
from structlog.types import Processor

from anxiease.config import LoggingConfig


def _processors(renderer: Processor) -> list[Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(config: LoggingConfig) -> None:
    """Switch the renderer and the stdlib root level to match ``config``."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
    logging.basicConfig(format="%(message)s", level=config.level, force=True)
    structlog.configure(
        processors=_processors(renderer),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Caching would pin bound loggers to the processors active at first use
        cache_logger_on_first_use=False,
    )


def get_logger(name: str, **initial_values: Any) -> Any:
    """Lazy logger carrying ``initial_values`` (usually ``component``)."""
    return structlog.get_logger(name, **initial_values)


# JSON until the application says otherwise
structlog.configure(
    processors=_processors(structlog.processors.JSONRenderer()),
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=False,
)

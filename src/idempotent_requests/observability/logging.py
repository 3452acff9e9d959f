"""Structured logging configuration for idempotent request handling.

Logs are emitted through structlog so every coordination decision carries
its context (idempotency key, store name, outcome, status) as fields rather
than being baked into a message string.

Examples:
    Configure logging once at startup::

        from idempotent_requests.observability.logging import configure_logging

        configure_logging(level="INFO", json_output=True)

    Use the logger::

        from idempotent_requests.observability.logging import get_logger

        logger = get_logger(__name__)
        logger.info("idempotency.replayed", key="K1", status=200)

    Output (JSON)::

        {
            "event": "idempotency.replayed",
            "key": "K1",
            "status": 200,
            "timestamp": "2024-01-01T00:00:00.000000Z",
            "level": "info"
        }
"""

import logging
import sys
from typing import Any, TextIO

import structlog

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the interceptor, the adapters and the sweeper.

    Call once at startup, before the first request is handled: loggers are
    cached on first use.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: One JSON object per line if True, coloured console
            output otherwise
        stream: Where log lines go. Defaults to stdout.

    Raises:
        ValueError: If level is not a known level name.

    Examples:
        >>> configure_logging(level="DEBUG", json_output=False)
    """
    level_name = level.upper()
    if level_name not in _LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(_LEVELS)}")
    numeric_level = logging.getLevelName(level_name)
    output = stream or sys.stdout

    logging.basicConfig(format="%(message)s", stream=output, level=numeric_level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # renders tracebacks itself
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        A structlog logger instance
    """
    return structlog.get_logger(name)

"""Logging configuration for the token risk engine."""

import logging
import sys
from typing import Any

import structlog

DEFAULT_LOG_LEVEL = "INFO"


def configure_logging(log_level: str = DEFAULT_LOG_LEVEL, json_output: bool = True) -> None:
    """Configure structured logging for the engine.

    Args:
        log_level: The log level to use (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render events as JSON lines instead of console text
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    processors = [
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

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Log to stderr so CLI output on stdout stays machine-readable
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Get a structured logger with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        structlog bound logger
    """
    return structlog.get_logger(name)


def log_with_context(logger: Any, level: str, message: str, **context: Any) -> None:
    """Log a message with additional context information.

    Args:
        logger: Logger instance from get_logger
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        context: Additional context information as keyword arguments
    """
    frame = sys._getframe(1)
    context.setdefault("function", frame.f_code.co_name)
    context.setdefault("line", frame.f_lineno)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(message, **context)

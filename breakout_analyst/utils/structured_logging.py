"""Structured logging utilities.

Configures structlog for the analysis engine and the service layer. Output is
JSON lines by default; a console renderer is available for local runs.
"""
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def configure_structured_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines when True, human-readable console output otherwise
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        BoundLogger instance for structured logging
    """
    return structlog.get_logger(name)


@contextmanager
def symbol_context(symbol: str) -> Iterator[None]:
    """Bind ``symbol`` to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(symbol=symbol):
        yield

"""
Structured Logging with structlog

stdout carries the LSP transport, so every renderer writes to stderr.
"""

import logging
import sys

import structlog


def setup_logging(level: str = "INFO", format: str = "console") -> None:
    """
    Route structlog through stdlib logging on stderr.

    Args:
        level: Logging level name; unknown names fall back to INFO
        format: "console" for humans, "json" for log collectors
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Module logger; events are snake_case names with keyword fields."""
    return structlog.get_logger(name)

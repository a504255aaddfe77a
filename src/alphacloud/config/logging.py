"""Logging configuration using structlog."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from alphacloud.config.settings import Settings

# Loggers of the HTTP stack, which log every request at INFO
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def _renderer(colors: bool) -> list[structlog.types.Processor]:
    if colors:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(settings: Settings) -> None:
    """Configure structlog and standard logging.

    Log output goes to stderr so that it never mixes with command output
    on stdout. Output is colored on a terminal and JSON otherwise.

    Args:
        settings: Application settings containing logging configuration.
    """
    log_level = getattr(logging, settings.log_level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=log_path,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
            )
        )

    for handler in handlers:
        handler.setLevel(log_level)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )

    # Only warnings from the HTTP stack
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *_renderer(sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

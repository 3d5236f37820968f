"""Logging utilities for MUD Relay."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog
from structlog.types import Processor


def _file_handler(
    path: str,
    level: int,
    max_size: int,
    backup_count: int,
    pre_chain: list[Processor],
) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(log_path, maxBytes=max_size, backupCount=backup_count)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    return handler


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: str | None = None,
    error_file: str | None = None,
    max_size: int = 10485760,
    backup_count: int = 7,
) -> None:
    """Configure structured logging for the application.

    structlog events and standard library records (discord.py, aiohttp)
    share the same handlers: stdout, an optional rotating log file, and an
    optional rotating file that only receives errors.
    """
    # Convert string level to logging constant
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Processors shared by structlog events and foreign stdlib records
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.dev.set_exc_info,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Add appropriate renderer
    if format_type == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    handlers: list[logging.Handler] = [console_handler]

    # Setup file logging if specified
    if log_file:
        handlers.append(_file_handler(log_file, log_level, max_size, backup_count, shared_processors))
    if error_file:
        handlers.append(_file_handler(error_file, logging.ERROR, max_size, backup_count, shared_processors))

    logging.basicConfig(handlers=handlers, level=log_level, force=True)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)

"""
clouddns/logger.py

Responsibility: Configures process-wide logging. structlog provides bound,
key/value loggers; the standard library handler renders them as one JSON
object per line (python-json-logger) or as human-readable text.
Does NOT: decide what gets logged, or write anywhere but stderr.
"""

from __future__ import annotations

import logging
import sys

import structlog
from pythonjsonlogger.json import JsonFormatter
from structlog.contextvars import merge_contextvars

# Marks the handler installed by configure_logging() on the root logger
HANDLER_NAME = "clouddns"


class CustomJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record: logging.LogRecord, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["logger"] = record.name
        log_record["level"] = record.levelname


def _shared_processors() -> list:
    return [
        structlog.stdlib.filter_by_level,
        merge_contextvars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Routes structlog through the standard library and installs a single
    stderr handler on the root logger, so third-party loggers (httpx) share
    the same output format.

    Safe to call more than once; the previous clouddns handler is replaced.

    Args:
        level: Logging level name, e.g. "INFO".
        fmt: "json" for one JSON object per line, "text" for human-readable.

    Returns:
        None
    """
    if fmt == "json":
        processors = _shared_processors() + [
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            # "event" becomes the message and the bound context is passed as
            # `extra`, which the JSON formatter renders as top-level keys.
            structlog.stdlib.render_to_log_kwargs,
        ]
        formatter: logging.Formatter = CustomJsonFormatter()
    else:
        processors = _shared_processors() + [
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ]
        formatter = logging.Formatter("%(message)s")

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

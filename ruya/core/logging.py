"""Structured logging.

Configures structlog once per process: coloured console output while
developing, one JSON object per line everywhere else so Railway / Render
log capture can index the fields.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor


def configure_logging(settings: Any | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Optional settings instance. Defaults to the process settings.
    """
    if settings is None:
        from ruya.core.config import settings as default_settings

        settings = default_settings

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development or settings.LOG_FORMAT == "console":
        renderers: list[Processor] = [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]
    else:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Third-party libraries (uvicorn, sqlalchemy) log through stdlib.
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logging.getLogger(logger_name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance, named `ruya` unless told otherwise."""
    name = name or "ruya"
    return structlog.get_logger(name, logger_name=name)


def bind_request_context(**values: str) -> None:
    """Attach request-scoped fields (path, client) to every log line."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()

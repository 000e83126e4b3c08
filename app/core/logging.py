"""Structured logging with structlog.

Every event is a ``feature.event`` name plus key/value fields. Two context
variables are merged into each event while a request is handled:
``request_id`` (bound by RequestIdMiddleware) and ``user_id`` (bound once a
bearer token resolves to a user).
"""

import logging
from collections.abc import MutableMapping
from contextvars import ContextVar
from typing import Any

import structlog

from app.core.config import get_settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[int | None] = ContextVar("user_id", default=None)

# Stdlib loggers that would duplicate our access log or leak secrets
# (httpx logs full request URLs, and Telegram URLs embed the bot token).
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_user_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Attach the authenticated user unless the event names one itself."""
    user_id = user_id_ctx.get()
    if user_id is not None and "user_id" not in event_dict:
        event_dict["user_id"] = user_id
    return event_dict


def configure_logging() -> None:
    """Configure structlog from settings.

    ``LOG_FORMAT=json`` renders one JSON object per line; ``console`` renders
    human-readable lines, coloured in development.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level)

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.is_development)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_request_id,
            add_user_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s")
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a logger; ``name`` is usually the calling module's ``__name__``."""
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger

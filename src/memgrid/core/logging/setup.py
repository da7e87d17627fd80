from __future__ import annotations

import logging
import sys
from typing import Any

import orjson
import structlog


def _json_serializer(obj: Any, default: Any) -> str:
    return orjson.dumps(obj, default=default).decode("utf-8")


def configure_logging(*, level: str = "INFO") -> None:
    """
    Configure structured logging for the entire application.

    Call once at process startup (the API factory does this).
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        # session_id, component, ...
        structlog.contextvars.merge_contextvars,

        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),

        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,

        structlog.processors.JSONRenderer(serializer=_json_serializer),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    # stdlib logging (uvicorn, asyncio) goes to the same stream
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def bind_context(**values: Any) -> None:
    """
    Bind contextual information to all future log entries.

    Example:
        bind_context(session_id=3, component="engine")
    """
    structlog.contextvars.bind_contextvars(**values)

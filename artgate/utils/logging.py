"""Structured logging for ArtGate.

Events go through structlog and come out either as JSON lines or as a
log4j-style ``timestamp [level]: message {context}`` line. The request
correlation ID lives in structlog's context variables so loggers created
once at startup still pick it up per request.
"""

import json
import logging
import sys
import uuid
from typing import Any, Dict, List, Optional

import structlog
from structlog.contextvars import (
    bind_contextvars,
    get_contextvars,
    merge_contextvars,
    unbind_contextvars,
)

CORRELATION_KEY = "correlation_id"

# Keys whose values must never reach a log sink.
SECRET_KEYS = frozenset({"api_key", "authorization", "redis_token", "stability_api_key", "x-api-key"})

QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "requests", "asyncio", "uvicorn.access")


def _redact_secrets(logger: Any, name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS and event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def _render_line(logger: Any, name: str, event_dict: Dict[str, Any]) -> str:
    """log4j-style line: timestamp [level]: message {json_context}"""
    head = "{} [{}]: {}".format(
        event_dict.pop("timestamp", ""),
        event_dict.pop("level", "info"),
        event_dict.pop("event", ""),
    )
    event_dict.pop("logger", None)
    if not event_dict:
        return head
    return head + " " + json.dumps(event_dict, sort_keys=True, separators=(",", ":"), default=str)


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID (a fresh UUID when none is given) to the current context."""
    correlation_id = correlation_id or str(uuid.uuid4())
    bind_contextvars(**{CORRELATION_KEY: correlation_id})
    return correlation_id


def get_correlation_id() -> Optional[str]:
    return get_contextvars().get(CORRELATION_KEY)


def clear_correlation_id() -> None:
    unbind_contextvars(CORRELATION_KEY)


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog on top of the stdlib root logger.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: JSON lines when True, log4j-style lines otherwise.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: List[Any] = [
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _redact_secrets,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True, default=str))
    else:
        processors.append(_render_line)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger


def create_contextual_logger(name: str, **context: Any) -> structlog.stdlib.BoundLogger:
    """Logger bound to a component name such as ``service="rate_limiter"``."""
    return get_logger(name, **context)


def log_exception(
    logger: structlog.stdlib.BoundLogger,
    exception: BaseException,
    message: str = "An error occurred",
    **additional_context: Any
) -> None:
    """Log an exception with its type, message and stack trace."""
    logger.error(
        message,
        exc_info=exception,
        exception_type=type(exception).__name__,
        exception_message=str(exception),
        **additional_context
    )

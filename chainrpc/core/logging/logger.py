#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging for the RPC client with:
- Request ID correlation across cache, queue and transport stages
- Stage identifiers for execution flow
- JSON formatting for log aggregation
- Redaction of API keys embedded in endpoint URLs

Architectural Decision: structlog for production logging
- Context-aware logging with automatic field injection
- JSON output for log aggregation
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from chainrpc.core.config.settings import get_settings

# Context variable for the request currently being served
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Provider URLs often carry the API key as the last path segment
_URL_KEY_PATTERN = re.compile(r"(https?://[^\s/]+(?:/[^\s/]+)*?/v\d+/)[A-Za-z0-9_-]{16,}")
_QUERY_KEY_PATTERN = re.compile(r"([?&](?:api[-_]?key|key|token)=)[^&\s]+", re.IGNORECASE)


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the request ID from context to every log entry."""
    request_id = get_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact API keys from the message and from string fields.

    Patterns redacted:
    - https://host/v2/<key> → https://host/v2/[REDACTED]
    - ?apikey=<key> / &token=<key> → ?apikey=[REDACTED]
    """
    for field, value in event_dict.items():
        if isinstance(value, str):
            value = _URL_KEY_PATTERN.sub(r"\1[REDACTED]", value)
            event_dict[field] = _QUERY_KEY_PATTERN.sub(r"\1[REDACTED]", value)
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Upper-case the level field."""
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')

    Applications call this once at startup. The library itself only
    obtains loggers and never configures output on import.
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage=Stage.DRAIN)
    """
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """Set the request ID in context for the current task."""
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_ctx.get()


def clear_request_id() -> None:
    """Clear the request ID from context."""
    request_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (e.g., Stage.CACHE_LOOKUP)
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, Stage.CACHE_LOOKUP, "Cache hit", cache_key="getBlockNumber:[]")
    """
    stage_value = stage.value if hasattr(stage, "value") else stage
    log_func = getattr(logger, level.lower())
    log_func(message, stage=stage_value, **kwargs)

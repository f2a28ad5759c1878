#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging for the cache layer with:
- Request ID correlation across adapter, namespace and backend calls
- Stage identifiers for every cache operation
- JSON formatting for log aggregation
- Redaction of e-mail addresses and card numbers

Author: Billing Platform Team
Date: 2025-12-05
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from billing_cache.core.config.settings import get_settings

# Context variable for the inbound request ID
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_EMAIL_RE = re.compile(r"\b[\w.-]+@[\w.-]+\.\w+\b")
_PAN_RE = re.compile(r"\b\d{13,19}\b")


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add request ID to log event from context variable.

    STAGE-L.1: Request ID injection
    """
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """STAGE-L.2: Timestamp injection"""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_pii(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact PII from log messages.

    STAGE-L.3: PII redaction

    Patterns redacted:
    - Email addresses → [EMAIL]
    - Card numbers (13-19 digits) → [PAN]
    """
    message = event_dict.get("event", "")

    if isinstance(message, str):
        message = _EMAIL_RE.sub("[EMAIL]", message)
        message = _PAN_RE.sub("[PAN]", message)
        event_dict["event"] = message

    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """STAGE-L.4: Log level injection"""
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    STAGE-L: Logging initialization

    Called once by the host service at startup. Arguments override the
    LOG_LEVEL / LOG_FORMAT settings.
    """
    logging_settings = get_settings().logging
    level_name = (log_level or logging_settings.LOG_LEVEL).upper()
    json_output = (log_format or logging_settings.LOG_FORMAT) == "json"

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging.getLevelName(level_name))

    processors = [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_timestamp,
        structlog.stdlib.add_log_level,
        add_log_level_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_pii,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Module logger.

    Usage:
        logger = get_logger(__name__)
        logger.info("Cache hit", stage=Stage.GET.value, key=key)
    """
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """
    Bind the inbound RPC request id to the current task.

    Call it in the handler before touching a repository; every cache and
    store log line below it then carries the id.
    """
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    return request_id_ctx.get()


def clear_request_id() -> None:
    request_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log ``message`` tagged with ``stage`` (a Stage member or its value).

    Usage:
        log_stage(logger, Stage.EVICT, "Namespace evicted", namespace="v1")
    """
    stage_value = str(getattr(stage, "value", stage))
    getattr(logger, level.lower())(message, stage=stage_value, **kwargs)

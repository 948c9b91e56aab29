"""
Structured JSON logging for verification requests.

Every line carries timestamp, level, logger name and a snake_case event_type.
Request-scoped context (request_id, path, query_kind, tax_id) is kept in
structlog contextvars: the HTTP middleware opens a context per request and
the verification service adds what it resolved, so registry and store logs
emitted deeper in the call are tagged with the query they belong to.

Phone numbers and free-text queries are personal data: values under
MASKED_FIELDS are masked by a processor before rendering, so callers log the
raw value.

No backend_trustcheck imports here; every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# json (default) or console
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

PHONE_VISIBLE_DIGITS = 4
MASKED_FIELDS = frozenset({"phone", "phone_number", "target", "query"})


def mask_phone(value: str | None) -> str:
    """Hide all but the last few characters of a phone number or free-text query."""
    if not value:
        return ""
    if len(value) <= PHONE_VISIBLE_DIGITS:
        return "*" * len(value)
    return "*" * (len(value) - PHONE_VISIBLE_DIGITS) + value[-PHONE_VISIBLE_DIGITS:]


def mask_personal_fields(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in MASKED_FIELDS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = mask_phone(value)
    return event_dict


def rename_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' becomes event_type, the key dashboards group by."""
    if "event" in event_dict:
        event_dict.setdefault("event_type", event_dict.pop("event"))
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.format_exc_info,
            mask_personal_fields,
            rename_event,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger. First argument is the event_type, context goes in keywords:

        logger.info("organization_cache_hit", tax_id=tax_id, score=90)
    """
    return structlog.get_logger(name).bind(logger=name)


def start_request_context(**fields: Any) -> None:
    """Drop whatever the previous request on this context left and bind fields."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**fields)


def bind_query_context(**fields: Any) -> None:
    """Tag all further log lines of the current request (query_kind, tax_id, ...)."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()

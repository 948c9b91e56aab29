"""
Structured logging for Backend TrustCheck.

JSON logs with timestamp, event_type and request context (request_id,
query_kind, tax_id). Use get_logger() in all modules.
"""

from backend_trustcheck.trustcheck_logging.logger import (
    bind_query_context,
    clear_request_context,
    get_logger,
    mask_phone,
    start_request_context,
)

__all__ = [
    "bind_query_context",
    "clear_request_context",
    "get_logger",
    "mask_phone",
    "start_request_context",
]

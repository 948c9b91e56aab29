"""
HTTP middleware: per-request log context, correlation id and timing.

Each request starts a fresh structlog context with request_id, method and
path; the id is taken from X-Request-ID when the caller sends one and is
echoed back on the response.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response

from backend_trustcheck.trustcheck_logging import clear_request_context, get_logger, start_request_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    start_request_context(request_id=request_id, method=request.method, path=request.url.path)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        clear_request_context()

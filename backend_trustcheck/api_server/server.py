"""
FastAPI server — thin HTTP adapter over the verification engine.

Mounts the /verification and /reports routers and maps domain errors:
InvalidInputError -> 400, UnknownEntityError -> 404,
RegistryUnavailableError -> 503, storage errors -> 503.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend_trustcheck import __version__
from backend_trustcheck.api_server.middleware import request_context_middleware
from backend_trustcheck.api_server.report_routes import router as reports_router
from backend_trustcheck.api_server.verification_routes import router as verification_router
from backend_trustcheck.core.exceptions import (
    InvalidInputError,
    RegistryUnavailableError,
    TrustCheckError,
    UnknownEntityError,
)
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

ERROR_STATUS: dict[type[TrustCheckError], int] = {
    InvalidInputError: 400,
    UnknownEntityError: 404,
    RegistryUnavailableError: 503,
}


app = FastAPI(
    title="Backend TrustCheck API",
    description="Trust scores for organizations, phone numbers and persons from registry data and community reports.",
    version=__version__,
)

app.middleware("http")(request_context_middleware)
app.include_router(verification_router)
app.include_router(reports_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.exception_handler(TrustCheckError)
def trustcheck_error_handler(request: Any, exc: TrustCheckError) -> JSONResponse:
    status = ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.warning("request_failed", path=str(request.url.path), code=exc.code, error=exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Any, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("storage_error", path=str(request.url.path), error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"code": "storage_unavailable", "detail": "Storage is temporarily unavailable"},
    )


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

"""
FastAPI router: /reports — submit a community report, read per-target stats and the latest feed.

Authentication of reporters is handled in front of this service.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Literal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_trustcheck.api_server.dependencies import get_reports_service
from backend_trustcheck.database import TARGET_VALUE_MAX_LENGTH
from backend_trustcheck.verification import ReportSubmission, ReportsService, TargetType

router = APIRouter(prefix="/reports", tags=["reports"])


class CreateReportRequest(BaseModel):
    """POST /reports body."""

    target_type: Literal["ORGANIZATION", "PHONE", "PERSON"]
    target_value: str = Field(
        ..., min_length=1, max_length=TARGET_VALUE_MAX_LENGTH, description="Tax id or phone number"
    )
    rating: int = Field(..., ge=1, le=5)
    reason: str = Field(..., min_length=1, max_length=128)
    comment: str = Field("", max_length=5000)
    reported_email: str | None = Field(None, max_length=256)
    social_link: str | None = Field(None, max_length=512)
    bank_account: str | None = Field(None, max_length=64)
    screenshot_url: str | None = Field(None, max_length=1024)


@router.get("/latest")
def latest(service: ReportsService = Depends(get_reports_service)) -> list[dict[str, Any]]:
    return [r.to_dict() for r in service.latest_reports()]


@router.get("/stats/{target_value}")
def stats(target_value: str, service: ReportsService = Depends(get_reports_service)) -> dict[str, Any]:
    """Report counts and newest-first reports for a tax id or phone number."""
    report_stats, reports = service.get_stats_for_target(target_value)
    return {
        "target_value": target_value,
        "total": report_stats.total,
        "negative": report_stats.negative,
        "positive": report_stats.positive,
        "reports": [asdict(r) for r in reports],
    }


@router.post("")
def create_report(
    body: CreateReportRequest,
    request: Request,
    service: ReportsService = Depends(get_reports_service),
) -> JSONResponse:
    submission = ReportSubmission(
        target_type=TargetType(body.target_type),
        target_value=body.target_value,
        rating=body.rating,
        reason=body.reason,
        comment=body.comment,
        reported_email=body.reported_email,
        social_link=body.social_link,
        bank_account=body.bank_account,
        screenshot_url=body.screenshot_url,
    )
    ip = request.client.host if request.client else None
    report = service.create_report(submission, ip_address=ip)
    return JSONResponse(status_code=201, content=asdict(report))

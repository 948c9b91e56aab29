"""
Community reports: submission, per-target statistics and the global feed.

Phone and person reports are filed against the normalized phone number; the
phone row is created with the neutral score on first report and left
untouched afterwards. Organization reports require the organization to be
stored already (it is created by a verification or an admin link).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from backend_trustcheck.analysis_engine.report_aggregator import ReportStats
from backend_trustcheck.config import Settings
from backend_trustcheck.core.exceptions import InvalidInputError, UnknownEntityError
from backend_trustcheck.database import TARGET_VALUE_MAX_LENGTH, Database, PhoneNumberRecord, ReportRecord
from backend_trustcheck.identity import is_tax_id, normalize_phone, region_of
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

RATING_MIN = 1
RATING_MAX = 5


class TargetType(str, Enum):
    ORGANIZATION = "ORGANIZATION"
    PHONE = "PHONE"
    PERSON = "PERSON"


@dataclass
class ReportSubmission:
    target_type: TargetType
    target_value: str
    rating: int
    reason: str
    comment: str = ""
    reported_email: str | None = None
    social_link: str | None = None
    bank_account: str | None = None
    screenshot_url: str | None = None
    screenshot_path: str | None = None


@dataclass
class LatestReport:
    """Entry of the public feed, with what the report is about."""

    id: int
    target_value: str
    target_type: str
    trust_score: int
    rating: int
    reason: str
    comment: str
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


def validate_submission(submission: ReportSubmission) -> None:
    if not (submission.target_value or "").strip():
        raise InvalidInputError("target_value must be non-empty")
    if len(submission.target_value.strip()) > TARGET_VALUE_MAX_LENGTH:
        raise InvalidInputError(f"target_value must be at most {TARGET_VALUE_MAX_LENGTH} characters")
    if not RATING_MIN <= submission.rating <= RATING_MAX:
        raise InvalidInputError(f"rating must be between {RATING_MIN} and {RATING_MAX}")
    if not (submission.reason or "").strip():
        raise InvalidInputError("reason must be non-empty")


class ReportsService:
    def __init__(self, db: Database, settings: Settings | None = None) -> None:
        self._db = db
        self._settings = settings or Settings()

    def create_report(self, submission: ReportSubmission, ip_address: str | None = None) -> ReportRecord:
        """
        Store a report against an organization or a phone number.

        Raises:
            InvalidInputError: bad rating, empty reason/target, malformed tax id.
            UnknownEntityError: organization target is not stored.
        """
        validate_submission(submission)
        target = submission.target_value.strip()
        report = ReportRecord(
            id=None,
            rating=submission.rating,
            reason=submission.reason.strip(),
            comment=submission.comment or "",
            ip_address=ip_address,
            reported_email=submission.reported_email,
            social_link=submission.social_link,
            bank_account=submission.bank_account,
            screenshot_url=submission.screenshot_url,
            screenshot_path=submission.screenshot_path,
        )

        if submission.target_type is TargetType.ORGANIZATION:
            if not is_tax_id(target):
                raise InvalidInputError("Tax id must consist of exactly 10 digits")
            if self._db.find_organization(target) is None:
                raise UnknownEntityError(f"Organization {target} not found")
            report.organization_tax_id = target
        else:
            number = self._ensure_phone(target)
            report.phone_number = number

        stored = self._db.insert_report(report)
        logger.info(
            "report_created",
            report_id=stored.id,
            target_type=submission.target_type.value,
            rating=stored.rating,
        )
        return stored

    def _ensure_phone(self, target: str) -> str:
        """Normalize the target (raw value if it is not a valid number) and make sure a phone row exists."""
        region = self._settings.default_phone_region
        number = normalize_phone(target, region)
        if number is None:
            logger.warning("report_phone_not_normalized", target=target)
            number = target
        self._db.upsert_phone_number(
            PhoneNumberRecord(number=number, country_code=region_of(number) or region)
        )
        return number

    def get_stats_for_target(self, target_value: str) -> tuple[ReportStats, list[ReportRecord]]:
        """
        Stats and newest-first reports for a tax id or a phone number. Phone
        targets are normalized the way create_report stores them.
        """
        target_value = (target_value or "").strip()
        if is_tax_id(target_value):
            reports = self._db.find_reports_by_organization(target_value)
        else:
            number = normalize_phone(target_value, self._settings.default_phone_region) or target_value
            reports = self._db.find_reports_by_phone(number)
        return ReportStats.from_reports(reports), reports

    def latest_reports(self, limit: int | None = None) -> list[LatestReport]:
        limit = limit or self._settings.latest_reports_limit
        out: list[LatestReport] = []
        for r in self._db.latest_reports(limit=limit):
            if r.organization_tax_id:
                organization = self._db.find_organization(r.organization_tax_id)
                target_value = r.organization_tax_id
                target_type = TargetType.ORGANIZATION.value
                trust_score = organization.trust_score if organization else 0
            else:
                phone = self._db.find_phone_number(r.phone_number) if r.phone_number else None
                target_value = r.phone_number or "Unknown"
                target_type = TargetType.PHONE.value
                trust_score = phone.trust_score if phone else 0
            out.append(
                LatestReport(
                    id=r.id or 0,
                    target_value=target_value,
                    target_type=target_type,
                    trust_score=trust_score,
                    rating=r.rating,
                    reason=r.reason,
                    comment=r.comment,
                    created_at=r.created_at or 0,
                )
            )
        return out

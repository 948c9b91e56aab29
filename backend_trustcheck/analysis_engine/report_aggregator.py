"""
Report aggregation: collect every report reachable from the resolved entities.

A report can be reachable through more than one path (linked to a phone number
and to a person stored under the same label). Reports are fetched in a fixed
precedence order (organization, phone, person), deduplicated by id with the
first occurrence winning, then stable-sorted newest first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from backend_trustcheck.database import Database, PersonRecord, ReportRecord
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedEntities:
    """Entity handles resolved for one query; any subset may be present."""

    organization_tax_id: str | None = None
    phone_number: str | None = None
    person: PersonRecord | None = None


@dataclass(frozen=True)
class EvidenceItem:
    """Report as shown to investigators. Every OSINT field is carried through."""

    id: int
    rating: int
    reason: str
    comment: str
    created_at: int
    phone_number: str | None = None
    organization_tax_id: str | None = None
    reported_email: str | None = None
    social_link: str | None = None
    bank_account: str | None = None
    screenshot_url: str | None = None
    screenshot_path: str | None = None

    @classmethod
    def from_report(cls, report: ReportRecord) -> "EvidenceItem":
        return cls(
            id=report.id or 0,
            rating=report.rating,
            reason=report.reason,
            comment=report.comment,
            created_at=report.created_at or 0,
            phone_number=report.phone_number,
            organization_tax_id=report.organization_tax_id,
            reported_email=report.reported_email,
            social_link=report.social_link,
            bank_account=report.bank_account,
            screenshot_url=report.screenshot_url,
            screenshot_path=report.screenshot_path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": datetime.fromtimestamp(self.created_at, tz=timezone.utc).isoformat(),
            "rating": self.rating,
            "reason": self.reason,
            "comment": self.comment,
            "phone_number": self.phone_number,
            "organization_tax_id": self.organization_tax_id,
            "reported_email": self.reported_email,
            "social_link": self.social_link,
            "bank_account": self.bank_account,
            "screenshot_url": self.screenshot_url,
            "screenshot_path": self.screenshot_path,
        }


@dataclass(frozen=True)
class ReportStats:
    total: int
    negative: int
    positive: int

    @classmethod
    def from_reports(cls, reports: list[ReportRecord]) -> "ReportStats":
        return cls(
            total=len(reports),
            negative=sum(1 for r in reports if r.is_negative),
            positive=sum(1 for r in reports if r.is_positive),
        )


def merge_reports(*sources: list[ReportRecord]) -> list[ReportRecord]:
    """
    Concatenate sources in the given order, drop repeated ids (first wins) and
    sort newest first. Python's sort is stable, so equal timestamps keep
    their precedence order.
    """
    seen: set[int] = set()
    merged: list[ReportRecord] = []
    for source in sources:
        for report in source:
            if report.id is not None:
                if report.id in seen:
                    continue
                seen.add(report.id)
            merged.append(report)
    merged.sort(key=lambda r: r.created_at or 0, reverse=True)
    return merged


def aggregate_reports(db: Database, resolved: ResolvedEntities) -> list[ReportRecord]:
    """Fetch, deduplicate and order all reports for the resolved entities."""
    organization_reports: list[ReportRecord] = []
    phone_reports: list[ReportRecord] = []
    person_reports: list[ReportRecord] = []

    if resolved.organization_tax_id:
        organization_reports = db.find_reports_by_organization(resolved.organization_tax_id)
    if resolved.phone_number:
        phone_reports = db.find_reports_by_phone(resolved.phone_number)
    if resolved.person is not None and resolved.person.id is not None:
        person_reports = db.find_reports_by_person(resolved.person.id)

    merged = merge_reports(organization_reports, phone_reports, person_reports)
    fetched = len(organization_reports) + len(phone_reports) + len(person_reports)
    if fetched != len(merged):
        logger.debug("reports_deduplicated", fetched=fetched, unique=len(merged))
    return merged

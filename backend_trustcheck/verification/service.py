"""
Verification orchestrator: the public entrypoints of the engine.

verify_organization(tax_id)
    validate -> cache arbiter (may refresh and write) -> organization reports
    -> organization policy. Returns the newest EVIDENCE_WINDOW reports.
verify_phone_or_person(raw_input)
    classify -> phone record AND person-by-name (both, for phone queries)
    -> merged reports -> phone/person policy. Returns the full evidence list.
search(query)
    dispatch a cleaned query to organization verification or a phone hint.

Admin helpers (list, edit, link phone) live here as well since they share the
same store and validation.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from backend_trustcheck.analysis_engine.report_aggregator import (
    EvidenceItem,
    ResolvedEntities,
    aggregate_reports,
)
from backend_trustcheck.analysis_engine.scorer import (
    ORGANIZATION_POLICY,
    PHONE_PERSON_POLICY,
    OrganizationScoringPolicy,
    PhonePersonScoringPolicy,
    score_organization,
    score_phone_or_person,
)
from backend_trustcheck.config import Settings
from backend_trustcheck.core.exceptions import InvalidInputError, UnknownEntityError
from backend_trustcheck.database import (
    DEFAULT_RISK_LEVEL,
    DEFAULT_TRUST_SCORE,
    Database,
    OrganizationRecord,
    PhoneNumberRecord,
)
from backend_trustcheck.identity import IdentifierKind, classify, is_tax_id, normalize_phone, region_of
from backend_trustcheck.integration.registry_client import RegistryClient
from backend_trustcheck.trustcheck_logging import bind_query_context, get_logger
from backend_trustcheck.verification.cache_arbiter import CacheArbiter

logger = get_logger(__name__)

SOURCE_DB = "DB"
SOURCE_NONE = "NONE"

SEARCH_KIND_ORGANIZATION = "ORGANIZATION"
SEARCH_KIND_PHONE = "PHONE"

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_SEARCH_PHONE = re.compile(r"^(?:48)?[0-9]{9}$")

PLACEHOLDER_ORGANIZATION_NAME = "Manually added"
PLACEHOLDER_VAT_STATUS = "Unknown"
LINKED_PHONE_TRUST_SCORE = 70


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass
class CommunitySummary:
    alerts: int
    total_reports: int
    latest_comments: list[EvidenceItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alerts": self.alerts,
            "total_reports": self.total_reports,
            "latest_comments": [e.to_dict() for e in self.latest_comments],
        }


@dataclass
class OrganizationSummary:
    name: str
    vat_status: str
    phones: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "vat_status": self.vat_status, "phones": list(self.phones)}


@dataclass
class OrganizationVerification:
    """found=False is the unknown-entity result: score 0, most severe label, nothing stored."""

    query: str
    found: bool
    trust_score: int
    risk_level: str
    source: str
    organization: OrganizationSummary | None = None
    community: CommunitySummary | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "found": self.found,
            "trust_score": self.trust_score,
            "risk_level": self.risk_level,
            "source": self.source,
            "organization": self.organization.to_dict() if self.organization else None,
            "community": self.community.to_dict() if self.community else None,
        }


@dataclass
class LinkedOrganization:
    name: str
    tax_id: str
    vat_status: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "tax_id": self.tax_id, "vat_status": self.vat_status}


@dataclass
class PhoneVerification:
    query: str
    """Canonical form (E.164 for phones, stripped input for names)."""
    original: str
    is_phone: bool
    trust_score: int
    risk_level: str
    source: str
    organization: LinkedOrganization | None
    community: CommunitySummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "original": self.original,
            "is_phone": self.is_phone,
            "trust_score": self.trust_score,
            "risk_level": self.risk_level,
            "source": self.source,
            "organization": self.organization.to_dict() if self.organization else None,
            "community": self.community.to_dict(),
        }


@dataclass
class SearchResult:
    kind: str
    query: str
    organization: OrganizationVerification | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.kind, "query": self.query}
        if self.organization is not None:
            out["result"] = self.organization.to_dict()
        return out


@dataclass
class OrganizationUpdate:
    """Admin edit; None leaves the field unchanged."""

    name: str | None = None
    trust_score: int | None = None
    risk_level: str | None = None
    vat_status: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------


def require_tax_id(tax_id: str) -> str:
    tax_id = (tax_id or "").strip()
    if not is_tax_id(tax_id):
        raise InvalidInputError("Tax id must consist of exactly 10 digits")
    return tax_id


class VerificationService:
    """Composes normalizer, cache arbiter, report aggregator and scorer."""

    def __init__(
        self,
        db: Database,
        registry: RegistryClient,
        settings: Settings | None = None,
        *,
        clock: Callable[[], float] = time.time,
        organization_policy: OrganizationScoringPolicy = ORGANIZATION_POLICY,
        phone_person_policy: PhonePersonScoringPolicy = PHONE_PERSON_POLICY,
    ) -> None:
        self._db = db
        self._settings = settings or Settings()
        self._organization_policy = organization_policy
        self._phone_person_policy = phone_person_policy
        self._arbiter = CacheArbiter(
            db,
            registry,
            freshness_window=self._settings.freshness_window,
            clock=clock,
            policy=organization_policy,
        )

    # --- Organization ---

    def verify_organization(self, tax_id: str) -> OrganizationVerification:
        """
        Verify an organization by tax id.

        Side effect: a missing or stale organization is refreshed from the
        registry and written to the store.

        Raises:
            InvalidInputError: tax_id is not 10 digits (nothing is read or written).
            RegistryUnavailableError: registry failed.
        """
        tax_id = require_tax_id(tax_id)
        bind_query_context(query_kind=IdentifierKind.TAX_ID.value, tax_id=tax_id)
        resolution = self._arbiter.resolve_organization(tax_id)
        if not resolution.found or resolution.record is None:
            return OrganizationVerification(
                query=tax_id,
                found=False,
                trust_score=0,
                risk_level=self._organization_policy.not_found_label,
                source=resolution.source.value,
            )

        record = resolution.record
        reports = aggregate_reports(self._db, ResolvedEntities(organization_tax_id=tax_id))
        result = score_organization(resolution.base_score, reports, self._organization_policy)
        window = reports[: self._settings.evidence_window]

        logger.info(
            "organization_verified",
            tax_id=tax_id,
            source=resolution.source.value,
            score=result.score,
            risk_level=result.risk_level,
            reports=result.total_reports,
        )
        return OrganizationVerification(
            query=tax_id,
            found=True,
            trust_score=result.score,
            risk_level=result.risk_level,
            source=resolution.source.value,
            organization=OrganizationSummary(
                name=record.name,
                vat_status=record.vat_status,
                phones=[p.number for p in record.phones],
            ),
            community=CommunitySummary(
                alerts=result.negative_count,
                total_reports=result.total_reports,
                latest_comments=[EvidenceItem.from_report(r) for r in window],
            ),
        )

    # --- Phone / person ---

    def verify_phone_or_person(self, raw_input: str, region: str | None = None) -> PhoneVerification:
        """
        Verify a phone number or a person name.

        For a valid phone number both the phone record and a person stored
        under the same E.164 string are resolved. Reports filed against the
        number count even when no phone row exists yet. Read-only.

        Raises:
            InvalidInputError: empty query.
        """
        if not (raw_input or "").strip():
            raise InvalidInputError("Query must be non-empty")
        region = (region or self._settings.default_phone_region).upper()
        identifier = classify(raw_input, region)
        bind_query_context(query_kind=identifier.kind.value, region=region)

        phone = None
        organization = None
        if identifier.is_phone:
            phone = self._db.find_phone_number(identifier.canonical)
            if phone is not None and phone.organization_tax_id:
                organization = self._db.find_organization(phone.organization_tax_id)
        person = self._db.find_person_by_name(identifier.canonical)

        resolved = ResolvedEntities(
            phone_number=identifier.canonical if identifier.is_phone else None,
            person=person,
        )
        reports = aggregate_reports(self._db, resolved)

        existed = phone is not None or person is not None
        if phone is not None:
            base_score, stored_risk = phone.trust_score, phone.risk_level
        elif person is not None:
            base_score, stored_risk = person.trust_score, person.risk_level
        else:
            base_score, stored_risk = DEFAULT_TRUST_SCORE, DEFAULT_RISK_LEVEL

        result = score_phone_or_person(
            base_score, stored_risk, reports, existed, self._phone_person_policy
        )
        logger.info(
            "phone_or_person_verified",
            query=identifier.canonical,
            kind=identifier.kind.value,
            existed=existed,
            score=result.score,
            risk_level=result.risk_level,
            reports=result.total_reports,
        )
        return PhoneVerification(
            query=identifier.canonical,
            original=identifier.original,
            is_phone=identifier.is_phone,
            trust_score=result.score,
            risk_level=result.risk_level,
            source=SOURCE_DB if existed else SOURCE_NONE,
            organization=LinkedOrganization(
                name=organization.name,
                tax_id=organization.tax_id,
                vat_status=organization.vat_status,
            )
            if organization is not None
            else None,
            community=CommunitySummary(
                alerts=result.negative_count,
                total_reports=result.total_reports,
                latest_comments=[EvidenceItem.from_report(r) for r in reports],
            ),
        )

    # --- Search ---

    def search(self, query: str) -> SearchResult:
        """
        Dispatch a free-form query. Separators are dropped first.

        10 digits -> organization verification; 9 digits (optionally prefixed
        with 48) -> phone hint for the client to follow up with
        verify_phone_or_person.

        Raises:
            InvalidInputError: anything else.
        """
        cleaned = _NON_ALNUM.sub("", query or "")
        if is_tax_id(cleaned):
            return SearchResult(
                kind=SEARCH_KIND_ORGANIZATION,
                query=cleaned,
                organization=self.verify_organization(cleaned),
            )
        if _SEARCH_PHONE.match(cleaned):
            return SearchResult(kind=SEARCH_KIND_PHONE, query=cleaned)
        raise InvalidInputError("Enter a tax id (10 digits) or a phone number")

    # --- Admin ---

    def list_organizations(self, *, limit: int = 100) -> list[OrganizationRecord]:
        return self._db.list_organizations(limit=limit)

    def get_organization(self, tax_id: str) -> OrganizationRecord:
        tax_id = require_tax_id(tax_id)
        record = self._db.find_organization(tax_id)
        if record is None:
            raise UnknownEntityError(f"Organization {tax_id} not found")
        return record

    def update_organization(self, tax_id: str, update: OrganizationUpdate) -> OrganizationRecord:
        tax_id = require_tax_id(tax_id)
        record = self._db.update_organization(tax_id, update.to_fields())
        if record is None:
            raise UnknownEntityError(f"Organization {tax_id} not found")
        logger.info("organization_updated", tax_id=tax_id, fields=sorted(update.to_fields()))
        return record

    def link_phone_to_organization(self, tax_id: str, phone: str) -> PhoneNumberRecord:
        """
        Attach a phone number to an organization, creating a placeholder
        organization when the tax id is not stored yet.
        """
        tax_id = require_tax_id(tax_id)
        raw = (phone or "").strip()
        if not raw:
            raise InvalidInputError("Phone number must be non-empty")
        region = self._settings.default_phone_region
        number = normalize_phone(raw, region)
        if number is None:
            logger.warning("link_phone_not_normalized", phone=raw)
            number = raw

        if self._db.find_organization(tax_id) is None:
            self._db.upsert_organization(
                OrganizationRecord(
                    tax_id=tax_id,
                    name=PLACEHOLDER_ORGANIZATION_NAME,
                    vat_status=PLACEHOLDER_VAT_STATUS,
                    trust_score=DEFAULT_TRUST_SCORE,
                    risk_level=DEFAULT_RISK_LEVEL,
                )
            )
            logger.info("organization_placeholder_created", tax_id=tax_id)

        linked = self._db.upsert_phone_number(
            PhoneNumberRecord(
                number=number,
                country_code=region_of(number) or region,
                trust_score=LINKED_PHONE_TRUST_SCORE,
                organization_tax_id=tax_id,
            ),
            update_fields=("organization_tax_id", "trust_score"),
        )
        logger.info("phone_linked", tax_id=tax_id, phone=number)
        return linked


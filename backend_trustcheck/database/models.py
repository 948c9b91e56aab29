"""
Domain models for database entities.

Phone numbers, organizations, persons and community reports.
Used by the store interface and the verification services; no ORM coupling
so backends stay swappable. Timestamps are Unix seconds (UTC).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_TRUST_SCORE = 50
"""Neutral score given to entities nobody has reported or verified yet."""
DEFAULT_RISK_LEVEL = "Unknown"
DEFAULT_COUNTRY_CODE = "PL"

# Longest report target accepted; phone and person targets that do not
# normalize are stored as typed, so the phone key columns share this width.
TARGET_VALUE_MAX_LENGTH = 256

NEGATIVE_RATING_MAX = 2
POSITIVE_RATING_MIN = 4


@dataclass
class PhoneNumberRecord:
    """Stored phone number keyed by its E.164 form."""

    number: str
    country_code: str = DEFAULT_COUNTRY_CODE
    trust_score: int = DEFAULT_TRUST_SCORE
    risk_level: str = DEFAULT_RISK_LEVEL
    organization_tax_id: str | None = None
    """Back-reference to the organization this number belongs to, if linked."""
    created_at: int | None = None
    updated_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "country_code": self.country_code,
            "trust_score": self.trust_score,
            "risk_level": self.risk_level,
            "organization_tax_id": self.organization_tax_id,
        }


@dataclass
class OrganizationRecord:
    """Organization cached from the VAT registry (or added by an admin)."""

    tax_id: str
    name: str
    vat_status: str
    trust_score: int = DEFAULT_TRUST_SCORE
    risk_level: str = DEFAULT_RISK_LEVEL
    raw_data: dict[str, Any] | None = None
    """Registry payload as received; opaque to the engine."""
    phones: list[PhoneNumberRecord] = field(default_factory=list)
    created_at: int | None = None
    updated_at: int | None = None
    """Last refresh from the registry or last admin edit; drives cache freshness."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "tax_id": self.tax_id,
            "name": self.name,
            "vat_status": self.vat_status,
            "trust_score": self.trust_score,
            "risk_level": self.risk_level,
            "phones": [p.to_dict() for p in self.phones],
            "updated_at": self.updated_at,
        }


@dataclass
class PersonRecord:
    """Person known by display name. Names are not unique."""

    id: int | None
    name: str
    email: str | None = None
    phone: str | None = None
    bank_account: str | None = None
    trust_score: int = DEFAULT_TRUST_SCORE
    risk_level: str = DEFAULT_RISK_LEVEL
    created_at: int | None = None
    updated_at: int | None = None


@dataclass
class ReportRecord:
    """Single community report. Targets one organization or one phone number, optionally a person."""

    id: int | None
    rating: int
    reason: str
    comment: str
    ip_address: str | None = None
    organization_tax_id: str | None = None
    phone_number: str | None = None
    person_id: int | None = None
    reported_email: str | None = None
    social_link: str | None = None
    bank_account: str | None = None
    screenshot_url: str | None = None
    screenshot_path: str | None = None
    created_at: int | None = None

    @property
    def is_negative(self) -> bool:
        return self.rating <= NEGATIVE_RATING_MAX

    @property
    def is_positive(self) -> bool:
        return self.rating >= POSITIVE_RATING_MIN

"""
Trust score computation — two independent policies.

Organizations: final = base - negative_reports * 15, risk from a fixed
threshold table on the final score.

Phones and persons: the adjustment depends on whether the entity was already
stored before the lookup.
- Not stored: each negative report costs 20 and risk becomes "High";
  with no negative reports the score is unchanged and risk is "No data".
- Stored: negative reports cost 15 each and risk becomes "Elevated", but only
  while the stored score is still the untouched neutral 50. Otherwise the
  stored score and label are returned as-is, so repeated lookups never compound.

Both policies floor the score at 0. There is no ceiling.

NOTE: penalty weights, thresholds and trigger conditions differ between the
two policies. This is how the product behaves today; do not merge them into a
shared table without sign-off.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from backend_trustcheck.database.models import DEFAULT_TRUST_SCORE, NEGATIVE_RATING_MAX
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

SCORE_FLOOR = 0

RISK_VERY_LOW = "Very Low"
RISK_MEDIUM = "Medium"
RISK_HIGH = "High"
RISK_CRITICAL = "Critical"
RISK_CRITICAL_NOT_REGISTERED = "Critical (Not registered)"
RISK_ELEVATED = "Elevated"
RISK_NO_DATA = "No data"


class Rated(Protocol):
    rating: int


@dataclass(frozen=True)
class OrganizationScoringPolicy:
    """Organization path: flat penalty per negative report and a threshold table."""

    negative_penalty: int = 15
    # (minimum score, label), highest threshold first
    thresholds: tuple[tuple[int, str], ...] = (
        (80, RISK_VERY_LOW),
        (50, RISK_MEDIUM),
        (20, RISK_HIGH),
    )
    floor_label: str = RISK_CRITICAL
    not_found_label: str = RISK_CRITICAL_NOT_REGISTERED

    def risk_for(self, score: int) -> str:
        for minimum, label in self.thresholds:
            if score >= minimum:
                return label
        return self.floor_label


@dataclass(frozen=True)
class PhonePersonScoringPolicy:
    """Phone/person path: penalty and label depend on whether the entity was stored."""

    neutral_score: int = DEFAULT_TRUST_SCORE
    unknown_penalty: int = 20
    unknown_risk: str = RISK_HIGH
    no_data_risk: str = RISK_NO_DATA
    known_penalty: int = 15
    known_risk: str = RISK_ELEVATED


ORGANIZATION_POLICY = OrganizationScoringPolicy()
PHONE_PERSON_POLICY = PhonePersonScoringPolicy()


@dataclass(frozen=True)
class TrustScore:
    """Final score, risk label and the counts that produced them."""

    score: int
    risk_level: str
    negative_count: int
    total_reports: int


def count_negative(reports: Iterable[Rated], max_rating: int = NEGATIVE_RATING_MAX) -> int:
    """Number of reports rated max_rating or lower."""
    return sum(1 for r in reports if r.rating <= max_rating)


def _floor(score: int) -> int:
    return max(SCORE_FLOOR, score)


def score_organization(
    base_score: int,
    reports: list[Rated],
    policy: OrganizationScoringPolicy = ORGANIZATION_POLICY,
) -> TrustScore:
    """Apply the organization penalty and derive risk from the final score."""
    negative = count_negative(reports)
    final = _floor(base_score - negative * policy.negative_penalty)
    result = TrustScore(
        score=final,
        risk_level=policy.risk_for(final),
        negative_count=negative,
        total_reports=len(reports),
    )
    logger.debug(
        "organization_score_result",
        base_score=base_score,
        negative=negative,
        score=result.score,
        risk_level=result.risk_level,
    )
    return result


def score_phone_or_person(
    base_score: int,
    stored_risk: str | None,
    reports: list[Rated],
    existed_before_lookup: bool,
    policy: PhonePersonScoringPolicy = PHONE_PERSON_POLICY,
) -> TrustScore:
    """
    Score a phone number or person.

    Args:
        base_score: Stored trust score, or the neutral score when nothing is stored.
        stored_risk: Stored risk label (used unchanged when no adjustment fires).
        reports: Deduplicated evidence for the query.
        existed_before_lookup: True if a phone or person row was found.
        policy: Penalties and labels.
    """
    negative = count_negative(reports)
    score = base_score
    risk = stored_risk or policy.no_data_risk

    if not existed_before_lookup:
        if negative > 0:
            score = base_score - negative * policy.unknown_penalty
            risk = policy.unknown_risk
        else:
            risk = policy.no_data_risk
    elif negative > 0 and base_score == policy.neutral_score:
        score = base_score - negative * policy.known_penalty
        risk = policy.known_risk

    result = TrustScore(
        score=_floor(score),
        risk_level=risk,
        negative_count=negative,
        total_reports=len(reports),
    )
    logger.debug(
        "phone_person_score_result",
        base_score=base_score,
        existed=existed_before_lookup,
        negative=negative,
        score=result.score,
        risk_level=result.risk_level,
    )
    return result


def score(
    base_score: int,
    reports: list[Rated],
    existed_before_lookup: bool,
    stored_risk: str | None = None,
) -> tuple[int, str]:
    """Return (final score, risk level) under the phone/person policy."""
    result = score_phone_or_person(base_score, stored_risk, reports, existed_before_lookup)
    return result.score, result.risk_level

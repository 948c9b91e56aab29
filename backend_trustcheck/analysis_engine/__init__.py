"""
Analysis engine package — report aggregation and trust score policies.

Merges community reports reachable from a resolved query and turns them,
together with stored or registry-derived base scores, into a trust score and
risk level.
"""

from backend_trustcheck.analysis_engine.report_aggregator import (
    EvidenceItem,
    ReportStats,
    ResolvedEntities,
    aggregate_reports,
    merge_reports,
)
from backend_trustcheck.analysis_engine.scorer import (
    ORGANIZATION_POLICY,
    PHONE_PERSON_POLICY,
    OrganizationScoringPolicy,
    PhonePersonScoringPolicy,
    TrustScore,
    count_negative,
    score,
    score_organization,
    score_phone_or_person,
)

__all__ = [
    "EvidenceItem",
    "ReportStats",
    "ResolvedEntities",
    "aggregate_reports",
    "merge_reports",
    "ORGANIZATION_POLICY",
    "PHONE_PERSON_POLICY",
    "OrganizationScoringPolicy",
    "PhonePersonScoringPolicy",
    "TrustScore",
    "count_negative",
    "score",
    "score_organization",
    "score_phone_or_person",
]

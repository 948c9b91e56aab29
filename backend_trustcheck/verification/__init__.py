"""
Verification package — organization and phone/person verification, search,
admin edits and community report submission.
"""

from backend_trustcheck.verification.cache_arbiter import (
    CacheArbiter,
    DataSource,
    OrganizationResolution,
    registry_base_score,
)
from backend_trustcheck.verification.reports import (
    LatestReport,
    ReportSubmission,
    ReportsService,
    TargetType,
)
from backend_trustcheck.verification.service import (
    OrganizationUpdate,
    OrganizationVerification,
    PhoneVerification,
    SearchResult,
    VerificationService,
)

__all__ = [
    "CacheArbiter",
    "DataSource",
    "OrganizationResolution",
    "registry_base_score",
    "LatestReport",
    "ReportSubmission",
    "ReportsService",
    "TargetType",
    "OrganizationUpdate",
    "OrganizationVerification",
    "PhoneVerification",
    "SearchResult",
    "VerificationService",
]

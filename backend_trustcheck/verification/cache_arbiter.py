"""
Cache arbiter: stored organization vs. live registry lookup.

resolve_organization is a lookup-or-refresh and may WRITE: when the stored row
is missing or older than the freshness window, the registry is queried and a
found organization is upserted with updated_at = now. Callers must treat
organization verification as having that side effect.

No locking. Two concurrent refreshes of the same stale tax id may both call
the registry and both write; the last write wins and the data is the same.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from backend_trustcheck.analysis_engine.scorer import ORGANIZATION_POLICY, OrganizationScoringPolicy
from backend_trustcheck.database import Database, OrganizationRecord
from backend_trustcheck.integration.registry_client import RegistryClient, RegistryLookup
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

FRESHNESS_WINDOW = timedelta(hours=24)

# Base score built from registry attributes
REGISTRY_FOUND_POINTS = 30
VAT_ACTIVE_POINTS = 40
BANK_ACCOUNT_POINTS = 20


class DataSource(str, Enum):
    CACHE = "CACHE"
    LIVE = "LIVE"


@dataclass(frozen=True)
class OrganizationResolution:
    """found=False means the registry does not know the tax id; record is then None."""

    found: bool
    source: DataSource
    base_score: int
    record: OrganizationRecord | None = None


def registry_base_score(lookup: RegistryLookup) -> int:
    """0, +30 if found, +40 if VAT status is active, +20 if any bank account is listed."""
    if not lookup.found:
        return 0
    score = REGISTRY_FOUND_POINTS
    if lookup.is_vat_active:
        score += VAT_ACTIVE_POINTS
    if lookup.bank_accounts:
        score += BANK_ACCOUNT_POINTS
    return score


class CacheArbiter:
    """Decides per lookup whether the stored organization is fresh enough to reuse."""

    def __init__(
        self,
        db: Database,
        registry: RegistryClient,
        *,
        freshness_window: timedelta = FRESHNESS_WINDOW,
        clock: Callable[[], float] = time.time,
        policy: OrganizationScoringPolicy = ORGANIZATION_POLICY,
    ) -> None:
        self._db = db
        self._registry = registry
        self._freshness_sec = freshness_window.total_seconds()
        self._clock = clock
        self._policy = policy

    def is_fresh(self, record: OrganizationRecord, now: float) -> bool:
        if record.updated_at is None:
            return False
        return now - record.updated_at < self._freshness_sec

    def resolve_organization(self, tax_id: str) -> OrganizationResolution:
        """
        Return the organization for tax_id, refreshing it from the registry when stale.

        Raises:
            RegistryUnavailableError: registry failed; nothing is written and no
                stale data is returned in its place.
        """
        now = self._clock()
        cached = self._db.find_organization(tax_id)
        if cached is not None and self.is_fresh(cached, now):
            logger.info("organization_cache_hit", tax_id=tax_id, score=cached.trust_score)
            return OrganizationResolution(
                found=True,
                source=DataSource.CACHE,
                base_score=cached.trust_score,
                record=cached,
            )

        logger.info(
            "organization_cache_refresh",
            tax_id=tax_id,
            reason="missing" if cached is None else "stale",
        )
        as_of = datetime.fromtimestamp(now, tz=timezone.utc).date()
        lookup = self._registry.lookup(tax_id, as_of)
        if not lookup.found:
            logger.info("organization_not_registered", tax_id=tax_id)
            return OrganizationResolution(found=False, source=DataSource.LIVE, base_score=0)

        base_score = registry_base_score(lookup)
        record = self._db.upsert_organization(
            OrganizationRecord(
                tax_id=tax_id,
                name=lookup.name or "",
                vat_status=lookup.vat_status or "",
                trust_score=base_score,
                risk_level=self._policy.risk_for(base_score),
                raw_data=lookup.to_payload(),
                updated_at=int(now),
            )
        )
        logger.info("organization_refreshed", tax_id=tax_id, score=base_score, vat_status=lookup.vat_status)
        return OrganizationResolution(
            found=True,
            source=DataSource.LIVE,
            base_score=base_score,
            record=record,
        )

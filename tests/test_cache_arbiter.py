"""
Tests for the cache arbiter: freshness window, registry refresh and write-on-read.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from backend_trustcheck.core.exceptions import RegistryUnavailableError
from backend_trustcheck.database import OrganizationRecord
from backend_trustcheck.integration.registry_client import RegistryLookup
from backend_trustcheck.verification import CacheArbiter, DataSource, registry_base_score

TAX_ID = "7010301234"
HOUR = 3600


@pytest.fixture
def arbiter(db, registry, clock):
    return CacheArbiter(db, registry, freshness_window=timedelta(hours=24), clock=clock)


def _store(db, updated_at: float, score: int = 60) -> None:
    db.upsert_organization(
        OrganizationRecord(
            tax_id=TAX_ID,
            name="Stored Sp. z o.o.",
            vat_status="Czynny",
            trust_score=score,
            risk_level="Medium",
            updated_at=int(updated_at),
        )
    )


@pytest.mark.parametrize(
    "vat_status,accounts,expected",
    [("Czynny", ["1"], 90), ("Czynny", [], 70), ("Zwolniony", ["1"], 50), ("Zwolniony", [], 30)],
)
def test_registry_base_score(vat_status, accounts, expected):
    lookup = RegistryLookup(found=True, tax_id=TAX_ID, vat_status=vat_status, bank_accounts=accounts)
    assert registry_base_score(lookup) == expected


def test_registry_base_score_not_found_is_zero():
    assert registry_base_score(RegistryLookup(found=False, tax_id=TAX_ID)) == 0


def test_fresh_row_is_served_from_cache(arbiter, db, registry, clock):
    _store(db, clock.now - 2 * HOUR, score=60)
    resolution = arbiter.resolve_organization(TAX_ID)
    assert resolution.source is DataSource.CACHE
    assert resolution.base_score == 60
    assert registry.calls == []


def test_missing_row_is_fetched_and_written(arbiter, db, registry, clock):
    registry.add(TAX_ID, bank_accounts=["61109010140000071219812874"])
    resolution = arbiter.resolve_organization(TAX_ID)

    assert resolution.found
    assert resolution.source is DataSource.LIVE
    assert resolution.base_score == 90
    stored = db.find_organization(TAX_ID)
    assert stored is not None
    assert stored.trust_score == 90
    assert stored.risk_level == "Very Low"
    assert stored.updated_at == int(clock.now)
    assert stored.raw_data["subject"]["statusVat"] == "Czynny"


def test_second_lookup_within_window_calls_registry_once(arbiter, registry, clock):
    registry.add(TAX_ID)
    arbiter.resolve_organization(TAX_ID)
    clock.advance(23 * HOUR)
    second = arbiter.resolve_organization(TAX_ID)
    assert second.source is DataSource.CACHE
    assert len(registry.calls) == 1


def test_row_exactly_window_old_is_refreshed(arbiter, registry, clock):
    registry.add(TAX_ID)
    arbiter.resolve_organization(TAX_ID)
    clock.advance(24 * HOUR - 1)
    assert arbiter.resolve_organization(TAX_ID).source is DataSource.CACHE
    clock.advance(1)
    third = arbiter.resolve_organization(TAX_ID)
    assert third.source is DataSource.LIVE
    assert len(registry.calls) == 2


def test_stale_row_is_refreshed(arbiter, db, registry, clock):
    _store(db, clock.now - 48 * HOUR, score=10)
    registry.add(TAX_ID, name="Renamed Sp. z o.o.")
    resolution = arbiter.resolve_organization(TAX_ID)

    assert resolution.source is DataSource.LIVE
    assert resolution.base_score == 70
    assert len(registry.calls) == 1
    assert db.find_organization(TAX_ID).name == "Renamed Sp. z o.o."


def test_registry_is_queried_for_todays_date(arbiter, registry, clock):
    from datetime import datetime, timezone

    arbiter.resolve_organization(TAX_ID)
    _, as_of = registry.calls[0]
    assert as_of == datetime.fromtimestamp(clock.now, tz=timezone.utc).date()


def test_not_found_writes_nothing(arbiter, db, registry):
    resolution = arbiter.resolve_organization(TAX_ID)
    assert resolution.found is False
    assert resolution.record is None
    assert db.find_organization(TAX_ID) is None


def test_registry_failure_propagates_and_writes_nothing(db, failing_registry, clock):
    arbiter = CacheArbiter(db, failing_registry, clock=clock)
    with pytest.raises(RegistryUnavailableError):
        arbiter.resolve_organization(TAX_ID)
    assert db.find_organization(TAX_ID) is None


def test_registry_failure_does_not_fall_back_to_stale_row(db, failing_registry, clock):
    _store(db, clock.now - 48 * HOUR)
    arbiter = CacheArbiter(db, failing_registry, clock=clock)
    with pytest.raises(RegistryUnavailableError):
        arbiter.resolve_organization(TAX_ID)
    assert db.find_organization(TAX_ID).name == "Stored Sp. z o.o."

"""
End-to-end tests for the verification orchestrator on a temporary SQLite DB and fake registry.
"""

from __future__ import annotations

import pytest

from backend_trustcheck.core.exceptions import InvalidInputError, RegistryUnavailableError, UnknownEntityError
from backend_trustcheck.database import OrganizationRecord, PersonRecord, PhoneNumberRecord, ReportRecord
from backend_trustcheck.verification import OrganizationUpdate, VerificationService

TAX_ID = "7010301234"
PHONE = "+48600000000"
HOUR = 3600


def _negative(db, created_at: int, **target) -> ReportRecord:
    return db.insert_report(
        ReportRecord(id=None, rating=1, reason="fraud", comment="never delivered", created_at=created_at, **target)
    )


# --- Organizations ---


def test_unknown_tax_id_is_fetched_live_and_scored(service, db, registry):
    """Active VAT payer with a bank account, no reports -> 90, Very Low, LIVE, stored."""
    registry.add(TAX_ID, bank_accounts=["61109010140000071219812874"])
    result = service.verify_organization(TAX_ID)

    assert result.found is True
    assert result.trust_score == 90
    assert result.risk_level == "Very Low"
    assert result.source == "LIVE"
    assert result.community.total_reports == 0
    assert db.find_organization(TAX_ID).trust_score == 90


def test_stale_organization_refreshed_then_penalized(service, db, registry, clock):
    """Stored 48h ago with 2 negative reports -> refreshed base minus 2 x 15."""
    db.upsert_organization(
        OrganizationRecord(tax_id=TAX_ID, name="Old", vat_status="Czynny", trust_score=90, updated_at=int(clock.now - 48 * HOUR))
    )
    _negative(db, 100, organization_tax_id=TAX_ID)
    _negative(db, 200, organization_tax_id=TAX_ID)
    registry.add(TAX_ID)  # active VAT, no accounts -> 70

    result = service.verify_organization(TAX_ID)
    assert len(registry.calls) == 1
    assert result.source == "LIVE"
    assert result.trust_score == 40
    assert result.risk_level == "High"
    assert result.community.alerts == 2
    assert result.community.total_reports == 2


def test_fresh_organization_uses_cached_score(service, db, registry, clock):
    db.upsert_organization(
        OrganizationRecord(tax_id=TAX_ID, name="Acme", vat_status="Czynny", trust_score=75, updated_at=int(clock.now - HOUR))
    )
    result = service.verify_organization(TAX_ID)
    assert result.source == "CACHE"
    assert result.trust_score == 75
    assert result.risk_level == "Medium"
    assert registry.calls == []


def test_not_registered_organization(service, db, registry):
    result = service.verify_organization(TAX_ID)
    assert result.found is False
    assert result.trust_score == 0
    assert result.risk_level == "Critical (Not registered)"
    assert result.organization is None
    assert db.find_organization(TAX_ID) is None


def test_evidence_window_is_three_newest(service, db, registry):
    registry.add(TAX_ID)
    service.verify_organization(TAX_ID)
    for created_at, rating in [(100, 5), (200, 1), (300, 4), (400, 2), (500, 5)]:
        db.insert_report(
            ReportRecord(id=None, rating=rating, reason="r", comment=str(created_at), created_at=created_at, organization_tax_id=TAX_ID)
        )

    result = service.verify_organization(TAX_ID)
    assert result.community.total_reports == 5
    assert [e.comment for e in result.community.latest_comments] == ["500", "400", "300"]
    assert result.trust_score == 70 - 2 * 15


@pytest.mark.parametrize("bad", ["", "123", "70103012345", "701030123a", "701-030-12-34"])
def test_invalid_tax_id_touches_nothing(service, registry, bad):
    with pytest.raises(InvalidInputError):
        service.verify_organization(bad)
    assert registry.calls == []


def test_registry_outage_surfaces_as_error(db, failing_registry, settings, clock):
    service = VerificationService(db, failing_registry, settings, clock=clock)
    with pytest.raises(RegistryUnavailableError):
        service.verify_organization(TAX_ID)


def test_organization_lists_linked_phones(service, registry):
    registry.add(TAX_ID)
    service.link_phone_to_organization(TAX_ID, "600 000 000")
    result = service.verify_organization(TAX_ID)
    assert result.organization.phones == [PHONE]


def test_verification_tags_log_context_with_query(service, registry):
    import structlog

    registry.add(TAX_ID)
    service.verify_organization(TAX_ID)
    context = structlog.contextvars.get_contextvars()
    assert context["query_kind"] == "TAX_ID"
    assert context["tax_id"] == TAX_ID


# --- Phones and persons ---


def test_unknown_phone_with_one_negative_report(service, db):
    """Number never stored, one negative report filed against it -> 30, High."""
    _negative(db, 100, phone_number=PHONE)
    result = service.verify_phone_or_person("+48 600 000 000")

    assert result.is_phone is True
    assert result.query == PHONE
    assert result.trust_score == 30
    assert result.risk_level == "High"
    assert result.source == "NONE"
    assert result.community.alerts == 1
    assert db.find_phone_number(PHONE) is None


def test_unknown_phone_without_reports_is_no_data(service):
    result = service.verify_phone_or_person("600000000")
    assert (result.trust_score, result.risk_level) == (50, "No data")
    assert result.community.total_reports == 0


def test_known_phone_at_neutral_score(service, db):
    db.upsert_phone_number(PhoneNumberRecord(number=PHONE))
    _negative(db, 100, phone_number=PHONE)
    result = service.verify_phone_or_person("600-000-000")
    assert result.source == "DB"
    assert (result.trust_score, result.risk_level) == (35, "Elevated")


def test_phone_and_person_reports_are_merged_once(service, db):
    person = db.create_person(PersonRecord(id=None, name=PHONE, trust_score=50))
    _negative(db, 100, phone_number=PHONE, person_id=person.id)
    _negative(db, 200, person_id=person.id)

    result = service.verify_phone_or_person(PHONE)
    assert result.source == "DB"
    assert result.community.total_reports == 2
    assert result.trust_score == 50 - 2 * 15


def test_person_name_lookup(service, db):
    person = db.create_person(PersonRecord(id=None, name="Jan Kowalski", trust_score=40, risk_level="Medium"))
    _negative(db, 100, person_id=person.id)

    result = service.verify_phone_or_person("  Jan Kowalski ")
    assert result.is_phone is False
    assert result.query == "Jan Kowalski"
    assert (result.trust_score, result.risk_level) == (40, "Medium")
    assert result.community.total_reports == 1


def test_person_name_lookup_is_case_sensitive(service, db):
    person = db.create_person(PersonRecord(id=None, name="Jan Kowalski", trust_score=40, risk_level="Medium"))
    _negative(db, 100, person_id=person.id)

    result = service.verify_phone_or_person("jan kowalski")
    assert result.source == "NONE"
    assert (result.trust_score, result.risk_level) == (50, "No data")
    assert result.community.total_reports == 0


def test_phone_shows_linked_organization(service, registry):
    service.link_phone_to_organization(TAX_ID, PHONE)
    result = service.verify_phone_or_person(PHONE)
    assert result.organization.tax_id == TAX_ID
    assert result.organization.name == "Manually added"
    assert result.trust_score == 70


def test_empty_phone_query_is_rejected(service):
    with pytest.raises(InvalidInputError):
        service.verify_phone_or_person("   ")


# --- Search ---


def test_search_tax_id_with_separators(service, registry):
    registry.add(TAX_ID)
    result = service.search("701-030-12-34")
    assert result.kind == "ORGANIZATION"
    assert result.query == TAX_ID
    assert result.organization.trust_score == 70


@pytest.mark.parametrize("query,cleaned", [("600 000 000", "600000000"), ("+48 600 000 000", "48600000000")])
def test_search_phone_returns_hint(service, registry, query, cleaned):
    result = service.search(query)
    assert result.kind == "PHONE"
    assert result.query == cleaned
    assert result.organization is None
    assert registry.calls == []


def test_search_rejects_other_input(service):
    with pytest.raises(InvalidInputError):
        service.search("hello")


# --- Admin ---


def test_link_phone_creates_placeholder_organization(service, db):
    linked = service.link_phone_to_organization(TAX_ID, "600 000 000")
    assert linked.number == PHONE
    assert linked.trust_score == 70
    assert linked.organization_tax_id == TAX_ID

    org = db.find_organization(TAX_ID)
    assert org.name == "Manually added"
    assert org.vat_status == "Unknown"
    assert org.trust_score == 50


def test_link_phone_keeps_existing_organization(service, db):
    db.upsert_organization(OrganizationRecord(tax_id=TAX_ID, name="Acme", vat_status="Czynny", trust_score=90))
    service.link_phone_to_organization(TAX_ID, PHONE)
    assert db.find_organization(TAX_ID).name == "Acme"


def test_update_organization(service, db):
    db.upsert_organization(OrganizationRecord(tax_id=TAX_ID, name="Acme", vat_status="Czynny", trust_score=90))
    updated = service.update_organization(TAX_ID, OrganizationUpdate(trust_score=120, risk_level="Very Low"))
    assert updated.trust_score == 120
    assert updated.name == "Acme"


def test_update_unknown_organization(service):
    with pytest.raises(UnknownEntityError):
        service.update_organization(TAX_ID, OrganizationUpdate(name="X"))


def test_get_and_list_organizations(service, db):
    with pytest.raises(UnknownEntityError):
        service.get_organization(TAX_ID)
    db.upsert_organization(OrganizationRecord(tax_id=TAX_ID, name="Acme", vat_status="Czynny"))
    assert service.get_organization(TAX_ID).name == "Acme"
    assert [o.tax_id for o in service.list_organizations()] == [TAX_ID]

"""
Tests for the SQLAlchemy entity store: upserts under concurrent writers and column widths.
"""

from __future__ import annotations

import threading

from sqlalchemy import func, select

from backend_trustcheck.database import TARGET_VALUE_MAX_LENGTH, OrganizationRecord, PhoneNumberRecord
from backend_trustcheck.database.tables import OrganizationRow, PersonRow, PhoneNumberRow, ReportRow

TAX_ID = "7010301234"
PHONE = "+48600000000"
WRITERS = 8


def _run_together(target, count: int = WRITERS) -> list[BaseException]:
    """Start count threads that call target(i) at the same moment; return what they raised."""
    barrier = threading.Barrier(count)
    errors: list[BaseException] = []

    def worker(i: int) -> None:
        barrier.wait(timeout=10)
        try:
            target(i)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return errors


def _count(db, row_type) -> int:
    with db._backend._session_scope() as session:
        return session.scalar(select(func.count()).select_from(row_type))


def test_upsert_organization_overwrites_and_keeps_created_at(db):
    db.upsert_organization(
        OrganizationRecord(tax_id=TAX_ID, name="Old", vat_status="Czynny", trust_score=70, created_at=100, updated_at=100)
    )
    stored = db.upsert_organization(
        OrganizationRecord(tax_id=TAX_ID, name="New", vat_status="Zwolniony", trust_score=30, created_at=999, updated_at=200)
    )
    assert (stored.name, stored.vat_status, stored.trust_score) == ("New", "Zwolniony", 30)
    assert stored.created_at == 100
    assert stored.updated_at == 200


def test_concurrent_organization_upserts_leave_one_row(db):
    def write(i: int) -> None:
        db.upsert_organization(
            OrganizationRecord(tax_id=TAX_ID, name=f"Writer {i}", vat_status="Czynny", trust_score=i, updated_at=1000 + i)
        )

    assert _run_together(write) == []
    assert _count(db, OrganizationRow) == 1
    stored = db.find_organization(TAX_ID)
    assert stored.name == f"Writer {stored.trust_score}"
    assert stored.updated_at == 1000 + stored.trust_score


def test_concurrent_phone_inserts_leave_one_row(db):
    def write(i: int) -> None:
        db.upsert_phone_number(PhoneNumberRecord(number=PHONE, trust_score=50))

    assert _run_together(write) == []
    assert _count(db, PhoneNumberRow) == 1
    assert db.find_phone_number(PHONE).trust_score == 50


def test_concurrent_phone_updates_leave_one_row(db):
    def write(i: int) -> None:
        db.upsert_phone_number(
            PhoneNumberRecord(number=PHONE, organization_tax_id=TAX_ID, trust_score=70),
            update_fields=("organization_tax_id", "trust_score"),
        )

    assert _run_together(write) == []
    assert _count(db, PhoneNumberRow) == 1
    stored = db.find_phone_number(PHONE)
    assert (stored.organization_tax_id, stored.trust_score) == (TAX_ID, 70)


def test_phone_upsert_without_update_fields_leaves_row_untouched(db):
    db.upsert_phone_number(PhoneNumberRecord(number=PHONE, trust_score=20, risk_level="High", created_at=100))
    stored = db.upsert_phone_number(PhoneNumberRecord(number=PHONE, trust_score=50, organization_tax_id=TAX_ID))
    assert (stored.trust_score, stored.risk_level, stored.organization_tax_id) == (20, "High", None)
    assert stored.created_at == 100


def test_phone_upsert_copies_only_update_fields(db):
    db.upsert_phone_number(PhoneNumberRecord(number=PHONE, trust_score=20, risk_level="High"))
    stored = db.upsert_phone_number(
        PhoneNumberRecord(number=PHONE, trust_score=70, risk_level="Low", organization_tax_id=TAX_ID),
        update_fields=("organization_tax_id",),
    )
    assert stored.organization_tax_id == TAX_ID
    assert (stored.trust_score, stored.risk_level) == (20, "High")


def test_phone_key_columns_fit_longest_report_target():
    from backend_trustcheck.api_server.report_routes import CreateReportRequest

    request_max = CreateReportRequest.model_json_schema()["properties"]["target_value"]["maxLength"]
    assert request_max == TARGET_VALUE_MAX_LENGTH
    for column in (
        PhoneNumberRow.__table__.c.number,
        ReportRow.__table__.c.phone_number,
        PersonRow.__table__.c.phone,
    ):
        assert column.type.length >= request_max

"""
Entity store for organizations, phone numbers, persons and reports.

All access goes through the abstract EntityStoreBackend; the SQLAlchemy
implementation runs on SQLite for local use and PostgreSQL in production
(DATABASE_URL). Keyed reads return a record or None; report queries return
lists ordered newest first (created_at DESC, id DESC).
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from backend_trustcheck.database.models import (
    OrganizationRecord,
    PersonRecord,
    PhoneNumberRecord,
    ReportRecord,
)
from backend_trustcheck.database.tables import (
    Base,
    OrganizationRow,
    PersonRow,
    PhoneNumberRow,
    ReportRow,
)
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

SQLITE_TIMEOUT_SEC = 5.0

# Fields an admin may edit on an organization
ORGANIZATION_EDITABLE_FIELDS = ("name", "trust_score", "risk_level", "vat_status")
# Columns overwritten when a registry refresh hits an existing organization
ORGANIZATION_REFRESH_FIELDS = ("name", "vat_status", "trust_score", "risk_level", "raw_data", "updated_at")

# INSERT ... ON CONFLICT per dialect
_UPSERT_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


# -----------------------------------------------------------------------------
# Abstract backend: the engine only talks to this interface.
# -----------------------------------------------------------------------------


class EntityStoreBackend(ABC):
    """Abstract interface for persistence; implement for any SQL or document store."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    # --- Organizations ---

    @abstractmethod
    def find_organization(self, tax_id: str) -> OrganizationRecord | None:
        """Return the organization with its linked phone numbers, or None."""
        ...

    @abstractmethod
    def upsert_organization(self, record: OrganizationRecord) -> OrganizationRecord:
        """
        Insert the organization, or overwrite name, VAT status, score, risk and
        raw payload of the existing row. updated_at defaults to now.
        Atomic: concurrent upserts of one tax id never fail, the last one wins.
        """
        ...

    @abstractmethod
    def update_organization(self, tax_id: str, fields: dict[str, Any]) -> OrganizationRecord | None:
        """Apply admin edits (ORGANIZATION_EDITABLE_FIELDS only). Returns None if absent."""
        ...

    @abstractmethod
    def list_organizations(self, *, limit: int = 100) -> list[OrganizationRecord]:
        """Return organizations, most recently created first (phones not loaded)."""
        ...

    # --- Phone numbers ---

    @abstractmethod
    def find_phone_number(self, number: str) -> PhoneNumberRecord | None:
        ...

    @abstractmethod
    def upsert_phone_number(
        self,
        record: PhoneNumberRecord,
        *,
        update_fields: tuple[str, ...] = (),
    ) -> PhoneNumberRecord:
        """
        Insert the number if unseen. If it exists, copy only update_fields from
        record onto the stored row (empty tuple leaves the row untouched).
        Atomic, like upsert_organization.
        """
        ...

    # --- Persons ---

    @abstractmethod
    def find_person_by_name(self, name: str) -> PersonRecord | None:
        """Exact, case-sensitive match; first by id when several persons share the name."""
        ...

    @abstractmethod
    def create_person(self, record: PersonRecord) -> PersonRecord:
        ...

    # --- Reports ---

    @abstractmethod
    def insert_report(self, record: ReportRecord) -> ReportRecord:
        """Persist a report. created_at defaults to now. Returns the record with its id."""
        ...

    @abstractmethod
    def find_reports_by_organization(self, tax_id: str) -> list[ReportRecord]:
        ...

    @abstractmethod
    def find_reports_by_phone(self, number: str) -> list[ReportRecord]:
        ...

    @abstractmethod
    def find_reports_by_person(self, person_id: int) -> list[ReportRecord]:
        ...

    @abstractmethod
    def latest_reports(self, *, limit: int = 6) -> list[ReportRecord]:
        """Return the newest reports across all targets."""
        ...


# -----------------------------------------------------------------------------
# Row <-> record conversion
# -----------------------------------------------------------------------------


def _phone_from_row(row: PhoneNumberRow) -> PhoneNumberRecord:
    return PhoneNumberRecord(
        number=row.number,
        country_code=row.country_code,
        trust_score=row.trust_score,
        risk_level=row.risk_level,
        organization_tax_id=row.organization_tax_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _organization_from_row(
    row: OrganizationRow,
    phones: list[PhoneNumberRow] | None = None,
) -> OrganizationRecord:
    return OrganizationRecord(
        tax_id=row.tax_id,
        name=row.name,
        vat_status=row.vat_status,
        trust_score=row.trust_score,
        risk_level=row.risk_level,
        raw_data=row.raw_data,
        phones=[_phone_from_row(p) for p in phones or []],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _person_from_row(row: PersonRow) -> PersonRecord:
    return PersonRecord(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        bank_account=row.bank_account,
        trust_score=row.trust_score,
        risk_level=row.risk_level,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _report_from_row(row: ReportRow) -> ReportRecord:
    return ReportRecord(
        id=row.id,
        rating=row.rating,
        reason=row.reason,
        comment=row.comment,
        ip_address=row.ip_address,
        organization_tax_id=row.organization_tax_id,
        phone_number=row.phone_number,
        person_id=row.person_id,
        reported_email=row.reported_email,
        social_link=row.social_link,
        bank_account=row.bank_account,
        screenshot_url=row.screenshot_url,
        screenshot_path=row.screenshot_path,
        created_at=row.created_at,
    )


# -----------------------------------------------------------------------------
# SQLAlchemy backend (SQLite / PostgreSQL)
# -----------------------------------------------------------------------------


class SQLAlchemyBackend(EntityStoreBackend):
    """SQLAlchemy implementation; one session per operation, commit on success."""

    def __init__(self, url: str, *, timeout_sec: float = SQLITE_TIMEOUT_SEC) -> None:
        self._url = url
        connect_args: dict[str, Any] = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = timeout_sec
        self._engine: Engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("entity_store_engine", url=url.split("?")[0].split("//")[-1])

    @property
    def engine(self) -> Engine:
        return self._engine

    def _insert(self, table: type[Base]) -> Any:
        """Dialect INSERT supporting on_conflict_do_update / on_conflict_do_nothing."""
        dialect = self._engine.dialect.name
        try:
            return _UPSERT_INSERTS[dialect](table)
        except KeyError:
            raise NotImplementedError(f"Upserts are not supported on {dialect}") from None

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    # --- Organizations ---

    def find_organization(self, tax_id: str) -> OrganizationRecord | None:
        with self._session_scope() as session:
            row = session.get(OrganizationRow, tax_id)
            if row is None:
                return None
            phones = session.scalars(
                select(PhoneNumberRow)
                .where(PhoneNumberRow.organization_tax_id == tax_id)
                .order_by(PhoneNumberRow.number)
            ).all()
            return _organization_from_row(row, list(phones))

    def upsert_organization(self, record: OrganizationRecord) -> OrganizationRecord:
        now = int(time.time())
        updated_at = record.updated_at if record.updated_at is not None else now
        stmt = self._insert(OrganizationRow).values(
            tax_id=record.tax_id,
            name=record.name,
            vat_status=record.vat_status,
            trust_score=record.trust_score,
            risk_level=record.risk_level,
            raw_data=record.raw_data,
            created_at=record.created_at if record.created_at is not None else updated_at,
            updated_at=updated_at,
        )
        # created_at is kept on conflict; everything else is last-write-wins
        stmt = stmt.on_conflict_do_update(
            index_elements=[OrganizationRow.tax_id],
            set_={key: stmt.excluded[key] for key in ORGANIZATION_REFRESH_FIELDS},
        )
        with self._session_scope() as session:
            session.execute(stmt)
            row = session.get(OrganizationRow, record.tax_id, populate_existing=True)
            phones = session.scalars(
                select(PhoneNumberRow).where(PhoneNumberRow.organization_tax_id == record.tax_id)
            ).all()
            return _organization_from_row(row, list(phones))

    def update_organization(self, tax_id: str, fields: dict[str, Any]) -> OrganizationRecord | None:
        with self._session_scope() as session:
            row = session.get(OrganizationRow, tax_id)
            if row is None:
                return None
            for key in ORGANIZATION_EDITABLE_FIELDS:
                if key in fields and fields[key] is not None:
                    setattr(row, key, fields[key])
            row.updated_at = int(time.time())
            session.flush()
            phones = session.scalars(
                select(PhoneNumberRow).where(PhoneNumberRow.organization_tax_id == tax_id)
            ).all()
            return _organization_from_row(row, list(phones))

    def list_organizations(self, *, limit: int = 100) -> list[OrganizationRecord]:
        with self._session_scope() as session:
            rows = session.scalars(
                select(OrganizationRow)
                .order_by(OrganizationRow.created_at.desc(), OrganizationRow.tax_id)
                .limit(limit)
            ).all()
            return [_organization_from_row(r) for r in rows]

    # --- Phone numbers ---

    def find_phone_number(self, number: str) -> PhoneNumberRecord | None:
        with self._session_scope() as session:
            row = session.get(PhoneNumberRow, number)
            return _phone_from_row(row) if row is not None else None

    def upsert_phone_number(
        self,
        record: PhoneNumberRecord,
        *,
        update_fields: tuple[str, ...] = (),
    ) -> PhoneNumberRecord:
        now = int(time.time())
        stmt = self._insert(PhoneNumberRow).values(
            number=record.number,
            country_code=record.country_code,
            trust_score=record.trust_score,
            risk_level=record.risk_level,
            organization_tax_id=record.organization_tax_id,
            created_at=record.created_at if record.created_at is not None else now,
            updated_at=now,
        )
        if update_fields:
            stmt = stmt.on_conflict_do_update(
                index_elements=[PhoneNumberRow.number],
                set_={key: stmt.excluded[key] for key in (*update_fields, "updated_at")},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[PhoneNumberRow.number])
        with self._session_scope() as session:
            session.execute(stmt)
            row = session.get(PhoneNumberRow, record.number, populate_existing=True)
            return _phone_from_row(row)

    # --- Persons ---

    def find_person_by_name(self, name: str) -> PersonRecord | None:
        with self._session_scope() as session:
            row = session.scalars(
                select(PersonRow).where(PersonRow.name == name).order_by(PersonRow.id).limit(1)
            ).first()
            return _person_from_row(row) if row is not None else None

    def create_person(self, record: PersonRecord) -> PersonRecord:
        now = int(time.time())
        with self._session_scope() as session:
            row = PersonRow(
                name=record.name,
                email=record.email,
                phone=record.phone,
                bank_account=record.bank_account,
                trust_score=record.trust_score,
                risk_level=record.risk_level,
                created_at=record.created_at if record.created_at is not None else now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            return _person_from_row(row)

    # --- Reports ---

    def insert_report(self, record: ReportRecord) -> ReportRecord:
        with self._session_scope() as session:
            row = ReportRow(
                rating=record.rating,
                reason=record.reason,
                comment=record.comment,
                ip_address=record.ip_address,
                organization_tax_id=record.organization_tax_id,
                phone_number=record.phone_number,
                person_id=record.person_id,
                reported_email=record.reported_email,
                social_link=record.social_link,
                bank_account=record.bank_account,
                screenshot_url=record.screenshot_url,
                screenshot_path=record.screenshot_path,
                created_at=record.created_at if record.created_at is not None else int(time.time()),
            )
            session.add(row)
            session.flush()
            return _report_from_row(row)

    def _find_reports(self, session: Session, condition: Any) -> list[ReportRecord]:
        rows = session.scalars(
            select(ReportRow)
            .where(condition)
            .order_by(ReportRow.created_at.desc(), ReportRow.id.desc())
        ).all()
        return [_report_from_row(r) for r in rows]

    def find_reports_by_organization(self, tax_id: str) -> list[ReportRecord]:
        with self._session_scope() as session:
            return self._find_reports(session, ReportRow.organization_tax_id == tax_id)

    def find_reports_by_phone(self, number: str) -> list[ReportRecord]:
        with self._session_scope() as session:
            return self._find_reports(session, ReportRow.phone_number == number)

    def find_reports_by_person(self, person_id: int) -> list[ReportRecord]:
        with self._session_scope() as session:
            return self._find_reports(session, ReportRow.person_id == person_id)

    def latest_reports(self, *, limit: int = 6) -> list[ReportRecord]:
        with self._session_scope() as session:
            rows = session.scalars(
                select(ReportRow)
                .order_by(ReportRow.created_at.desc(), ReportRow.id.desc())
                .limit(limit)
            ).all()
            return [_report_from_row(r) for r in rows]


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Entity store facade used by the verification services.

    Wraps an EntityStoreBackend (SQLAlchemy by default). Every method is a
    thin delegation so services and tests can swap the backend.
    """

    def __init__(self, backend: EntityStoreBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> EntityStoreBackend:
        return self._backend

    def ensure_schema(self) -> None:
        self._backend.ensure_schema()

    # --- Organizations ---

    def find_organization(self, tax_id: str) -> OrganizationRecord | None:
        return self._backend.find_organization(tax_id)

    def upsert_organization(self, record: OrganizationRecord) -> OrganizationRecord:
        return self._backend.upsert_organization(record)

    def update_organization(self, tax_id: str, fields: dict[str, Any]) -> OrganizationRecord | None:
        return self._backend.update_organization(tax_id, fields)

    def list_organizations(self, *, limit: int = 100) -> list[OrganizationRecord]:
        return self._backend.list_organizations(limit=limit)

    # --- Phone numbers ---

    def find_phone_number(self, number: str) -> PhoneNumberRecord | None:
        return self._backend.find_phone_number(number)

    def upsert_phone_number(
        self,
        record: PhoneNumberRecord,
        *,
        update_fields: tuple[str, ...] = (),
    ) -> PhoneNumberRecord:
        return self._backend.upsert_phone_number(record, update_fields=update_fields)

    # --- Persons ---

    def find_person_by_name(self, name: str) -> PersonRecord | None:
        return self._backend.find_person_by_name(name)

    def create_person(self, record: PersonRecord) -> PersonRecord:
        return self._backend.create_person(record)

    # --- Reports ---

    def insert_report(self, record: ReportRecord) -> ReportRecord:
        return self._backend.insert_report(record)

    def find_reports_by_organization(self, tax_id: str) -> list[ReportRecord]:
        return self._backend.find_reports_by_organization(tax_id)

    def find_reports_by_phone(self, number: str) -> list[ReportRecord]:
        return self._backend.find_reports_by_phone(number)

    def find_reports_by_person(self, person_id: int) -> list[ReportRecord]:
        return self._backend.find_reports_by_person(person_id)

    def latest_reports(self, *, limit: int = 6) -> list[ReportRecord]:
        return self._backend.latest_reports(limit=limit)


def get_database(url: str | None = None) -> Database:
    """
    Return a Database on the SQLAlchemy backend with the schema ensured.

    url: SQLAlchemy URL. Default: DATABASE_URL, else sqlite:///trustcheck.db (see config.env).
    """
    if url is None:
        from backend_trustcheck.config.env import get_database_url

        url = get_database_url()
    db = Database(SQLAlchemyBackend(url))
    db.ensure_schema()
    return db

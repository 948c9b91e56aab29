"""
Pytest fixtures for TrustCheck tests. Uses a temporary SQLite DB, a fake registry and a fixed clock.
"""

from __future__ import annotations

import time
from datetime import date

import pytest

from backend_trustcheck.config import Settings
from backend_trustcheck.core.exceptions import RegistryUnavailableError
from backend_trustcheck.integration.registry_client import RegistryClient, RegistryLookup

TAX_ID = "7010301234"
OTHER_TAX_ID = "5260250274"


class FakeRegistry(RegistryClient):
    """In-memory registry. Unknown tax ids are 'not found'; set error to simulate an outage."""

    def __init__(self) -> None:
        self.subjects: dict[str, RegistryLookup] = {}
        self.calls: list[tuple[str, date]] = []
        self.error: Exception | None = None

    def add(
        self,
        tax_id: str,
        *,
        name: str = "Acme Sp. z o.o.",
        vat_status: str = "Czynny",
        bank_accounts: list[str] | None = None,
    ) -> None:
        self.subjects[tax_id] = RegistryLookup(
            found=True,
            tax_id=tax_id,
            name=name,
            vat_status=vat_status,
            bank_accounts=list(bank_accounts or []),
            raw={"nip": tax_id, "name": name, "statusVat": vat_status},
        )

    def lookup(self, tax_id: str, as_of: date) -> RegistryLookup:
        self.calls.append((tax_id, as_of))
        if self.error is not None:
            raise self.error
        return self.subjects.get(tax_id, RegistryLookup(found=False, tax_id=tax_id))


class FixedClock:
    """Callable clock; tests move it with advance()."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite:///{tmp_path / 'trustcheck.db'}")


@pytest.fixture
def db(settings):
    """Fresh Database on a temporary SQLite file with the schema created."""
    from backend_trustcheck.database import get_database

    return get_database(settings.database_url)


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def failing_registry():
    fake = FakeRegistry()
    fake.error = RegistryUnavailableError("Registry request timed out", tax_id=TAX_ID)
    return fake


@pytest.fixture
def clock():
    return FixedClock(float(int(time.time())))


@pytest.fixture
def service(db, registry, settings, clock):
    from backend_trustcheck.verification import VerificationService

    return VerificationService(db, registry, settings, clock=clock)


@pytest.fixture
def reports_service(db, settings):
    from backend_trustcheck.verification import ReportsService

    return ReportsService(db, settings)


@pytest.fixture
def client(db, registry, settings):
    """FastAPI TestClient wired to the temp DB and the fake registry."""
    from fastapi.testclient import TestClient

    from backend_trustcheck.api_server.dependencies import get_app_settings, get_db, get_registry
    from backend_trustcheck.api_server.server import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_app_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Context bound by one test must not leak into the next."""
    from backend_trustcheck.trustcheck_logging import clear_request_context

    clear_request_context()
    yield
    clear_request_context()

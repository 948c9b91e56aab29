"""
Entity store — organizations, phone numbers, persons and community reports.

SQLite via SQLAlchemy for local use; PostgreSQL through DATABASE_URL.
"""

from backend_trustcheck.database.database import (
    Database,
    EntityStoreBackend,
    SQLAlchemyBackend,
    get_database,
)
from backend_trustcheck.database.models import (
    DEFAULT_RISK_LEVEL,
    DEFAULT_TRUST_SCORE,
    TARGET_VALUE_MAX_LENGTH,
    OrganizationRecord,
    PersonRecord,
    PhoneNumberRecord,
    ReportRecord,
)

__all__ = [
    "Database",
    "EntityStoreBackend",
    "SQLAlchemyBackend",
    "get_database",
    "DEFAULT_RISK_LEVEL",
    "DEFAULT_TRUST_SCORE",
    "TARGET_VALUE_MAX_LENGTH",
    "OrganizationRecord",
    "PersonRecord",
    "PhoneNumberRecord",
    "ReportRecord",
]

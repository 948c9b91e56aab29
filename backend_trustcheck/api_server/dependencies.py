"""
FastAPI dependencies: settings, database, registry client and services.

Database and registry client are app-scoped (built once per process from
Settings). Tests replace them through app.dependency_overrides.
"""

from __future__ import annotations

import functools

from fastapi import Depends

from backend_trustcheck.config import Settings, get_settings
from backend_trustcheck.database import Database, get_database
from backend_trustcheck.integration.registry_client import RegistryClient, VatWhiteListClient
from backend_trustcheck.verification import ReportsService, VerificationService


@functools.lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


@functools.lru_cache(maxsize=1)
def _database_for(url: str) -> Database:
    return get_database(url)


def get_db(settings: Settings = Depends(get_app_settings)) -> Database:
    return _database_for(settings.database_url)


def get_registry(settings: Settings = Depends(get_app_settings)) -> RegistryClient:
    return VatWhiteListClient(settings.registry_url, timeout_sec=settings.registry_timeout_sec)


def get_verification_service(
    db: Database = Depends(get_db),
    registry: RegistryClient = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
) -> VerificationService:
    return VerificationService(db, registry, settings)


def get_reports_service(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ReportsService:
    return ReportsService(db, settings)

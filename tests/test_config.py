"""
Tests for environment-driven configuration (config.env getters and Settings).
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from backend_trustcheck.config import Settings, get_settings
from backend_trustcheck.config import env


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DATABASE_URL",
        "TRUSTCHECK_DB_PATH",
        "MF_API_URL",
        "REGISTRY_TIMEOUT_SEC",
        "DEFAULT_PHONE_REGION",
        "CACHE_FRESHNESS_HOURS",
        "EVIDENCE_WINDOW",
    ):
        monkeypatch.setenv(name, "")
    # keep a developer's .env out of the picture
    monkeypatch.setattr(env, "load_trustcheck_env", lambda: None)


def test_defaults():
    settings = get_settings()
    assert settings.database_url == "sqlite:///trustcheck.db"
    assert settings.registry_url == "https://wl-api.mf.gov.pl/api/search/nip/"
    assert settings.default_phone_region == "PL"
    assert settings.evidence_window == 3
    assert settings.freshness_window == timedelta(hours=24)


def test_database_url_precedence(monkeypatch, tmp_path):
    monkeypatch.setenv("TRUSTCHECK_DB_PATH", str(tmp_path / "x.db"))
    assert env.get_database_url() == f"sqlite:///{tmp_path / 'x.db'}"
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/trustcheck")
    assert env.get_database_url() == "postgresql://u:p@localhost/trustcheck"


def test_registry_url_gets_trailing_slash(monkeypatch):
    monkeypatch.setenv("MF_API_URL", "http://registry.local/nip")
    assert env.get_registry_url() == "http://registry.local/nip/"


def test_region_is_upper_cased(monkeypatch):
    monkeypatch.setenv("DEFAULT_PHONE_REGION", "de")
    assert get_settings().default_phone_region == "DE"


def test_bad_numbers_are_rejected(monkeypatch):
    monkeypatch.setenv("REGISTRY_TIMEOUT_SEC", "soon")
    with pytest.raises(ValueError, match="REGISTRY_TIMEOUT_SEC"):
        env.get_registry_timeout_sec()
    monkeypatch.setenv("REGISTRY_TIMEOUT_SEC", "0")
    with pytest.raises(ValueError, match="positive"):
        env.get_registry_timeout_sec()


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(AttributeError):
        settings.evidence_window = 10

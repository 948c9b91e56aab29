"""
Application settings and environment configuration.

Responsibilities:
- Collect configuration from environment variables and .env (see config.env).
- Validate values and provide defaults for optional ones.
- Expose a typed, immutable Settings object for the verification services,
  registry client, database and API server.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from backend_trustcheck.config import env


@dataclass(frozen=True)
class Settings:
    """Typed service configuration. Build with get_settings() or directly in tests."""

    database_url: str = f"sqlite:///{env.DEFAULT_DB_PATH}"
    registry_url: str = env.DEFAULT_MF_API_URL
    registry_timeout_sec: float = env.DEFAULT_REGISTRY_TIMEOUT_SEC
    default_phone_region: str = env.DEFAULT_PHONE_REGION
    cache_freshness_hours: float = env.DEFAULT_CACHE_FRESHNESS_HOURS
    evidence_window: int = env.DEFAULT_EVIDENCE_WINDOW
    latest_reports_limit: int = env.DEFAULT_LATEST_REPORTS_LIMIT
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def freshness_window(self) -> timedelta:
        return timedelta(hours=self.cache_freshness_hours)


def get_settings() -> Settings:
    """
    Return the current application settings read from the environment.

    Raises:
        ValueError: if a numeric variable cannot be parsed.
    """
    return Settings(
        database_url=env.get_database_url(),
        registry_url=env.get_registry_url(),
        registry_timeout_sec=env.get_registry_timeout_sec(),
        default_phone_region=env.get_default_phone_region(),
        cache_freshness_hours=env.get_cache_freshness_hours(),
        evidence_window=env.get_evidence_window(),
        latest_reports_limit=env.get_latest_reports_limit(),
        api_host=env.get_api_host(),
        api_port=env.get_api_port(),
    )

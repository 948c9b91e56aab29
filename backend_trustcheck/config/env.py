"""
Environment variable loading and validation for TrustCheck.

- DATABASE_URL: SQLAlchemy URL (PostgreSQL in production)
- TRUSTCHECK_DB_PATH: SQLite file used when DATABASE_URL is unset (default: trustcheck.db)
- MF_API_URL: VAT white-list registry search endpoint (tax id is appended)
- REGISTRY_TIMEOUT_SEC: HTTP timeout for registry calls
- DEFAULT_PHONE_REGION: region hint for numbers without a country prefix (default: PL)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_trustcheck/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_DB_PATH = "trustcheck.db"
DEFAULT_MF_API_URL = "https://wl-api.mf.gov.pl/api/search/nip/"
DEFAULT_REGISTRY_TIMEOUT_SEC = 10.0
DEFAULT_PHONE_REGION = "PL"
DEFAULT_CACHE_FRESHNESS_HOURS = 24.0
DEFAULT_EVIDENCE_WINDOW = 3
DEFAULT_LATEST_REPORTS_LIMIT = 6


def load_trustcheck_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env vars."""
    load_dotenv(_ENV_PATH, override=False)


def _get_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _get_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def get_database_url() -> str:
    """
    Resolve the SQLAlchemy database URL.
    Order: DATABASE_URL > sqlite:///TRUSTCHECK_DB_PATH > sqlite:///trustcheck.db.
    """
    load_trustcheck_env()
    url = (os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = _get_str("TRUSTCHECK_DB_PATH", DEFAULT_DB_PATH)
    return f"sqlite:///{path}"


def get_registry_url() -> str:
    """Return the registry base URL; always ends with a slash so the tax id can be appended."""
    load_trustcheck_env()
    url = _get_str("MF_API_URL", DEFAULT_MF_API_URL)
    return url if url.endswith("/") else url + "/"


def get_registry_timeout_sec() -> float:
    load_trustcheck_env()
    timeout = _get_float("REGISTRY_TIMEOUT_SEC", DEFAULT_REGISTRY_TIMEOUT_SEC)
    if timeout <= 0:
        raise ValueError("REGISTRY_TIMEOUT_SEC must be positive")
    return timeout


def get_default_phone_region() -> str:
    """Return DEFAULT_PHONE_REGION as an upper-case ISO 3166 code. Default: PL."""
    load_trustcheck_env()
    return _get_str("DEFAULT_PHONE_REGION", DEFAULT_PHONE_REGION).upper()


def get_cache_freshness_hours() -> float:
    load_trustcheck_env()
    return _get_float("CACHE_FRESHNESS_HOURS", DEFAULT_CACHE_FRESHNESS_HOURS)


def get_evidence_window() -> int:
    """Number of most recent reports returned with an organization verification."""
    load_trustcheck_env()
    return max(0, _get_int("EVIDENCE_WINDOW", DEFAULT_EVIDENCE_WINDOW))


def get_latest_reports_limit() -> int:
    load_trustcheck_env()
    return max(1, _get_int("LATEST_REPORTS_LIMIT", DEFAULT_LATEST_REPORTS_LIMIT))


def get_api_host() -> str:
    load_trustcheck_env()
    return _get_str("API_HOST", "0.0.0.0")


def get_api_port() -> int:
    load_trustcheck_env()
    return _get_int("API_PORT", 8000)

"""
External tax registry client (Polish Ministry of Finance VAT "white list").

GET {MF_API_URL}{tax_id}?date=YYYY-MM-DD returns {"result": {"subject": {...} | null}}.
A null subject is a regular "not found" outcome. Timeouts, transport errors,
non-2xx statuses and payloads without a "result" object raise
RegistryUnavailableError so callers never mistake an outage for "not found".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx

from backend_trustcheck.core.exceptions import RegistryUnavailableError
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

REGISTRY_SOURCE = "MF_WHITE_LIST"
VAT_STATUS_ACTIVE = "Czynny"
"""Registry literal for an active VAT payer."""


@dataclass
class RegistryLookup:
    """Outcome of a registry lookup. found=False carries no subject fields."""

    found: bool
    tax_id: str
    name: str | None = None
    vat_status: str | None = None
    bank_accounts: list[str] = field(default_factory=list)
    regon: str | None = None
    krs: str | None = None
    address: str | None = None
    registration_date: str | None = None
    raw: dict[str, Any] | None = None
    source: str = REGISTRY_SOURCE

    @property
    def is_vat_active(self) -> bool:
        return self.vat_status == VAT_STATUS_ACTIVE

    def to_payload(self) -> dict[str, Any]:
        """Serializable form stored as the organization's raw registry data."""
        return {
            "found": self.found,
            "source": self.source,
            "tax_id": self.tax_id,
            "name": self.name,
            "vat_status": self.vat_status,
            "regon": self.regon,
            "krs": self.krs,
            "address": self.address,
            "bank_accounts": list(self.bank_accounts),
            "registration_date": self.registration_date,
            "subject": self.raw,
        }


class RegistryClient(ABC):
    """Live lookup of an organization in a government tax registry."""

    @abstractmethod
    def lookup(self, tax_id: str, as_of: date) -> RegistryLookup:
        """
        Return the registry state of tax_id on as_of.

        Raises:
            RegistryUnavailableError: on timeout, transport or payload failure.
        """
        ...


def parse_subject(tax_id: str, payload: Any) -> RegistryLookup:
    """Map a white-list JSON body to RegistryLookup. Raises RegistryUnavailableError if malformed."""
    if not isinstance(payload, dict) or not isinstance(payload.get("result"), dict):
        raise RegistryUnavailableError("Registry returned an unexpected payload", tax_id=tax_id)
    subject = payload["result"].get("subject")
    if subject is None:
        return RegistryLookup(found=False, tax_id=tax_id)
    if not isinstance(subject, dict):
        raise RegistryUnavailableError("Registry subject is not an object", tax_id=tax_id)

    accounts = subject.get("accountNumbers") or []
    if not isinstance(accounts, list):
        raise RegistryUnavailableError("Registry accountNumbers is not a list", tax_id=tax_id)

    return RegistryLookup(
        found=True,
        tax_id=str(subject.get("nip") or tax_id),
        name=subject.get("name"),
        vat_status=subject.get("statusVat"),
        bank_accounts=[str(a) for a in accounts],
        regon=subject.get("regon"),
        krs=subject.get("krs"),
        address=subject.get("workingAddress") or subject.get("residenceAddress"),
        registration_date=subject.get("registrationLegalDate"),
        raw=subject,
    )


class VatWhiteListClient(RegistryClient):
    """HTTP client for the VAT white list. Pass an httpx.Client to reuse connections or mock transport."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._timeout_sec = timeout_sec
        self._client = client

    def _url(self, tax_id: str) -> str:
        return f"{self._base_url}{tax_id}"

    def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url, params=params, timeout=self._timeout_sec)
        with httpx.Client(timeout=self._timeout_sec) as client:
            return client.get(url, params=params)

    def lookup(self, tax_id: str, as_of: date) -> RegistryLookup:
        url = self._url(tax_id)
        params = {"date": as_of.isoformat()}
        logger.info("registry_lookup_started", tax_id=tax_id, as_of=params["date"])
        try:
            resp = self._get(url, params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            logger.warning("registry_lookup_timeout", tax_id=tax_id, timeout_sec=self._timeout_sec)
            raise RegistryUnavailableError("Registry request timed out", tax_id=tax_id) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("registry_lookup_http_error", tax_id=tax_id, status_code=status)
            raise RegistryUnavailableError(
                f"Registry responded with HTTP {status}", tax_id=tax_id, status_code=status
            ) from e
        except httpx.HTTPError as e:
            logger.warning("registry_lookup_failed", tax_id=tax_id, error=str(e))
            raise RegistryUnavailableError("Registry request failed", tax_id=tax_id) from e
        except ValueError as e:
            logger.warning("registry_lookup_invalid_json", tax_id=tax_id, error=str(e))
            raise RegistryUnavailableError("Registry returned invalid JSON", tax_id=tax_id) from e

        result = parse_subject(tax_id, data)
        logger.info(
            "registry_lookup_finished",
            tax_id=tax_id,
            found=result.found,
            vat_status=result.vat_status,
            bank_accounts=len(result.bank_accounts),
        )
        return result

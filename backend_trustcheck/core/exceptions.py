"""
Application-level exceptions.

Three caller-visible failure categories:
- InvalidInputError: malformed tax id, empty query, bad report payload.
  Raised before any storage or registry access.
- UnknownEntityError: an admin or report operation targets a record that
  does not exist. (A registry "not found" during verification is a result,
  not an exception.)
- RegistryUnavailableError: registry timeout, transport error, unexpected
  HTTP status or malformed payload. Never treated as "not found".

Each carries a stable code for API error bodies.
"""

from __future__ import annotations


class TrustCheckError(Exception):
    """Base class for TrustCheck domain errors."""

    code = "trustcheck_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "detail": self.message}


class InvalidInputError(TrustCheckError):
    code = "invalid_input"


class UnknownEntityError(TrustCheckError):
    code = "unknown_entity"


class RegistryUnavailableError(TrustCheckError):
    """Registry could not be queried or returned something we cannot interpret."""

    code = "registry_unavailable"

    def __init__(self, message: str, *, tax_id: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.tax_id = tax_id
        self.status_code = status_code

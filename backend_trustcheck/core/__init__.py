"""
Core utilities — domain exceptions and cross-cutting concerns
shared by the verification services, registry client and API server.
"""

from backend_trustcheck.core.exceptions import (
    InvalidInputError,
    RegistryUnavailableError,
    TrustCheckError,
    UnknownEntityError,
)

__all__ = [
    "InvalidInputError",
    "RegistryUnavailableError",
    "TrustCheckError",
    "UnknownEntityError",
]

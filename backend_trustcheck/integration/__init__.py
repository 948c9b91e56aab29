"""
Integrations with external services (tax registry).
"""

from backend_trustcheck.integration.registry_client import (
    VAT_STATUS_ACTIVE,
    RegistryClient,
    RegistryLookup,
    VatWhiteListClient,
)

__all__ = [
    "VAT_STATUS_ACTIVE",
    "RegistryClient",
    "RegistryLookup",
    "VatWhiteListClient",
]

"""
Identity package — classification and canonical forms of user queries.
"""

from backend_trustcheck.identity.normalizer import (
    Identifier,
    IdentifierKind,
    classify,
    is_tax_id,
    normalize_phone,
    region_of,
)

__all__ = [
    "Identifier",
    "IdentifierKind",
    "classify",
    "is_tax_id",
    "normalize_phone",
    "region_of",
]

"""
Identifier normalizer: classify a raw query as tax id, phone number or person name.

Rules, in order:
- exactly 10 ASCII digits -> TAX_ID, kept as is;
- no letters and a valid number for the given region -> PHONE_NUMBER in E.164;
- anything else -> FREE_TEXT_NAME, kept as is (exact, case-sensitive match later).

Never raises for string input. A phone-like string that fails numbering-plan
validation falls back to FREE_TEXT_NAME; both forms stay on the Identifier.
The default region is always passed in by the caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger(__name__)

TAX_ID_PATTERN = re.compile(r"^[0-9]{10}$")
_LETTER_PATTERN = re.compile(r"[^\W\d_]")


class IdentifierKind(str, Enum):
    TAX_ID = "TAX_ID"
    PHONE_NUMBER = "PHONE_NUMBER"
    FREE_TEXT_NAME = "FREE_TEXT_NAME"


@dataclass(frozen=True)
class Identifier:
    """Classified query. original is the stripped input; canonical is what lookups use."""

    kind: IdentifierKind
    canonical: str
    original: str

    @property
    def is_phone(self) -> bool:
        return self.kind is IdentifierKind.PHONE_NUMBER

    @property
    def is_tax_id(self) -> bool:
        return self.kind is IdentifierKind.TAX_ID


def is_tax_id(value: str) -> bool:
    """True for a 10-digit tax id (NIP)."""
    return bool(TAX_ID_PATTERN.match(value or ""))


def has_letters(value: str) -> bool:
    return bool(_LETTER_PATTERN.search(value))


def normalize_phone(raw: str, default_region: str) -> str | None:
    """
    Return the E.164 form of raw, or None if it is not a valid number.

    Strings containing letters are rejected up front: the numbering-plan parser
    would otherwise read vanity letters as digits.
    """
    raw = (raw or "").strip()
    if not raw or has_letters(raw):
        return None
    try:
        parsed = phonenumbers.parse(raw, default_region)
    except NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def region_of(canonical: str) -> str | None:
    """ISO region code for an E.164 number, or None when it cannot be determined."""
    try:
        parsed = phonenumbers.parse(canonical, None)
    except NumberParseException:
        return None
    return phonenumbers.region_code_for_number(parsed)


def classify(raw: str, default_region: str) -> Identifier:
    """
    Classify raw and compute its canonical form.

    Args:
        raw: User query (tax id, phone number in any common notation, or a name).
        default_region: ISO 3166 region used for numbers without a + prefix.

    Returns:
        Identifier with kind, canonical and original (stripped) forms.
    """
    original = (raw or "").strip()

    if is_tax_id(original):
        return Identifier(IdentifierKind.TAX_ID, original, original)

    if original and not has_letters(original):
        canonical = normalize_phone(original, default_region)
        if canonical is not None:
            return Identifier(IdentifierKind.PHONE_NUMBER, canonical, original)
        logger.debug(
            "identifier_phone_fallback",
            query=original,
            region=default_region,
        )

    return Identifier(IdentifierKind.FREE_TEXT_NAME, original, original)

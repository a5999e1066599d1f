"""Stateless validators for identifiers found on invoices.

Every function here is pure: it takes a string and answers whether it is
acceptable, or returns a normalised form. Entities call them while they are
built and the rule layers call them again when they inspect an aggregate.
"""

from __future__ import annotations

import re

_EU_VAT_PATTERN = re.compile(r"^[A-Z]{2}[A-Z0-9]{2,12}$")
_BE_VAT_PATTERN = re.compile(r"^BE[0-9]{10}$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_COUNTRY_PATTERN = re.compile(r"^[A-Z]{2}$")
_IBAN_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]+$")
_BIC_PATTERN = re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$")
_STRUCTURED_REF_PATTERN = re.compile(r"^[0-9]{12}$")


def mod97_check_digits(base: int) -> int:
    """Return ``97 - (base mod 97)``; the result is 97 when the remainder is 0."""

    return 97 - (base % 97)


def normalise_vat_id(value: str) -> str:
    """Strip spaces and dots and upper-case a VAT identifier."""

    return value.replace(" ", "").replace(".", "").strip().upper()


def is_valid_belgian_vat(value: str) -> bool:
    vat = normalise_vat_id(value)
    if not _BE_VAT_PATTERN.match(vat):
        return False
    digits = vat[2:]
    return mod97_check_digits(int(digits[:8])) == int(digits[8:])


def is_valid_vat_id(value: str) -> bool:
    """EU pattern check, plus the modulo-97 check for Belgian numbers."""

    vat = normalise_vat_id(value)
    if not _EU_VAT_PATTERN.match(vat):
        return False
    if vat.startswith("BE"):
        return is_valid_belgian_vat(vat)
    return True


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_PATTERN.match(value.strip()))


def is_valid_country_code(value: str) -> bool:
    return bool(_COUNTRY_PATTERN.match(value))


def normalise_iban(value: str) -> str:
    return value.replace(" ", "").strip().upper()


def is_valid_iban(value: str) -> bool:
    """Pattern check followed by the ISO 13616 modulo-97 test."""

    iban = normalise_iban(value)
    if not _IBAN_PATTERN.match(iban) or len(iban) > 34:
        return False
    rearranged = iban[4:] + iban[:4]
    numeric = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(numeric) % 97 == 1


def is_valid_bic(value: str) -> bool:
    return bool(_BIC_PATTERN.match(value.replace(" ", "").strip().upper()))


def make_structured_reference(base: str | int) -> str:
    """Append the two check digits to a 10-digit base."""

    digits = str(base).strip()
    if not digits.isdigit() or len(digits) != 10:
        raise ValueError(f"structured reference base must be 10 digits, got {base!r}")
    return f"{digits}{mod97_check_digits(int(digits)):02d}"


def strip_structured_reference(value: str) -> str:
    """Remove the ``+++ddd/dddd/ddddd+++`` decoration, keeping the digits."""

    return "".join(ch for ch in value if ch.isdigit())


def is_valid_structured_reference(value: str) -> bool:
    digits = strip_structured_reference(value)
    if not _STRUCTURED_REF_PATTERN.match(digits):
        return False
    return mod97_check_digits(int(digits[:10])) == int(digits[10:])


def format_structured_reference(value: str) -> str:
    """Render a 12-digit reference as ``+++123/4567/89095+++``."""

    digits = strip_structured_reference(value)
    if len(digits) != 12:
        raise ValueError(f"structured reference must have 12 digits, got {value!r}")
    return f"+++{digits[:3]}/{digits[3:7]}/{digits[7:]}+++"


__all__ = [
    "format_structured_reference",
    "is_valid_belgian_vat",
    "is_valid_bic",
    "is_valid_country_code",
    "is_valid_email",
    "is_valid_iban",
    "is_valid_structured_reference",
    "is_valid_vat_id",
    "make_structured_reference",
    "mod97_check_digits",
    "normalise_iban",
    "normalise_vat_id",
    "strip_structured_reference",
]

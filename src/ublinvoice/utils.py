"""Utility helpers shared across ublinvoice modules."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from lxml import etree

from .constants import NS_INVOICE
from .exceptions import ConstructionError

AMT2 = Decimal("0.01")
ZERO = Decimal("0")


def detect_namespace(root: etree._Element) -> str:
    """Return the XML namespace detected for the document root."""

    tag = getattr(root, "tag", "")
    if isinstance(tag, str) and tag.startswith("{") and "}" in tag:
        return tag.split("}", 1)[0][1:]
    return NS_INVOICE


def to_decimal(value: object, field_name: str) -> Decimal:
    """Strict conversion used by entity constructors."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ConstructionError(f"{field_name}: boolean is not a number")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ConstructionError(f"{field_name}: invalid number {value!r}") from exc
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        raise ConstructionError(f"{field_name}: invalid number {value!r}")
    if not result.is_finite():
        raise ConstructionError(f"{field_name}: invalid number {value!r}")
    return result


def to_date(value: object, field_name: str) -> date:
    """Accept a :class:`date` or an ISO ``YYYY-MM-DD`` string."""

    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ConstructionError(f"{field_name}: invalid date {value!r}") from exc
    raise ConstructionError(f"{field_name}: invalid date {value!r}")


def q2(v: Decimal) -> Decimal:
    return v.quantize(AMT2, rounding=ROUND_HALF_UP)


def fmt2(x: Decimal) -> str:
    return f"{q2(x):.2f}"


def fmt_quantity(x: Decimal) -> str:
    """Render a quantity or rate without a trailing exponent or zeros."""

    text = format(x.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


__all__ = [
    "AMT2",
    "ZERO",
    "detect_namespace",
    "fmt2",
    "fmt_quantity",
    "q2",
    "to_date",
    "to_decimal",
]

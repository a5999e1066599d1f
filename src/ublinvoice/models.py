"""Value entities that make up an invoice.

Every entity validates its fields when it is created. Passing
``checked=False`` skips the checks; the lenient importer uses it to keep
malformed values exactly as they were read so they can be reported later.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import InitVar, dataclass, field, replace
from datetime import date
from decimal import Decimal
from pathlib import PurePath

from . import checks
from .constants import (
    ALLOWANCE_REASON_CODES,
    CHARGE_REASON_CODES,
    ELECTRONIC_ADDRESS_SCHEMES,
    EXEMPT_CATEGORIES,
    MAX_ATTACHMENT_SIZE,
    MIME_TYPES_BY_EXTENSION,
    PAYMENT_MEANS_CODES,
    SUPPORTED_MIME_TYPES,
    UNIT_CODES,
    VAT_CATEGORIES,
    VAT_EXEMPTION_REASONS,
    ZERO_RATE_CATEGORIES,
)
from .exceptions import ConstructionError
from .utils import ZERO, q2, to_date, to_decimal

VatKey = tuple[str, Decimal]


def _require(value: str | None, field_name: str) -> None:
    if value is None or not str(value).strip():
        raise ConstructionError(f"{field_name} is required")


def _optional_date(value: object, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    return to_date(value, field_name)


def _check_vat_category(category: str, rate: Decimal) -> None:
    if category not in VAT_CATEGORIES:
        raise ConstructionError(f"unknown VAT category {category!r}")
    if rate < 0 or rate > 100:
        raise ConstructionError(f"VAT rate must be between 0 and 100, got {rate}")
    if category == "S" and rate <= 0:
        raise ConstructionError("VAT category S requires a rate greater than 0")
    if category in ZERO_RATE_CATEGORIES and rate != 0:
        raise ConstructionError(f"VAT category {category} requires a rate of 0")


@dataclass
class Address:
    """Postal address (BG-5 / BG-8)."""

    street: str
    city: str
    postal_code: str
    country_code: str
    additional_street: str | None = None
    subdivision: str | None = None
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        _require(self.street, "street")
        _require(self.city, "city")
        _require(self.postal_code, "postal code")
        self.country_code = (self.country_code or "").strip().upper()
        if not checks.is_valid_country_code(self.country_code):
            raise ConstructionError(f"invalid country code {self.country_code!r}")


@dataclass
class ElectronicAddress:
    """Routing identifier (BT-34 / BT-49) qualified by its scheme."""

    scheme_id: str
    identifier: str
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        if self.scheme_id not in ELECTRONIC_ADDRESS_SCHEMES:
            raise ConstructionError(f"unknown electronic address scheme {self.scheme_id!r}")
        _require(self.identifier, "electronic address identifier")
        self.identifier = self.identifier.strip()

    @classmethod
    def from_enterprise_number(cls, number: str) -> "ElectronicAddress":
        """Belgian enterprise number (scheme 0208), dots and ``BE`` prefix removed."""

        digits = "".join(ch for ch in number if ch.isdigit())
        if len(digits) != 10:
            raise ConstructionError(f"enterprise number must have 10 digits, got {number!r}")
        return cls("0208", digits)

    @classmethod
    def from_vat(cls, vat_id: str) -> "ElectronicAddress":
        vat = checks.normalise_vat_id(vat_id)
        if not checks.is_valid_vat_id(vat):
            raise ConstructionError(f"invalid VAT identifier {vat_id!r}")
        return cls("9925", vat)

    @classmethod
    def from_gln(cls, gln: str) -> "ElectronicAddress":
        digits = gln.strip()
        if len(digits) != 13 or not digits.isdigit():
            raise ConstructionError(f"GLN must have 13 digits, got {gln!r}")
        return cls("0088", digits)

    def __str__(self) -> str:
        return f"{self.scheme_id}:{self.identifier}"


@dataclass
class Party:
    """Seller (BG-4) or buyer (BG-7)."""

    name: str
    address: Address
    vat_id: str | None = None
    company_id: str | None = None
    email: str | None = None
    electronic_address: ElectronicAddress | None = None
    phone: str | None = None
    legal_form: str | None = None
    contact_name: str | None = None
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        _require(self.name, "party name")
        if self.vat_id:
            vat = checks.normalise_vat_id(self.vat_id)
            if vat.startswith("BE") and not checks.is_valid_belgian_vat(vat):
                raise ConstructionError(f"invalid Belgian VAT number {self.vat_id!r} (modulo 97)")
            if not checks.is_valid_vat_id(vat):
                raise ConstructionError(f"invalid VAT identifier {self.vat_id!r}")
            self.vat_id = vat
        if self.email:
            self.email = self.email.strip()
            if not checks.is_valid_email(self.email):
                raise ConstructionError(f"invalid email address {self.email!r}")

    @property
    def country_code(self) -> str:
        return self.address.country_code


@dataclass
class AllowanceCharge:
    """Allowance (deduction) or charge (addition), on a line or on the document."""

    charge_indicator: bool
    amount: Decimal
    vat_category: str = "S"
    vat_rate: Decimal = Decimal("21")
    reason: str | None = None
    reason_code: str | None = None
    percentage: Decimal | None = None
    base_amount: Decimal | None = None
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        self.amount = to_decimal(self.amount, "allowance/charge amount")
        self.vat_rate = to_decimal(self.vat_rate, "allowance/charge VAT rate")
        if self.percentage is not None:
            self.percentage = to_decimal(self.percentage, "allowance/charge percentage")
        if self.base_amount is not None:
            self.base_amount = to_decimal(self.base_amount, "allowance/charge base amount")

        if self.amount < 0:
            raise ConstructionError("allowance/charge amount must not be negative")
        if self.percentage is not None and not (0 <= self.percentage <= 100):
            raise ConstructionError("allowance/charge percentage must be between 0 and 100")
        if self.base_amount is not None and self.base_amount < 0:
            raise ConstructionError("allowance/charge base amount must not be negative")
        if self.vat_category not in VAT_CATEGORIES:
            raise ConstructionError(f"unknown VAT category {self.vat_category!r}")
        if self.reason_code is not None:
            table = CHARGE_REASON_CODES if self.charge_indicator else ALLOWANCE_REASON_CODES
            if self.reason_code not in table:
                kind = "charge" if self.charge_indicator else "allowance"
                raise ConstructionError(f"unknown {kind} reason code {self.reason_code!r}")

    @classmethod
    def allowance(cls, amount: object, vat_category: str = "S", vat_rate: object = Decimal("21"), **kwargs) -> "AllowanceCharge":
        return cls(False, amount, vat_category, vat_rate, **kwargs)  # type: ignore[arg-type]

    @classmethod
    def charge(cls, amount: object, vat_category: str = "S", vat_rate: object = Decimal("21"), **kwargs) -> "AllowanceCharge":
        return cls(True, amount, vat_category, vat_rate, **kwargs)  # type: ignore[arg-type]

    @classmethod
    def from_percentage(
        cls,
        charge_indicator: bool,
        base_amount: object,
        percentage: object,
        vat_category: str = "S",
        vat_rate: object = Decimal("21"),
        **kwargs,
    ) -> "AllowanceCharge":
        """Derive the amount from ``base_amount`` and ``percentage``."""

        base = to_decimal(base_amount, "allowance/charge base amount")
        pct = to_decimal(percentage, "allowance/charge percentage")
        return cls(
            charge_indicator,
            q2(base * pct / Decimal("100")),
            vat_category,
            vat_rate,  # type: ignore[arg-type]
            percentage=pct,
            base_amount=base,
            **kwargs,
        )

    @property
    def is_allowance(self) -> bool:
        return not self.charge_indicator

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.charge_indicator else -self.amount

    @property
    def vat_key(self) -> VatKey:
        return (self.vat_category, self.vat_rate)

    @property
    def vat_amount(self) -> Decimal:
        return q2(self.amount * self.vat_rate / Decimal("100"))


@dataclass
class InvoiceLine:
    """Invoice line (BG-25)."""

    line_id: str
    name: str
    quantity: Decimal
    unit_code: str = "C62"
    unit_price: Decimal = ZERO
    vat_category: str = "S"
    vat_rate: Decimal = Decimal("21")
    description: str | None = None
    note: str | None = None
    period_start: date | None = None
    period_end: date | None = None
    order_line_reference: str | None = None
    buyer_item_id: str | None = None
    seller_item_id: str | None = None
    standard_item_id: str | None = None
    standard_item_scheme: str = "0160"
    origin_country: str | None = None
    commodity_code: str | None = None
    allowance_charges: list[AllowanceCharge] = field(default_factory=list)
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        _require(self.line_id, "line id")
        _require(self.name, "line name")
        self.quantity = to_decimal(self.quantity, f"line {self.line_id} quantity")
        self.unit_price = to_decimal(self.unit_price, f"line {self.line_id} unit price")
        self.vat_rate = to_decimal(self.vat_rate, f"line {self.line_id} VAT rate")
        self.period_start = _optional_date(self.period_start, "line period start")
        self.period_end = _optional_date(self.period_end, "line period end")

        if self.quantity <= 0:
            raise ConstructionError(f"line {self.line_id}: quantity must be greater than 0")
        if self.unit_price < 0:
            raise ConstructionError(f"line {self.line_id}: unit price must not be negative")
        if self.unit_code not in UNIT_CODES:
            raise ConstructionError(f"line {self.line_id}: unknown unit code {self.unit_code!r}")
        try:
            _check_vat_category(self.vat_category, self.vat_rate)
        except ConstructionError as exc:
            raise ConstructionError(f"line {self.line_id}: {exc}") from exc
        if self.period_start and self.period_end and self.period_end < self.period_start:
            raise ConstructionError(f"line {self.line_id}: period end precedes period start")
        if self.origin_country and not checks.is_valid_country_code(self.origin_country):
            raise ConstructionError(f"line {self.line_id}: invalid origin country {self.origin_country!r}")
        self.allowance_charges = [self._taxed_like_line(item) for item in self.allowance_charges]

    def _taxed_like_line(self, item: AllowanceCharge) -> AllowanceCharge:
        # UBL has no tax category on line allowances; they follow the line.
        if item.vat_key == self.vat_key:
            return item
        return replace(item, vat_category=self.vat_category, vat_rate=self.vat_rate)

    def add_allowance_charge(self, allowance_charge: AllowanceCharge) -> None:
        self.allowance_charges.append(self._taxed_like_line(allowance_charge))

    @property
    def vat_key(self) -> VatKey:
        return (self.vat_category, self.vat_rate)

    @property
    def gross_amount(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def line_amount(self) -> Decimal:
        """``quantity x price - allowances + charges``, rounded to 2 decimals."""

        amount = self.gross_amount
        for item in self.allowance_charges:
            amount += item.signed_amount
        return q2(amount)

    @property
    def line_vat_amount(self) -> Decimal:
        return q2(self.line_amount * self.vat_rate / Decimal("100"))


@dataclass
class VatBreakdown:
    """VAT breakdown bucket (BG-23), one per ``(category, rate)``."""

    vat_category: str
    vat_rate: Decimal
    taxable_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    exemption_reason: str | None = None
    exemption_reason_code: str | None = None
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        self.vat_rate = to_decimal(self.vat_rate, "VAT breakdown rate")
        self.taxable_amount = to_decimal(self.taxable_amount, "VAT breakdown taxable amount")
        self.tax_amount = to_decimal(self.tax_amount, "VAT breakdown tax amount")
        if self.vat_category not in VAT_CATEGORIES:
            raise ConstructionError(f"unknown VAT category {self.vat_category!r}")
        if self.exemption_reason_code and self.exemption_reason_code not in VAT_EXEMPTION_REASONS:
            raise ConstructionError(f"unknown exemption reason code {self.exemption_reason_code!r}")

    @property
    def key(self) -> VatKey:
        return (self.vat_category, self.vat_rate)

    @property
    def requires_exemption_reason(self) -> bool:
        return self.vat_category in EXEMPT_CATEGORIES

    @property
    def has_exemption_reason(self) -> bool:
        return bool((self.exemption_reason or "").strip() or (self.exemption_reason_code or "").strip())

    def accumulate(self, amount: Decimal) -> None:
        """Add ``amount`` to the taxable base, rounding after each addition."""

        self.taxable_amount = q2(self.taxable_amount + amount)

    def expected_tax_amount(self) -> Decimal:
        return q2(self.taxable_amount * self.vat_rate / Decimal("100"))

    def set_exemption_reason(self, reason: str | None, code: str | None = None) -> None:
        self.exemption_reason = reason
        self.exemption_reason_code = code


@dataclass
class PaymentInfo:
    """Payment instructions (BG-16)."""

    payment_means_code: str = "30"
    iban: str | None = None
    bic: str | None = None
    payment_reference: str | None = None
    payment_terms: str | None = None
    account_name: str | None = None
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if not checked:
            return
        if self.payment_means_code not in PAYMENT_MEANS_CODES:
            raise ConstructionError(f"unknown payment means code {self.payment_means_code!r}")
        if self.iban:
            self.iban = checks.normalise_iban(self.iban)
            if not checks.is_valid_iban(self.iban):
                raise ConstructionError(f"invalid IBAN {self.iban!r}")
        if self.bic:
            self.bic = self.bic.replace(" ", "").strip().upper()
            if not checks.is_valid_bic(self.bic):
                raise ConstructionError(f"invalid BIC {self.bic!r}")
        if self.payment_reference and self.payment_reference.strip().startswith("+++"):
            if not checks.is_valid_structured_reference(self.payment_reference):
                raise ConstructionError(
                    f"invalid structured payment reference {self.payment_reference!r}"
                )

    @property
    def is_structured_reference(self) -> bool:
        return bool(self.payment_reference) and checks.is_valid_structured_reference(
            self.payment_reference or ""
        )

    @property
    def formatted_reference(self) -> str | None:
        if self.is_structured_reference:
            return checks.format_structured_reference(self.payment_reference or "")
        return self.payment_reference


def guess_mime_type(filename: str) -> str | None:
    suffix = PurePath(filename).suffix.lower().lstrip(".")
    return MIME_TYPES_BY_EXTENSION.get(suffix)


@dataclass
class AttachedDocument:
    """Supporting document embedded in the invoice (BG-24)."""

    filename: str
    content: bytes
    mime_type: str | None = None
    description: str | None = None
    document_type_code: str | None = None
    checked: InitVar[bool] = True

    def __post_init__(self, checked: bool) -> None:
        if self.mime_type is None:
            self.mime_type = guess_mime_type(self.filename or "")
        if not checked:
            return
        _require(self.filename, "attachment filename")
        if self.mime_type not in SUPPORTED_MIME_TYPES:
            raise ConstructionError(
                f"attachment {self.filename}: unsupported mime type {self.mime_type!r}"
            )
        if self.size > MAX_ATTACHMENT_SIZE:
            raise ConstructionError(
                f"attachment {self.filename}: {self.size} bytes exceeds {MAX_ATTACHMENT_SIZE}"
            )

    @classmethod
    def from_bytes(cls, filename: str, content: bytes, **kwargs) -> "AttachedDocument":
        return cls(filename, bytes(content), **kwargs)

    @classmethod
    def from_base64(cls, filename: str, payload: str | bytes, **kwargs) -> "AttachedDocument":
        if isinstance(payload, str):
            payload = "".join(payload.split())
        try:
            content = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConstructionError(f"attachment {filename}: invalid base64 content") from exc
        return cls(filename, content, **kwargs)

    @property
    def size(self) -> int:
        return len(self.content)

    def to_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


__all__ = [
    "Address",
    "AllowanceCharge",
    "AttachedDocument",
    "ElectronicAddress",
    "InvoiceLine",
    "Party",
    "PaymentInfo",
    "VatBreakdown",
    "VatKey",
    "guess_mime_type",
]

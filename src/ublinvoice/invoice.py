"""The invoice aggregate.

An :class:`Invoice` is built incrementally through ``add_*``/``set_*`` calls.
Totals and VAT buckets are only refreshed by :meth:`Invoice.calculate_totals`;
they describe the state at the last call, so code that edits lines,
allowances or exemption reasons must recalculate before validating or
exporting.
"""

from __future__ import annotations

import base64
import dataclasses
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from .constants import (
    CURRENCY_CODES,
    EXEMPT_CATEGORIES,
    INVOICE_TYPE_CODES,
    PROFILE_EN16931,
    PROFILE_IDENTIFIERS,
    VAT_EXEMPTION_REASONS,
)
from .exceptions import ConstructionError
from .models import (
    AllowanceCharge,
    AttachedDocument,
    InvoiceLine,
    Party,
    PaymentInfo,
    VatBreakdown,
    VatKey,
)
from .totals import ExemptionReason, InvoiceTotals, compute_totals
from .utils import ZERO, to_date, to_decimal

if TYPE_CHECKING:
    from .rules import LookupTables


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def _plain_factory(items: list[tuple[str, Any]]) -> dict[str, Any]:
    return {key: _plain(value) for key, value in items}


def _entity_dict(entity: Any) -> dict[str, Any] | None:
    if entity is None:
        return None
    return dataclasses.asdict(entity, dict_factory=_plain_factory)


def _date_or_raw(value: Any, field_name: str) -> Any:
    try:
        return to_date(value, field_name)
    except ConstructionError:
        return value


class Invoice:
    """EN16931 invoice document (BT-1 ... BG-25)."""

    def __init__(
        self,
        invoice_number: str,
        issue_date: date | str,
        *,
        invoice_type_code: str = "380",
        currency_code: str = "EUR",
        due_date: date | str | None = None,
        profile: str = PROFILE_EN16931,
        checked: bool = True,
    ) -> None:
        if checked and not (invoice_number or "").strip():
            raise ConstructionError("invoice number is required")
        if profile not in PROFILE_IDENTIFIERS:
            raise ConstructionError(f"unknown profile {profile!r}")
        self.invoice_number = invoice_number
        self.profile = profile
        if checked:
            self.issue_date = issue_date  # type: ignore[assignment]
            self.invoice_type_code = invoice_type_code
            self.currency_code = currency_code
            self.due_date = due_date  # type: ignore[assignment]
        else:
            self._issue_date = _date_or_raw(issue_date, "issue date")
            self._invoice_type_code = invoice_type_code
            self._currency_code = currency_code
            self._due_date = _date_or_raw(due_date, "due date") if due_date else None

        self.seller: Party | None = None
        self.buyer: Party | None = None
        self.lines: list[InvoiceLine] = []
        self.allowance_charges: list[AllowanceCharge] = []
        self.vat_breakdowns: list[VatBreakdown] = []
        self.payment_info: PaymentInfo | None = None
        self.payment_terms: str | None = None
        self.attachments: list[AttachedDocument] = []

        self.buyer_reference: str | None = None
        self.purchase_order_reference: str | None = None
        self.sales_order_reference: str | None = None
        self.contract_reference: str | None = None
        self.project_reference: str | None = None
        self.despatch_reference: str | None = None
        self.receipt_reference: str | None = None
        self.accounting_cost: str | None = None
        self.invoice_note: str | None = None
        self.preceding_invoice_number: str | None = None
        self.preceding_invoice_date: date | None = None
        self.invoice_period_start: date | None = None
        self.invoice_period_end: date | None = None
        self.delivery_date: date | None = None

        self.vat_exemption_reason: str | None = None
        self.vat_exemption_reason_code: str | None = None
        self._exemption_reasons: dict[VatKey, ExemptionReason] = {}

        self._prepaid_amount = ZERO
        self.totals: InvoiceTotals | None = None

    def __repr__(self) -> str:
        return f"Invoice({self.invoice_number!r}, profile={self.profile!r}, lines={len(self.lines)})"

    # -- validated header fields ---------------------------------------------

    @property
    def issue_date(self) -> date:
        return self._issue_date

    @issue_date.setter
    def issue_date(self, value: date | str) -> None:
        self._issue_date = to_date(value, "issue date")

    @property
    def due_date(self) -> date | None:
        return self._due_date

    @due_date.setter
    def due_date(self, value: date | str | None) -> None:
        if value is None or value == "":
            self._due_date = None
            return
        due = to_date(value, "due date")
        if isinstance(self._issue_date, date) and due < self._issue_date:
            raise ConstructionError(f"due date {due} precedes issue date {self._issue_date}")
        self._due_date = due

    @property
    def invoice_type_code(self) -> str:
        return self._invoice_type_code

    @invoice_type_code.setter
    def invoice_type_code(self, value: str) -> None:
        if value not in INVOICE_TYPE_CODES:
            raise ConstructionError(f"unknown invoice type code {value!r}")
        self._invoice_type_code = value

    @property
    def currency_code(self) -> str:
        return self._currency_code

    @currency_code.setter
    def currency_code(self, value: str) -> None:
        code = (value or "").strip().upper()
        if code not in CURRENCY_CODES:
            raise ConstructionError(f"unknown currency code {value!r}")
        self._currency_code = code

    @property
    def prepaid_amount(self) -> Decimal:
        return self._prepaid_amount

    # -- parties and content -------------------------------------------------

    def set_seller(self, party: Party) -> "Invoice":
        self.seller = party
        return self

    def set_buyer(self, party: Party) -> "Invoice":
        self.buyer = party
        return self

    def add_line(self, line: InvoiceLine) -> "Invoice":
        self.lines.append(line)
        return self

    def add_allowance_charge(self, allowance_charge: AllowanceCharge) -> "Invoice":
        self.allowance_charges.append(allowance_charge)
        return self

    def add_allowance(self, amount: object, vat_category: str = "S", vat_rate: object = Decimal("21"), **kwargs) -> "Invoice":
        return self.add_allowance_charge(AllowanceCharge.allowance(amount, vat_category, vat_rate, **kwargs))

    def add_charge(self, amount: object, vat_category: str = "S", vat_rate: object = Decimal("21"), **kwargs) -> "Invoice":
        return self.add_allowance_charge(AllowanceCharge.charge(amount, vat_category, vat_rate, **kwargs))

    def set_payment_info(self, payment_info: PaymentInfo) -> "Invoice":
        self.payment_info = payment_info
        if payment_info.payment_terms and not self.payment_terms:
            self.payment_terms = payment_info.payment_terms
        return self

    def set_payment_terms(self, terms: str | None) -> "Invoice":
        self.payment_terms = terms
        if self.payment_info is not None:
            self.payment_info.payment_terms = terms
        return self

    def attach_document(self, document: AttachedDocument) -> "Invoice":
        self.attachments.append(document)
        return self

    def set_prepaid_amount(self, amount: object) -> "Invoice":
        value = to_decimal(amount, "prepaid amount")
        if value < 0:
            raise ConstructionError("prepaid amount must not be negative")
        self._prepaid_amount = value
        return self

    def set_invoice_period(self, start: date | str | None, end: date | str | None) -> "Invoice":
        start_date = to_date(start, "invoice period start") if start else None
        end_date = to_date(end, "invoice period end") if end else None
        if start_date and end_date and end_date < start_date:
            raise ConstructionError("invoice period end precedes its start")
        self.invoice_period_start = start_date
        self.invoice_period_end = end_date
        return self

    def set_delivery_date(self, value: date | str | None) -> "Invoice":
        self.delivery_date = to_date(value, "delivery date") if value else None
        return self

    def set_preceding_invoice_reference(self, number: str, issue_date: date | str | None = None) -> "Invoice":
        if not (number or "").strip():
            raise ConstructionError("preceding invoice number is required")
        self.preceding_invoice_number = number
        self.preceding_invoice_date = (
            to_date(issue_date, "preceding invoice date") if issue_date else None
        )
        return self

    # -- VAT exemption ---------------------------------------------------------

    def _exempt_keys_in_use(self) -> list[VatKey]:
        keys: list[VatKey] = []
        for item in [*self.lines, *self.allowance_charges]:
            if item.vat_category in EXEMPT_CATEGORIES and item.vat_key not in keys:
                keys.append(item.vat_key)
        for bucket in self.vat_breakdowns:
            if bucket.requires_exemption_reason and bucket.key not in keys:
                keys.append(bucket.key)
        return keys

    def set_vat_exemption_reason(self, reason: str, code: str | None = None) -> "Invoice":
        """Record the exemption reason and push it to the exempt VAT keys in use now.

        A registered ``VATEX-*`` code may be passed as ``reason``; its text is
        then looked up. Only keys that exist on lines, allowances or buckets
        at call time receive the reason: lines added later need another call.

        UBL only carries exemption reasons inside the VAT breakdown, so the
        invoice-level ``vat_exemption_reason``/``vat_exemption_reason_code``
        are exported through the exempt buckets. Set while no exempt bucket
        exists, they are not written and an import of the export leaves them
        ``None``.
        """

        if reason in VAT_EXEMPTION_REASONS and code is None:
            code, reason = reason, VAT_EXEMPTION_REASONS[reason]
        if code is not None and code not in VAT_EXEMPTION_REASONS:
            raise ConstructionError(f"unknown exemption reason code {code!r}")
        if not (reason or "").strip():
            raise ConstructionError("exemption reason is required")

        self.vat_exemption_reason = reason
        self.vat_exemption_reason_code = code
        for key in self._exempt_keys_in_use():
            self._exemption_reasons[key] = (reason, code)
        for bucket in self.vat_breakdowns:
            if bucket.requires_exemption_reason:
                bucket.set_exemption_reason(reason, code)
        return self

    def set_bucket_exemption_reason(
        self,
        vat_category: str,
        vat_rate: object,
        reason: str | None,
        code: str | None = None,
        *,
        checked: bool = True,
    ) -> "Invoice":
        """Attach an exemption reason to a single ``(category, rate)`` bucket."""

        if checked and code is not None and code not in VAT_EXEMPTION_REASONS:
            raise ConstructionError(f"unknown exemption reason code {code!r}")
        key = (vat_category, to_decimal(vat_rate, "VAT rate"))

        self._exemption_reasons[key] = (reason, code)
        for bucket in self.vat_breakdowns:
            if bucket.key == key:
                bucket.set_exemption_reason(reason, code)
        return self

    # -- totals ----------------------------------------------------------------

    def calculate_totals(self) -> "Invoice":
        """Rebuild the VAT buckets and every document total."""

        reasons = dict(self._exemption_reasons)
        for bucket in self.vat_breakdowns:
            if bucket.has_exemption_reason:
                reasons[bucket.key] = (bucket.exemption_reason, bucket.exemption_reason_code)

        self.totals, self.vat_breakdowns = compute_totals(
            self.lines,
            self.allowance_charges,
            prepaid_amount=self._prepaid_amount,
            exemption_reasons=reasons,
        )
        return self

    @property
    def totals_calculated(self) -> bool:
        return self.totals is not None

    def _total(self, name: str) -> Decimal:
        if self.totals is None:
            return ZERO
        return getattr(self.totals, name)

    @property
    def line_extension_amount(self) -> Decimal:
        return self._total("line_extension_amount")

    @property
    def tax_exclusive_amount(self) -> Decimal:
        return self._total("tax_exclusive_amount")

    @property
    def total_vat_amount(self) -> Decimal:
        return self._total("total_vat_amount")

    @property
    def tax_inclusive_amount(self) -> Decimal:
        return self._total("tax_inclusive_amount")

    @property
    def payable_amount(self) -> Decimal:
        return self._total("payable_amount")

    # -- customization ---------------------------------------------------------

    @property
    def customization_id(self) -> str:
        return PROFILE_IDENTIFIERS[self.profile][0]

    @property
    def profile_id(self) -> str | None:
        return PROFILE_IDENTIFIERS[self.profile][1]

    def validate(self, tables: LookupTables | None = None) -> list[str]:
        """Run the rule layers of :attr:`profile` and return the findings.

        Never raises: a rules index that cannot be read is reported as an
        ``INTERNAL`` finding.
        """

        from .rules import validate_invoice

        return validate_invoice(self, tables=tables)

    def to_dict(self) -> dict[str, Any]:
        """Plain nested structure mirroring the aggregate."""

        return {
            "invoice_number": self.invoice_number,
            "issue_date": _plain(self.issue_date),
            "due_date": _plain(self.due_date),
            "invoice_type_code": self.invoice_type_code,
            "currency_code": self.currency_code,
            "profile": self.profile,
            "customization_id": self.customization_id,
            "profile_id": self.profile_id,
            "seller": _entity_dict(self.seller),
            "buyer": _entity_dict(self.buyer),
            "lines": [_entity_dict(line) for line in self.lines],
            "allowance_charges": [_entity_dict(item) for item in self.allowance_charges],
            "vat_breakdowns": [_entity_dict(bucket) for bucket in self.vat_breakdowns],
            "payment_info": _entity_dict(self.payment_info),
            "payment_terms": self.payment_terms,
            "attachments": [_entity_dict(doc) for doc in self.attachments],
            "references": {
                "buyer_reference": self.buyer_reference,
                "purchase_order": self.purchase_order_reference,
                "sales_order": self.sales_order_reference,
                "contract": self.contract_reference,
                "project": self.project_reference,
                "despatch": self.despatch_reference,
                "receipt": self.receipt_reference,
                "preceding_invoice_number": self.preceding_invoice_number,
                "preceding_invoice_date": _plain(self.preceding_invoice_date),
            },
            "accounting_cost": self.accounting_cost,
            "invoice_note": self.invoice_note,
            "invoice_period": {
                "start": _plain(self.invoice_period_start),
                "end": _plain(self.invoice_period_end),
            },
            "delivery_date": _plain(self.delivery_date),
            "vat_exemption_reason": self.vat_exemption_reason,
            "vat_exemption_reason_code": self.vat_exemption_reason_code,
            "prepaid_amount": _plain(self.prepaid_amount),
            "totals": _entity_dict(self.totals),
        }


__all__ = ["Invoice"]

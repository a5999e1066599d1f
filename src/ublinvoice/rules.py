"""Layered business-rule validation.

A profile is an ordered tuple of :class:`RuleLayer` objects. The base
EN16931 layer always runs first; regional layers only append findings.
Rules read the invoice and never change it. Their parameters come from an
immutable :class:`LookupTables` built once per :class:`Validator`, from the
static code lists merged with the constraints found in the rules index.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Sequence

from . import checks
from .constants import (
    AMOUNT_TOLERANCE,
    BE_VAT_RATES,
    CURRENCY_CODES,
    ELECTRONIC_ADDRESS_SCHEMES,
    EXEMPT_CATEGORIES,
    INVOICE_TYPE_CODES,
    MAX_ATTACHMENT_SIZE,
    PAYMENT_MEANS_CODES,
    PROFILE_EN16931,
    PROFILE_NAME_PEPPOL,
    PROFILE_UBL_BE,
    SUPPORTED_MIME_TYPES,
    TRANSFER_PAYMENT_MEANS,
    UNIT_CODES,
    VAT_CATEGORIES,
    VAT_EXEMPTION_REASONS,
    ZERO_RATE_CATEGORIES,
)
from .exceptions import RulesLoaderError, UnknownProfileError
from .models import AllowanceCharge, Party
from .rules_loader import RulesIndexNotFound, iter_rules
from .utils import ZERO, fmt2, fmt_quantity, q2

if TYPE_CHECKING:
    from .invoice import Invoice

LOGGER = logging.getLogger("ublinvoice.rules")

_EXEMPTION_RULES = MappingProxyType(
    {"E": "BR-E-10", "AE": "BR-AE-10", "K": "BR-IC-10", "G": "BR-G-10", "O": "BR-O-10"}
)


class ValidationIssue:
    """Representation of a business-rule gap detected on an invoice."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, str] | None = None,
    ) -> None:
        self.message = message
        self.code = code or "GENERIC"
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return f"ValidationIssue({self.message!r}, code={self.code!r})"

    def as_cells(self) -> list[str]:
        """Serialise the issue for tabular export."""

        return [self.code, self.message]


@dataclass(frozen=True)
class LookupTables:
    """Immutable code lists and thresholds used by the rule layers."""

    currency_codes: frozenset[str] = frozenset(CURRENCY_CODES)
    invoice_type_codes: frozenset[str] = frozenset(INVOICE_TYPE_CODES)
    vat_categories: frozenset[str] = frozenset(VAT_CATEGORIES)
    unit_codes: frozenset[str] = frozenset(UNIT_CODES)
    payment_means_codes: frozenset[str] = frozenset(PAYMENT_MEANS_CODES)
    electronic_address_schemes: frozenset[str] = frozenset(ELECTRONIC_ADDRESS_SCHEMES)
    exemption_codes: frozenset[str] = frozenset(VAT_EXEMPTION_REASONS)
    domestic_vat_rates: frozenset[Decimal] = BE_VAT_RATES
    supported_mime_types: frozenset[str] = frozenset(SUPPORTED_MIME_TYPES)
    tolerance: Decimal = AMOUNT_TOLERANCE
    min_attachments: int = 2
    max_attachment_size: int = MAX_ATTACHMENT_SIZE

    def with_overrides(self, **changes: object) -> "LookupTables":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_rules_index(cls, scopes: Iterable[str], *, on: date | None = None) -> "LookupTables":
        """Defaults overlaid with the constraints of the active rules in ``scopes``.

        A missing index leaves the defaults untouched; a corrupt one raises
        :class:`~ublinvoice.exceptions.RulesLoaderError`.
        """

        tables = cls()
        for scope in scopes:
            try:
                rules = list(iter_rules(scope))
            except RulesIndexNotFound as exc:
                LOGGER.warning("%s; using built-in rule parameters", exc)
                return tables
            for rule in rules:
                if not rule.is_active(on):
                    continue
                tables = tables.with_overrides(**_constraint_overrides(rule.rule_id, rule.constraints))
        return tables


def _constraint_overrides(rule_id: str, constraints: Mapping[str, object]) -> dict[str, object]:
    overrides: dict[str, object] = {}
    try:
        if "tolerance" in constraints:
            overrides["tolerance"] = Decimal(str(constraints["tolerance"]))
        if "min_attachments" in constraints:
            overrides["min_attachments"] = int(constraints["min_attachments"])  # type: ignore[call-overload]
        if "allowed_rates" in constraints:
            overrides["domestic_vat_rates"] = frozenset(
                Decimal(str(rate)) for rate in constraints["allowed_rates"]  # type: ignore[attr-defined]
            )
        for key in ("electronic_address_schemes", "exemption_codes", "payment_means_codes"):
            if key in constraints:
                overrides[key] = frozenset(str(code) for code in constraints[key])  # type: ignore[attr-defined]
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise RulesLoaderError(f"Rule {rule_id} has invalid constraints: {exc}") from exc
    return overrides


Check = Callable[["Invoice", LookupTables], list[ValidationIssue]]


@dataclass(frozen=True)
class RuleLayer:
    """Named, ordered group of checks applied on top of the layers below it."""

    name: str
    checks: tuple[Check, ...] = field(default_factory=tuple)

    def check(self, invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for rule in self.checks:
            try:
                issues.extend(rule(invoice, tables))
            except Exception:
                LOGGER.exception("Rule %s of layer %s failed", rule.__name__, self.name)
                issues.append(
                    ValidationIssue(
                        f"rule {rule.__name__} could not be evaluated",
                        code="INTERNAL",
                        details={"layer": self.name},
                    )
                )
        return issues


def _pct(rate: Decimal) -> str:
    return f"{fmt_quantity(rate)}%"


def _bucket_label(category: str, rate: Decimal) -> str:
    return f"VAT breakdown {category} {_pct(rate)}"


# -- EN16931 base layer --------------------------------------------------------


def _check_header(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not (invoice.invoice_number or "").strip():
        issues.append(ValidationIssue("invoice number (BT-1) is required", code="BR-01"))
    if not isinstance(invoice.issue_date, date):
        issues.append(
            ValidationIssue(f"invalid issue date (BT-2) {invoice.issue_date!r}", code="BR-02")
        )
    if invoice.invoice_type_code not in tables.invoice_type_codes:
        issues.append(
            ValidationIssue(
                f"invoice type code (BT-3) {invoice.invoice_type_code!r} is not registered",
                code="BR-03",
            )
        )
    if invoice.currency_code not in tables.currency_codes:
        issues.append(
            ValidationIssue(
                f"currency code (BT-5) {invoice.currency_code!r} is not registered",
                code="BR-04",
            )
        )
    due = invoice.due_date
    if isinstance(due, date) and isinstance(invoice.issue_date, date) and due < invoice.issue_date:
        issues.append(ValidationIssue("due date (BT-9) precedes the issue date", code="BT-9"))
    if invoice.preceding_invoice_date and not invoice.preceding_invoice_number:
        issues.append(
            ValidationIssue("preceding invoice date given without its number", code="BG-3")
        )
    return issues


def _party_issues(party: Party, label: str, tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not (party.name or "").strip():
        issues.append(ValidationIssue(f"{label}: name is required", code="BR-PARTY"))
    address = party.address
    if address is None:
        issues.append(ValidationIssue(f"{label}: postal address is required", code="BR-PARTY"))
    else:
        for attr, title in (("street", "street"), ("city", "city"), ("postal_code", "postal code")):
            if not (getattr(address, attr) or "").strip():
                issues.append(ValidationIssue(f"{label}: {title} is required", code="BR-PARTY"))
        if not checks.is_valid_country_code(address.country_code or ""):
            issues.append(
                ValidationIssue(
                    f"{label}: invalid country code {address.country_code!r}", code="BR-PARTY"
                )
            )
    if party.vat_id and not checks.is_valid_vat_id(party.vat_id):
        issues.append(
            ValidationIssue(f"{label}: invalid VAT identifier {party.vat_id!r}", code="BR-CO-09")
        )
    if party.email and not checks.is_valid_email(party.email):
        issues.append(ValidationIssue(f"{label}: invalid email {party.email!r}", code="BR-PARTY"))
    endpoint = party.electronic_address
    if endpoint is not None and endpoint.scheme_id not in tables.electronic_address_schemes:
        issues.append(
            ValidationIssue(
                f"{label}: electronic address scheme {endpoint.scheme_id!r} is not registered",
                code="BR-CL-25",
            )
        )
    return issues


def _check_parties(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if invoice.seller is None:
        issues.append(ValidationIssue("seller (BG-4) is required", code="BR-06"))
    else:
        issues.extend(_party_issues(invoice.seller, "Seller", tables))
    if invoice.buyer is None:
        issues.append(ValidationIssue("buyer (BG-7) is required", code="BR-08"))
    else:
        issues.extend(_party_issues(invoice.buyer, "Buyer", tables))
    return issues


def _check_lines(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    if not invoice.lines:
        return [ValidationIssue("at least one invoice line (BG-25) is required", code="BR-16")]

    issues: list[ValidationIssue] = []
    seen_ids: set[str] = set()
    for position, line in enumerate(invoice.lines, start=1):
        label = f"Line {position}"
        if line.line_id in seen_ids:
            issues.append(ValidationIssue(f"{label}: duplicate line id {line.line_id!r}", code="BR-21"))
        seen_ids.add(line.line_id)
        if not (line.name or "").strip():
            issues.append(ValidationIssue(f"{label}: item name (BT-153) is required", code="BR-25"))
        if line.quantity <= 0:
            issues.append(ValidationIssue(f"{label}: quantity must be greater than 0", code="BR-22"))
        if line.unit_code not in tables.unit_codes:
            issues.append(
                ValidationIssue(f"{label}: unit code {line.unit_code!r} is not registered", code="BR-23")
            )
        if line.unit_price < 0:
            issues.append(ValidationIssue(f"{label}: unit price must not be negative", code="BR-27"))
        if line.vat_category not in tables.vat_categories:
            issues.append(
                ValidationIssue(
                    f"{label}: VAT category {line.vat_category!r} is not registered", code="BR-CO-04"
                )
            )
        elif line.vat_category == "S" and line.vat_rate <= 0:
            issues.append(
                ValidationIssue(f"{label}: standard rate lines need a rate above 0", code="BR-S-05")
            )
        elif line.vat_category in ZERO_RATE_CATEGORIES and line.vat_rate != 0:
            issues.append(
                ValidationIssue(
                    f"{label}: category {line.vat_category} requires a 0% rate",
                    code=f"BR-{line.vat_category}-05",
                )
            )
        for item in line.allowance_charges:
            issues.extend(_allowance_charge_issues(item, f"{label} allowance/charge"))
    return issues


def _allowance_charge_issues(item: AllowanceCharge, label: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    code = "BR-38" if item.charge_indicator else "BR-33"
    if not (item.reason or "").strip() and not (item.reason_code or "").strip():
        issues.append(ValidationIssue(f"{label}: reason or reason code is required", code=code))
    if item.percentage is not None and item.base_amount is None:
        issues.append(ValidationIssue(f"{label}: a percentage requires a base amount", code="BR-AC"))
    if item.percentage is not None and item.base_amount is not None:
        expected = q2(item.base_amount * item.percentage / Decimal("100"))
        if abs(expected - item.amount) > Decimal("0.01"):
            issues.append(
                ValidationIssue(
                    f"{label}: amount {fmt2(item.amount)} does not match "
                    f"{fmt2(item.base_amount)} x {_pct(item.percentage)} = {fmt2(expected)}",
                    code="BR-AC",
                )
            )
    return issues


def _check_allowance_charges(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for position, item in enumerate(invoice.allowance_charges, start=1):
        kind = "Charge" if item.charge_indicator else "Allowance"
        issues.extend(_allowance_charge_issues(item, f"{kind} {position}"))
        if item.vat_category not in tables.vat_categories:
            issues.append(
                ValidationIssue(
                    f"{kind} {position}: VAT category {item.vat_category!r} is not registered",
                    code="BR-CO-04",
                )
            )
    return issues


def _check_totals(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    totals = invoice.totals
    if totals is None:
        return [ValidationIssue("invoice totals have not been calculated", code="BR-CO-13")]

    issues: list[ValidationIssue] = []
    expected_exclusive = q2(totals.line_extension_amount - totals.allowance_total + totals.charge_total)
    if abs(expected_exclusive - totals.tax_exclusive_amount) > tables.tolerance:
        issues.append(
            ValidationIssue(
                f"tax exclusive amount {fmt2(totals.tax_exclusive_amount)} differs from "
                f"{fmt2(expected_exclusive)}",
                code="BR-CO-13",
            )
        )
    expected_inclusive = q2(totals.tax_exclusive_amount + totals.total_vat_amount)
    if abs(expected_inclusive - totals.tax_inclusive_amount) > tables.tolerance:
        issues.append(
            ValidationIssue(
                f"tax inclusive amount {fmt2(totals.tax_inclusive_amount)} differs from "
                f"{fmt2(expected_inclusive)}",
                code="BR-CO-15",
            )
        )
    expected_payable = q2(totals.tax_inclusive_amount - totals.prepaid_amount)
    if abs(expected_payable - totals.payable_amount) > tables.tolerance:
        issues.append(
            ValidationIssue(
                f"payable amount {fmt2(totals.payable_amount)} differs from {fmt2(expected_payable)}",
                code="BR-CO-16",
            )
        )
    bucket_vat = q2(sum((bucket.tax_amount for bucket in invoice.vat_breakdowns), ZERO))
    if abs(bucket_vat - totals.total_vat_amount) > tables.tolerance:
        issues.append(
            ValidationIssue(
                f"total VAT {fmt2(totals.total_vat_amount)} differs from the breakdown sum "
                f"{fmt2(bucket_vat)}",
                code="BR-CO-14",
            )
        )
    return issues


def _check_vat_breakdown(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if invoice.lines and invoice.totals is not None and not invoice.vat_breakdowns:
        issues.append(ValidationIssue("at least one VAT breakdown (BG-23) is required", code="BR-CO-18"))

    for bucket in invoice.vat_breakdowns:
        label = _bucket_label(bucket.vat_category, bucket.vat_rate)
        expected = bucket.expected_tax_amount()
        if abs(bucket.tax_amount - expected) > tables.tolerance:
            issues.append(
                ValidationIssue(
                    f"{label}: tax amount {fmt2(bucket.tax_amount)} differs from {fmt2(expected)} "
                    f"({fmt2(bucket.taxable_amount)} x {_pct(bucket.vat_rate)})",
                    code="BR-CO-17",
                    details={"diff": fmt2(abs(bucket.tax_amount - expected))},
                )
            )
        if bucket.vat_category in EXEMPT_CATEGORIES and not bucket.has_exemption_reason:
            issues.append(
                ValidationIssue(
                    f"{label}: missing exemption reason for category {bucket.vat_category}",
                    code=_EXEMPTION_RULES[bucket.vat_category],
                )
            )
        if bucket.exemption_reason_code and bucket.exemption_reason_code not in tables.exemption_codes:
            issues.append(
                ValidationIssue(
                    f"{label}: exemption reason code {bucket.exemption_reason_code!r} is not registered",
                    code="BR-CL-22",
                )
            )
    return issues


def _check_payment(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    payment = invoice.payment_info
    if payment is None:
        return []

    issues: list[ValidationIssue] = []
    if payment.payment_means_code not in tables.payment_means_codes:
        issues.append(
            ValidationIssue(
                f"Payment: means code {payment.payment_means_code!r} is not registered",
                code="BR-49",
            )
        )
    if payment.payment_means_code in TRANSFER_PAYMENT_MEANS and not payment.iban:
        issues.append(
            ValidationIssue("Payment: credit transfers need a payee account (BT-84)", code="BR-61")
        )
    if payment.iban and not checks.is_valid_iban(payment.iban):
        issues.append(ValidationIssue(f"Payment: invalid IBAN {payment.iban!r}", code="BR-PAY"))
    if payment.bic and not checks.is_valid_bic(payment.bic):
        issues.append(ValidationIssue(f"Payment: invalid BIC {payment.bic!r}", code="BR-PAY"))
    reference = payment.payment_reference or ""
    if reference.strip().startswith("+++") and not checks.is_valid_structured_reference(reference):
        issues.append(
            ValidationIssue(f"Payment: invalid structured reference {reference!r}", code="BR-PAY")
        )
    return issues


def _check_attachments(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for position, document in enumerate(invoice.attachments, start=1):
        label = f"Attachment {position}"
        if not (document.filename or "").strip():
            issues.append(ValidationIssue(f"{label}: filename is required", code="BR-ATT"))
        if document.mime_type not in tables.supported_mime_types:
            issues.append(
                ValidationIssue(
                    f"{label}: mime type {document.mime_type!r} is not supported", code="BR-CL-24"
                )
            )
        if document.size > tables.max_attachment_size:
            issues.append(
                ValidationIssue(
                    f"{label}: {document.size} bytes exceeds {tables.max_attachment_size}", code="BR-ATT"
                )
            )
    return issues


# -- Peppol BIS layer ----------------------------------------------------------


def _check_peppol_references(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    if invoice.buyer_reference or invoice.purchase_order_reference:
        return []
    return [
        ValidationIssue(
            "a buyer reference (BT-10) or purchase order reference (BT-13) must be provided",
            code="PEPPOL-EN16931-R003",
        )
    ]


def _check_peppol_endpoints(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if invoice.buyer is not None and invoice.buyer.electronic_address is None:
        issues.append(
            ValidationIssue("Buyer: electronic address (BT-49) is required", code="PEPPOL-EN16931-R010")
        )
    if invoice.seller is not None and invoice.seller.electronic_address is None:
        issues.append(
            ValidationIssue("Seller: electronic address (BT-34) is required", code="PEPPOL-EN16931-R020")
        )
    return issues


# -- UBL.BE layer --------------------------------------------------------------


def _check_ublbe_payment_due(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    if invoice.payable_amount > 0 and not invoice.due_date and not invoice.payment_terms:
        return [
            ValidationIssue(
                "a due date (BT-9) or payment terms (BT-20) are required when the amount due is positive",
                code="BR-CO-25",
            )
        ]
    return []


def _check_ublbe_references(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    if invoice.buyer_reference or invoice.purchase_order_reference:
        return []
    return [
        ValidationIssue(
            "buyer reference (BT-10) or purchase order reference (BT-13) is required",
            code="UBL-BE",
        )
    ]


def _check_ublbe_endpoints(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if invoice.seller is not None and invoice.seller.electronic_address is None:
        issues.append(ValidationIssue("Seller: electronic address (BT-34) is required", code="UBL-BE"))
    if invoice.buyer is not None and invoice.buyer.electronic_address is None:
        issues.append(ValidationIssue("Buyer: electronic address (BT-49) is required", code="UBL-BE"))
    return issues


def _check_ublbe_attachments(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    if len(invoice.attachments) >= tables.min_attachments:
        return []
    return [
        ValidationIssue(
            f"at least {tables.min_attachments} attached documents are required, "
            f"found {len(invoice.attachments)}",
            code="UBL-BE-01",
        )
    ]


def _check_ublbe_rates(invoice: "Invoice", tables: LookupTables) -> list[ValidationIssue]:
    seller = invoice.seller
    if seller is None or seller.address is None or seller.address.country_code != "BE":
        return []
    allowed = ", ".join(_pct(rate) for rate in sorted(tables.domestic_vat_rates, reverse=True))
    issues: list[ValidationIssue] = []
    for position, line in enumerate(invoice.lines, start=1):
        if line.vat_category == "S" and line.vat_rate not in tables.domestic_vat_rates:
            issues.append(
                ValidationIssue(
                    f"Line {position}: Belgian VAT rate {_pct(line.vat_rate)} is not allowed ({allowed})",
                    code="UBL-BE",
                )
            )
    return issues


BASE_LAYER = RuleLayer(
    PROFILE_EN16931,
    (
        _check_header,
        _check_parties,
        _check_lines,
        _check_allowance_charges,
        _check_totals,
        _check_vat_breakdown,
        _check_payment,
        _check_attachments,
    ),
)

PEPPOL_LAYER = RuleLayer(PROFILE_NAME_PEPPOL, (_check_peppol_references, _check_peppol_endpoints))

UBL_BE_LAYER = RuleLayer(
    PROFILE_UBL_BE,
    (
        _check_ublbe_payment_due,
        _check_ublbe_references,
        _check_ublbe_endpoints,
        _check_ublbe_attachments,
        _check_ublbe_rates,
    ),
)

PROFILES: Mapping[str, tuple[RuleLayer, ...]] = MappingProxyType(
    {
        PROFILE_EN16931: (BASE_LAYER,),
        PROFILE_NAME_PEPPOL: (BASE_LAYER, PEPPOL_LAYER),
        PROFILE_UBL_BE: (BASE_LAYER, UBL_BE_LAYER),
    }
)


def layers_for(profile: str) -> tuple[RuleLayer, ...]:
    try:
        return PROFILES[profile]
    except KeyError:
        raise UnknownProfileError(f"unknown validation profile {profile!r}") from None


class Validator:
    """Runs the rule layers of one profile against invoices.

    ``tables`` defaults to the built-in code lists merged with the rules
    index for the profile's layers. ``layers`` replaces the registered stack,
    which lets callers compose their own profile.
    """

    def __init__(
        self,
        profile: str = PROFILE_EN16931,
        *,
        tables: LookupTables | None = None,
        layers: Sequence[RuleLayer] | None = None,
    ) -> None:
        self.profile = profile
        self.layers = tuple(layers) if layers is not None else layers_for(profile)
        if tables is None:
            tables = LookupTables.from_rules_index(layer.name for layer in self.layers)
        self.tables = tables

    def issues(self, invoice: "Invoice") -> list[ValidationIssue]:
        found: list[ValidationIssue] = []
        for layer in self.layers:
            found.extend(layer.check(invoice, self.tables))
        LOGGER.debug(
            "Validated %s with profile %s: %d finding(s)",
            invoice.invoice_number,
            self.profile,
            len(found),
        )
        return found

    def validate(self, invoice: "Invoice") -> list[str]:
        """Return the findings as strings; an empty list means valid."""

        return [str(issue) for issue in self.issues(invoice)]


def validate_invoice(
    invoice: "Invoice",
    profile: str | None = None,
    *,
    tables: LookupTables | None = None,
) -> list[str]:
    """Findings for ``invoice``; an unreadable rules index becomes a finding."""

    try:
        validator = Validator(profile or invoice.profile, tables=tables)
    except RulesLoaderError as exc:
        LOGGER.exception("Rules index could not be loaded for %s", invoice.invoice_number)
        return [str(ValidationIssue(f"rules index could not be loaded: {exc}", code="INTERNAL"))]
    return validator.validate(invoice)


__all__ = [
    "BASE_LAYER",
    "Check",
    "LookupTables",
    "PEPPOL_LAYER",
    "PROFILES",
    "RuleLayer",
    "UBL_BE_LAYER",
    "ValidationIssue",
    "Validator",
    "layers_for",
    "validate_invoice",
]

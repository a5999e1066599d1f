"""Read UBL 2.1 invoices back into :class:`~ublinvoice.invoice.Invoice` objects.

Strict imports abort on the first malformed or missing mandatory value and
on declared totals that disagree with the recomputed ones. Lenient imports
keep malformed values as read, note each one as an anomaly and report the
totals that disagree; the invoice they return is always usable.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

from lxml import etree

from ..constants import (
    AMOUNT_TOLERANCE,
    NS_CAC,
    NS_CBC,
    NS_INVOICE,
    PROFILE_EN16931,
    PROFILE_NAME_PEPPOL,
    PROFILE_UBL_BE,
)
from ..exceptions import ConstructionError, ImportStructuralError
from ..invoice import Invoice
from ..models import (
    Address,
    AllowanceCharge,
    AttachedDocument,
    ElectronicAddress,
    InvoiceLine,
    Party,
    PaymentInfo,
)
from ..utils import ZERO, detect_namespace, fmt2, to_date

LOGGER = logging.getLogger("ublinvoice.codec.importer")

NS = {"inv": NS_INVOICE, "cac": NS_CAC, "cbc": NS_CBC}

# Declared element -> total attribute compared after the recompute.
DECLARED_TOTALS: Mapping[str, str] = {
    "cac:LegalMonetaryTotal/cbc:LineExtensionAmount": "line_extension_amount",
    "cac:LegalMonetaryTotal/cbc:TaxExclusiveAmount": "tax_exclusive_amount",
    "cac:TaxTotal/cbc:TaxAmount": "total_vat_amount",
    "cac:LegalMonetaryTotal/cbc:TaxInclusiveAmount": "tax_inclusive_amount",
    "cac:LegalMonetaryTotal/cbc:PayableAmount": "payable_amount",
}

CHARGE_INDICATORS: Mapping[str, bool] = {"true": True, "false": False}


class ImportStatus(enum.Enum):
    OK = "ok"
    OK_WITH_WARNINGS = "ok_with_warnings"
    FAILED = "failed"


@dataclass(frozen=True)
class TotalMismatch:
    """A declared total that differs from its recomputed value."""

    declared: Decimal
    calculated: Decimal
    diff: Decimal

    def as_cells(self) -> list[str]:
        return [fmt2(self.declared), fmt2(self.calculated), fmt2(self.diff)]


@dataclass(frozen=True)
class ImportResult:
    """Outcome of :func:`import_invoice`.

    ``invoice`` is ``None`` only when :attr:`status` is ``FAILED``.
    """

    status: ImportStatus
    invoice: Invoice | None = None
    total_mismatches: Mapping[str, TotalMismatch] = field(default_factory=dict)
    anomalies: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ImportStatus.OK

    @property
    def usable(self) -> bool:
        return self.status is not ImportStatus.FAILED

    def raise_for_status(self) -> Invoice:
        """Return the invoice, or raise when the import failed."""

        if self.status is ImportStatus.FAILED or self.invoice is None:
            raise ImportStructuralError(self.error or "import failed", anomalies=self.anomalies)
        return self.invoice


def detect_profile(customization_id: str | None) -> str:
    """Map a ``CustomizationID`` onto a registered profile name."""

    value = (customization_id or "").lower()
    if "ubl.be" in value:
        return PROFILE_UBL_BE
    if "peppol" in value:
        return PROFILE_NAME_PEPPOL
    return PROFILE_EN16931


def _text(node: etree._Element | None, path: str) -> str | None:
    if node is None:
        return None
    found = node.find(path, namespaces=NS)
    if found is None or found.text is None:
        return None
    text = found.text.strip()
    return text or None


def _attr(node: etree._Element | None, path: str, name: str) -> str | None:
    if node is None:
        return None
    found = node.find(path, namespaces=NS)
    if found is None:
        return None
    return found.get(name)


class _InvoiceReader:
    """Walks one document, collecting anomalies in lenient mode."""

    def __init__(self, root: etree._Element, *, strict: bool) -> None:
        self.root = root
        self.strict = strict
        self.anomalies: list[str] = []

    # -- anomaly plumbing -------------------------------------------------------

    def anomaly(self, message: str) -> None:
        if self.strict:
            raise ImportStructuralError(message)
        LOGGER.warning("Import anomaly: %s", message)
        self.anomalies.append(message)

    def build(self, factory: Callable[..., Any], label: str, **kwargs: Any) -> Any:
        """Build an entity; in lenient mode keep invalid values unchecked."""

        try:
            return factory(**kwargs)
        except ConstructionError as exc:
            if self.strict:
                raise ImportStructuralError(f"{label}: {exc}") from exc
            self.anomaly(f"{label}: {exc} (kept as read)")
            return factory(**kwargs, checked=False)

    def decimal(self, node: etree._Element | None, path: str, label: str, *, default: Decimal | None = ZERO) -> Decimal | None:
        text = _text(node, path)
        if text is None:
            return default
        try:
            return Decimal(text)
        except InvalidOperation:
            self.anomaly(f"{label}: invalid number {text!r}")
            return default

    def optional_date(self, node: etree._Element | None, path: str, label: str) -> date | None:
        text = _text(node, path)
        if text is None:
            return None
        try:
            return to_date(text, label)
        except ConstructionError as exc:
            self.anomaly(f"{exc} (dropped)")
            return None

    def required(self, node: etree._Element | None, path: str, label: str) -> str | None:
        text = _text(node, path)
        if text is None:
            self.anomaly(f"missing mandatory {label}")
        return text

    # -- document ---------------------------------------------------------------

    def read(self) -> Invoice:
        root = self.root
        number = _text(root, "cbc:ID")
        issue_date = _text(root, "cbc:IssueDate")
        if not number or not issue_date:
            raise ImportStructuralError("document must contain an invoice number and an issue date")

        invoice: Invoice = self.build(
            Invoice,
            "Invoice header",
            invoice_number=number,
            issue_date=issue_date,
            invoice_type_code=_text(root, "cbc:InvoiceTypeCode") or "380",
            currency_code=_text(root, "cbc:DocumentCurrencyCode") or "EUR",
            due_date=_text(root, "cbc:DueDate"),
            profile=detect_profile(_text(root, "cbc:CustomizationID")),
        )

        self.read_references(invoice)
        self.read_attachments(invoice)

        seller = self.read_party("cac:AccountingSupplierParty/cac:Party", "Seller")
        if seller is not None:
            invoice.set_seller(seller)
        buyer = self.read_party("cac:AccountingCustomerParty/cac:Party", "Buyer")
        if buyer is not None:
            invoice.set_buyer(buyer)

        invoice.set_delivery_date(self.optional_date(root, "cac:Delivery/cbc:ActualDeliveryDate", "delivery date"))
        self.read_payment(invoice)

        for node in root.findall("cac:AllowanceCharge", namespaces=NS):
            invoice.add_allowance_charge(self.read_allowance_charge(node, "Document allowance/charge"))

        for position, node in enumerate(root.findall("cac:InvoiceLine", namespaces=NS), start=1):
            line = self.read_line(node, position)
            if line is not None:
                invoice.add_line(line)
        if not invoice.lines:
            self.anomaly("document has no usable invoice line")

        prepaid = self.decimal(root, "cac:LegalMonetaryTotal/cbc:PrepaidAmount", "prepaid amount")
        if prepaid:
            try:
                invoice.set_prepaid_amount(prepaid)
            except ConstructionError as exc:
                self.anomaly(f"{exc} (ignored)")

        self.read_exemption_reasons(invoice)
        invoice.calculate_totals()
        return invoice

    def read_references(self, invoice: Invoice) -> None:
        root = self.root
        invoice.invoice_note = _text(root, "cbc:Note")
        invoice.accounting_cost = _text(root, "cbc:AccountingCost")
        invoice.buyer_reference = _text(root, "cbc:BuyerReference")

        start = self.optional_date(root, "cac:InvoicePeriod/cbc:StartDate", "invoice period start")
        end = self.optional_date(root, "cac:InvoicePeriod/cbc:EndDate", "invoice period end")
        try:
            invoice.set_invoice_period(start, end)
        except ConstructionError as exc:
            self.anomaly(f"{exc} (dropped)")

        order_id = _text(root, "cac:OrderReference/cbc:ID")
        invoice.purchase_order_reference = None if order_id == "NA" else order_id
        invoice.sales_order_reference = _text(root, "cac:OrderReference/cbc:SalesOrderID")

        preceding = _text(root, "cac:BillingReference/cac:InvoiceDocumentReference/cbc:ID")
        if preceding:
            invoice.set_preceding_invoice_reference(
                preceding,
                self.optional_date(
                    root,
                    "cac:BillingReference/cac:InvoiceDocumentReference/cbc:IssueDate",
                    "preceding invoice date",
                ),
            )
        invoice.despatch_reference = _text(root, "cac:DespatchDocumentReference/cbc:ID")
        invoice.receipt_reference = _text(root, "cac:ReceiptDocumentReference/cbc:ID")
        invoice.contract_reference = _text(root, "cac:ContractDocumentReference/cbc:ID")
        invoice.project_reference = _text(root, "cac:ProjectReference/cbc:ID")

    def read_attachments(self, invoice: Invoice) -> None:
        for position, node in enumerate(
            self.root.findall("cac:AdditionalDocumentReference", namespaces=NS), start=1
        ):
            embedded = node.find("cac:Attachment/cbc:EmbeddedDocumentBinaryObject", namespaces=NS)
            if embedded is None:
                continue
            filename = embedded.get("filename") or _text(node, "cbc:ID") or f"attachment-{position}"
            label = f"Attachment {filename}"
            try:
                document = AttachedDocument.from_base64(
                    filename,
                    embedded.text or "",
                    mime_type=embedded.get("mimeCode"),
                    description=_text(node, "cbc:DocumentDescription"),
                    document_type_code=_text(node, "cbc:DocumentTypeCode"),
                    checked=False,
                )
            except ConstructionError as exc:
                self.anomaly(f"{exc} (skipped)")
                continue
            try:
                AttachedDocument(document.filename, document.content, document.mime_type)
            except ConstructionError as exc:
                if self.strict:
                    raise ImportStructuralError(f"{label}: {exc}") from exc
                self.anomaly(f"{label}: {exc} (kept as read)")
            invoice.attach_document(document)

    def read_party(self, path: str, label: str) -> Party | None:
        node = self.root.find(path, namespaces=NS)
        if node is None:
            self.anomaly(f"missing mandatory {label.lower()} party")
            return None

        postal = node.find("cac:PostalAddress", namespaces=NS)
        address = self.build(
            Address,
            f"{label} address",
            street=_text(postal, "cbc:StreetName") or "",
            city=_text(postal, "cbc:CityName") or "",
            postal_code=_text(postal, "cbc:PostalZone") or "",
            country_code=_text(postal, "cac:Country/cbc:IdentificationCode") or "",
            additional_street=_text(postal, "cbc:AdditionalStreetName"),
            subdivision=_text(postal, "cbc:CountrySubentity"),
        )

        endpoint = None
        endpoint_id = _text(node, "cbc:EndpointID")
        if endpoint_id:
            endpoint = self.build(
                ElectronicAddress,
                f"{label} electronic address",
                scheme_id=_attr(node, "cbc:EndpointID", "schemeID") or "",
                identifier=endpoint_id,
            )

        name = (
            _text(node, "cac:PartyName/cbc:Name")
            or _text(node, "cac:PartyLegalEntity/cbc:RegistrationName")
            or ""
        )
        return self.build(
            Party,
            label,
            name=name,
            address=address,
            vat_id=_text(node, "cac:PartyTaxScheme/cbc:CompanyID"),
            company_id=_text(node, "cac:PartyLegalEntity/cbc:CompanyID"),
            email=_text(node, "cac:Contact/cbc:ElectronicMail"),
            electronic_address=endpoint,
            phone=_text(node, "cac:Contact/cbc:Telephone"),
            legal_form=_text(node, "cac:PartyLegalEntity/cbc:CompanyLegalForm"),
            contact_name=_text(node, "cac:Contact/cbc:Name"),
        )

    def read_payment(self, invoice: Invoice) -> None:
        means = self.root.find("cac:PaymentMeans", namespaces=NS)
        if means is not None:
            payment = self.build(
                PaymentInfo,
                "Payment",
                payment_means_code=_text(means, "cbc:PaymentMeansCode") or "30",
                iban=_text(means, "cac:PayeeFinancialAccount/cbc:ID"),
                bic=_text(means, "cac:PayeeFinancialAccount/cac:FinancialInstitutionBranch/cbc:ID"),
                payment_reference=_text(means, "cbc:PaymentID"),
                account_name=_text(means, "cac:PayeeFinancialAccount/cbc:Name"),
            )
            invoice.set_payment_info(payment)
        terms = _text(self.root, "cac:PaymentTerms/cbc:Note")
        if terms:
            invoice.set_payment_terms(terms)

    def read_allowance_charge(
        self,
        node: etree._Element,
        label: str,
        *,
        vat_category: str = "S",
        vat_rate: Decimal = ZERO,
    ) -> AllowanceCharge:
        indicator = self.required(node, "cbc:ChargeIndicator", f"{label} charge indicator")
        if indicator is not None and indicator not in CHARGE_INDICATORS:
            self.anomaly(f"{label}: invalid charge indicator {indicator!r}, expected 'true' or 'false'")
        return self.build(
            AllowanceCharge,
            label,
            charge_indicator=CHARGE_INDICATORS.get(indicator or "false", False),
            amount=self.decimal(node, "cbc:Amount", f"{label} amount"),
            vat_category=_text(node, "cac:TaxCategory/cbc:ID") or vat_category,
            vat_rate=self.decimal(node, "cac:TaxCategory/cbc:Percent", f"{label} rate", default=vat_rate),
            reason=_text(node, "cbc:AllowanceChargeReason"),
            reason_code=_text(node, "cbc:AllowanceChargeReasonCode"),
            percentage=self.decimal(node, "cbc:MultiplierFactorNumeric", f"{label} percentage", default=None),
            base_amount=self.decimal(node, "cbc:BaseAmount", f"{label} base amount", default=None),
        )

    def read_line(self, node: etree._Element, position: int) -> InvoiceLine | None:
        line_id = self.required(node, "cbc:ID", f"id of line {position}")
        name = self.required(node, "cac:Item/cbc:Name", f"item name of line {position}")
        if not line_id or not name:
            return None
        label = f"Line {line_id}"
        item = node.find("cac:Item", namespaces=NS)
        vat_category = _text(item, "cac:ClassifiedTaxCategory/cbc:ID") or "S"
        vat_rate = self.decimal(item, "cac:ClassifiedTaxCategory/cbc:Percent", f"{label} rate")
        allowance_charges = [
            self.read_allowance_charge(
                child,
                f"{label} allowance/charge",
                vat_category=vat_category,
                vat_rate=vat_rate or ZERO,
            )
            for child in node.findall("cac:AllowanceCharge", namespaces=NS)
        ]
        return self.build(
            InvoiceLine,
            label,
            line_id=line_id,
            name=name,
            quantity=self.decimal(node, "cbc:InvoicedQuantity", f"{label} quantity"),
            unit_code=_attr(node, "cbc:InvoicedQuantity", "unitCode") or "C62",
            unit_price=self.decimal(node, "cac:Price/cbc:PriceAmount", f"{label} price"),
            vat_category=vat_category,
            vat_rate=vat_rate,
            description=_text(item, "cbc:Description"),
            note=_text(node, "cbc:Note"),
            period_start=self.optional_date(node, "cac:InvoicePeriod/cbc:StartDate", f"{label} period start"),
            period_end=self.optional_date(node, "cac:InvoicePeriod/cbc:EndDate", f"{label} period end"),
            order_line_reference=_text(node, "cac:OrderLineReference/cbc:LineID"),
            buyer_item_id=_text(item, "cac:BuyersItemIdentification/cbc:ID"),
            seller_item_id=_text(item, "cac:SellersItemIdentification/cbc:ID"),
            standard_item_id=_text(item, "cac:StandardItemIdentification/cbc:ID"),
            standard_item_scheme=_attr(item, "cac:StandardItemIdentification/cbc:ID", "schemeID") or "0160",
            origin_country=_text(item, "cac:OriginCountry/cbc:IdentificationCode"),
            commodity_code=_text(item, "cac:CommodityClassification/cbc:ItemClassificationCode"),
            allowance_charges=allowance_charges,
        )

    def read_exemption_reasons(self, invoice: Invoice) -> None:
        for subtotal in self.root.findall("cac:TaxTotal/cac:TaxSubtotal", namespaces=NS):
            category = _text(subtotal, "cac:TaxCategory/cbc:ID")
            reason = _text(subtotal, "cac:TaxCategory/cbc:TaxExemptionReason")
            code = _text(subtotal, "cac:TaxCategory/cbc:TaxExemptionReasonCode")
            if not category or not (reason or code):
                continue
            rate = self.decimal(subtotal, "cac:TaxCategory/cbc:Percent", f"VAT breakdown {category} rate")
            self.build(
                invoice.set_bucket_exemption_reason,
                f"VAT breakdown {category}",
                vat_category=category,
                vat_rate=rate,
                reason=reason,
                code=code,
            )
            if invoice.vat_exemption_reason is None:
                invoice.vat_exemption_reason = reason
                invoice.vat_exemption_reason_code = code

    # -- reconciliation ---------------------------------------------------------

    def compare_totals(self, invoice: Invoice, tolerance: Decimal) -> dict[str, TotalMismatch]:
        mismatches: dict[str, TotalMismatch] = {}
        if _text(self.root, "cac:LegalMonetaryTotal/cbc:PayableAmount") is None:
            self.anomaly("missing mandatory payable amount (BT-115)")
        for path, name in DECLARED_TOTALS.items():
            declared = self.decimal(self.root, path, name, default=None)
            if declared is None:
                continue
            calculated = getattr(invoice.totals, name)
            diff = abs(declared - calculated)
            if diff > tolerance:
                mismatches[name] = TotalMismatch(declared, calculated, diff)
        return mismatches


def _parse(data: bytes) -> etree._Element:
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ImportStructuralError(f"document is not well-formed XML: {exc}") from exc
    if detect_namespace(root) != NS_INVOICE or etree.QName(root).localname != "Invoice":
        raise ImportStructuralError(f"root element {root.tag!r} is not a UBL Invoice")
    return root


def import_invoice(
    data: bytes,
    *,
    strict: bool = True,
    tolerance: Decimal = AMOUNT_TOLERANCE,
) -> ImportResult:
    """Import a UBL document.

    Never raises for document problems: the returned :class:`ImportResult`
    carries ``FAILED`` with the reason instead.
    """

    reader: _InvoiceReader | None = None
    try:
        root = _parse(data)
        reader = _InvoiceReader(root, strict=strict)
        invoice = reader.read()
        mismatches = reader.compare_totals(invoice, tolerance)
    except ImportStructuralError as exc:
        LOGGER.info("Import aborted: %s", exc)
        anomalies = tuple(reader.anomalies) if reader is not None else ()
        return ImportResult(ImportStatus.FAILED, anomalies=anomalies, error=str(exc))

    if strict and mismatches:
        summary = ", ".join(
            f"{name} declared {fmt2(item.declared)} calculated {fmt2(item.calculated)}"
            for name, item in mismatches.items()
        )
        LOGGER.info("Import aborted on totals: %s", summary)
        return ImportResult(
            ImportStatus.FAILED,
            total_mismatches=mismatches,
            error=f"declared totals differ from the recomputed ones: {summary}",
        )

    anomalies = tuple(reader.anomalies)
    if mismatches or anomalies:
        for name, item in mismatches.items():
            LOGGER.warning(
                "Total %s declared %s, recomputed %s (diff %s)",
                name,
                fmt2(item.declared),
                fmt2(item.calculated),
                fmt2(item.diff),
            )
        return ImportResult(ImportStatus.OK_WITH_WARNINGS, invoice, mismatches, anomalies)
    return ImportResult(ImportStatus.OK, invoice)


def load_invoice(data: bytes) -> Invoice:
    """Strict import returning the invoice or raising ``ImportStructuralError``."""

    return import_invoice(data, strict=True).raise_for_status()


__all__ = [
    "DECLARED_TOTALS",
    "ImportResult",
    "ImportStatus",
    "TotalMismatch",
    "detect_profile",
    "import_invoice",
    "load_invoice",
]

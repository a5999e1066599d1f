"""Serialise an :class:`~ublinvoice.invoice.Invoice` to UBL 2.1 XML.

Elements are written in the sequence mandated by the UBL Invoice schema, so
the same aggregate state always produces byte-identical output.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from lxml import etree

from ..constants import NS_CAC, NS_CBC, NS_INVOICE, NSMAP
from ..exceptions import ExportError
from ..invoice import Invoice
from ..models import AllowanceCharge, InvoiceLine, Party, VatBreakdown
from ..totals import InvoiceTotals
from ..utils import ZERO, fmt2, fmt_quantity

LOGGER = logging.getLogger("ublinvoice.codec.exporter")

VAT_SCHEME = "VAT"


def _cac(parent: etree._Element, name: str) -> etree._Element:
    return etree.SubElement(parent, f"{{{NS_CAC}}}{name}")


def _cbc(parent: etree._Element, name: str, value: object, **attrs: str) -> etree._Element | None:
    if value is None or value == "":
        return None
    element = etree.SubElement(parent, f"{{{NS_CBC}}}{name}")
    element.text = value.isoformat() if isinstance(value, date) else str(value)
    for key, attr_value in attrs.items():
        element.set(key, attr_value)
    return element


def _amount(parent: etree._Element, name: str, value: Decimal, currency: str) -> None:
    _cbc(parent, name, fmt2(value), currencyID=currency)


def _price(value: Decimal) -> str:
    if value.as_tuple().exponent >= -2:  # type: ignore[operator]
        return fmt2(value)
    return fmt_quantity(value)


def _tax_scheme(parent: etree._Element) -> None:
    _cbc(_cac(parent, "TaxScheme"), "ID", VAT_SCHEME)


def _tax_category(
    parent: etree._Element,
    name: str,
    category: str,
    rate: Decimal,
    *,
    reason: str | None = None,
    reason_code: str | None = None,
) -> None:
    element = _cac(parent, name)
    _cbc(element, "ID", category)
    _cbc(element, "Percent", fmt_quantity(rate))
    _cbc(element, "TaxExemptionReasonCode", reason_code)
    _cbc(element, "TaxExemptionReason", reason)
    _tax_scheme(element)


def _period(parent: etree._Element, start: date | None, end: date | None) -> None:
    if not start and not end:
        return
    period = _cac(parent, "InvoicePeriod")
    _cbc(period, "StartDate", start)
    _cbc(period, "EndDate", end)


def _write_party(parent: etree._Element, wrapper: str, party: Party) -> None:
    node = _cac(_cac(parent, wrapper), "Party")
    if party.electronic_address is not None:
        _cbc(node, "EndpointID", party.electronic_address.identifier, schemeID=party.electronic_address.scheme_id)
    _cbc(_cac(node, "PartyName"), "Name", party.name)

    address = party.address
    postal = _cac(node, "PostalAddress")
    _cbc(postal, "StreetName", address.street)
    _cbc(postal, "AdditionalStreetName", address.additional_street)
    _cbc(postal, "CityName", address.city)
    _cbc(postal, "PostalZone", address.postal_code)
    _cbc(postal, "CountrySubentity", address.subdivision)
    _cbc(_cac(postal, "Country"), "IdentificationCode", address.country_code)

    if party.vat_id:
        tax_scheme = _cac(node, "PartyTaxScheme")
        _cbc(tax_scheme, "CompanyID", party.vat_id)
        _tax_scheme(tax_scheme)

    legal = _cac(node, "PartyLegalEntity")
    _cbc(legal, "RegistrationName", party.name)
    _cbc(legal, "CompanyID", party.company_id)
    _cbc(legal, "CompanyLegalForm", party.legal_form)

    if party.contact_name or party.phone or party.email:
        contact = _cac(node, "Contact")
        _cbc(contact, "Name", party.contact_name)
        _cbc(contact, "Telephone", party.phone)
        _cbc(contact, "ElectronicMail", party.email)


def _write_allowance_charge(parent: etree._Element, item: AllowanceCharge, currency: str, *, with_tax: bool) -> None:
    node = _cac(parent, "AllowanceCharge")
    _cbc(node, "ChargeIndicator", "true" if item.charge_indicator else "false")
    _cbc(node, "AllowanceChargeReasonCode", item.reason_code)
    _cbc(node, "AllowanceChargeReason", item.reason)
    if item.percentage is not None:
        _cbc(node, "MultiplierFactorNumeric", fmt_quantity(item.percentage))
    _amount(node, "Amount", item.amount, currency)
    if item.base_amount is not None:
        _amount(node, "BaseAmount", item.base_amount, currency)
    if with_tax:
        _tax_category(node, "TaxCategory", item.vat_category, item.vat_rate)


def _write_tax_total(parent: etree._Element, invoice: Invoice, currency: str) -> None:
    tax_total = _cac(parent, "TaxTotal")
    _amount(tax_total, "TaxAmount", invoice.total_vat_amount, currency)
    bucket: VatBreakdown
    for bucket in invoice.vat_breakdowns:
        subtotal = _cac(tax_total, "TaxSubtotal")
        _amount(subtotal, "TaxableAmount", bucket.taxable_amount, currency)
        _amount(subtotal, "TaxAmount", bucket.tax_amount, currency)
        _tax_category(
            subtotal,
            "TaxCategory",
            bucket.vat_category,
            bucket.vat_rate,
            reason=bucket.exemption_reason,
            reason_code=bucket.exemption_reason_code,
        )


def _write_monetary_total(parent: etree._Element, totals: InvoiceTotals, currency: str) -> None:
    node = _cac(parent, "LegalMonetaryTotal")
    _amount(node, "LineExtensionAmount", totals.line_extension_amount, currency)
    _amount(node, "TaxExclusiveAmount", totals.tax_exclusive_amount, currency)
    _amount(node, "TaxInclusiveAmount", totals.tax_inclusive_amount, currency)
    if totals.allowance_total != ZERO:
        _amount(node, "AllowanceTotalAmount", totals.allowance_total, currency)
    if totals.charge_total != ZERO:
        _amount(node, "ChargeTotalAmount", totals.charge_total, currency)
    if totals.prepaid_amount != ZERO:
        _amount(node, "PrepaidAmount", totals.prepaid_amount, currency)
    _amount(node, "PayableAmount", totals.payable_amount, currency)


def _write_line(parent: etree._Element, line: InvoiceLine, currency: str) -> None:
    node = _cac(parent, "InvoiceLine")
    _cbc(node, "ID", line.line_id)
    _cbc(node, "Note", line.note)
    _cbc(node, "InvoicedQuantity", fmt_quantity(line.quantity), unitCode=line.unit_code)
    _amount(node, "LineExtensionAmount", line.line_amount, currency)
    _period(node, line.period_start, line.period_end)
    if line.order_line_reference:
        _cbc(_cac(node, "OrderLineReference"), "LineID", line.order_line_reference)
    for item in line.allowance_charges:
        _write_allowance_charge(node, item, currency, with_tax=False)

    item_node = _cac(node, "Item")
    _cbc(item_node, "Description", line.description)
    _cbc(item_node, "Name", line.name)
    if line.buyer_item_id:
        _cbc(_cac(item_node, "BuyersItemIdentification"), "ID", line.buyer_item_id)
    if line.seller_item_id:
        _cbc(_cac(item_node, "SellersItemIdentification"), "ID", line.seller_item_id)
    if line.standard_item_id:
        _cbc(
            _cac(item_node, "StandardItemIdentification"),
            "ID",
            line.standard_item_id,
            schemeID=line.standard_item_scheme,
        )
    if line.origin_country:
        _cbc(_cac(item_node, "OriginCountry"), "IdentificationCode", line.origin_country)
    if line.commodity_code:
        _cbc(_cac(item_node, "CommodityClassification"), "ItemClassificationCode", line.commodity_code, listID="STI")
    _tax_category(item_node, "ClassifiedTaxCategory", line.vat_category, line.vat_rate)

    _cbc(_cac(node, "Price"), "PriceAmount", _price(line.unit_price), currencyID=currency)


def _check_exportable(invoice: Invoice) -> InvoiceTotals:
    """Raise :class:`ExportError` unless ``invoice`` is complete; return its totals."""

    missing = []
    if invoice.seller is None:
        missing.append("seller")
    if invoice.buyer is None:
        missing.append("buyer")
    if not invoice.currency_code:
        missing.append("currency")
    if not invoice.lines:
        missing.append("invoice lines")
    if missing:
        raise ExportError(f"cannot export invoice {invoice.invoice_number}: missing {', '.join(missing)}")
    if invoice.totals is None:
        raise ExportError(
            f"cannot export invoice {invoice.invoice_number}: totals have not been calculated"
        )
    return invoice.totals


def build_tree(invoice: Invoice) -> etree._Element:
    """Return the ``Invoice`` root element for ``invoice``."""

    totals = _check_exportable(invoice)
    currency = invoice.currency_code
    root = etree.Element(f"{{{NS_INVOICE}}}Invoice", nsmap=NSMAP)

    _cbc(root, "CustomizationID", invoice.customization_id)
    _cbc(root, "ProfileID", invoice.profile_id)
    _cbc(root, "ID", invoice.invoice_number)
    _cbc(root, "IssueDate", invoice.issue_date)
    _cbc(root, "DueDate", invoice.due_date)
    _cbc(root, "InvoiceTypeCode", invoice.invoice_type_code)
    _cbc(root, "Note", invoice.invoice_note)
    _cbc(root, "DocumentCurrencyCode", currency)
    _cbc(root, "AccountingCost", invoice.accounting_cost)
    _cbc(root, "BuyerReference", invoice.buyer_reference)
    _period(root, invoice.invoice_period_start, invoice.invoice_period_end)

    if invoice.purchase_order_reference or invoice.sales_order_reference:
        order = _cac(root, "OrderReference")
        _cbc(order, "ID", invoice.purchase_order_reference or "NA")
        _cbc(order, "SalesOrderID", invoice.sales_order_reference)
    if invoice.preceding_invoice_number:
        reference = _cac(_cac(root, "BillingReference"), "InvoiceDocumentReference")
        _cbc(reference, "ID", invoice.preceding_invoice_number)
        _cbc(reference, "IssueDate", invoice.preceding_invoice_date)
    if invoice.despatch_reference:
        _cbc(_cac(root, "DespatchDocumentReference"), "ID", invoice.despatch_reference)
    if invoice.receipt_reference:
        _cbc(_cac(root, "ReceiptDocumentReference"), "ID", invoice.receipt_reference)
    if invoice.contract_reference:
        _cbc(_cac(root, "ContractDocumentReference"), "ID", invoice.contract_reference)

    for document in invoice.attachments:
        reference = _cac(root, "AdditionalDocumentReference")
        _cbc(reference, "ID", document.filename)
        _cbc(reference, "DocumentTypeCode", document.document_type_code)
        _cbc(reference, "DocumentDescription", document.description)
        embedded = etree.SubElement(_cac(reference, "Attachment"), f"{{{NS_CBC}}}EmbeddedDocumentBinaryObject")
        embedded.set("mimeCode", document.mime_type or "application/octet-stream")
        embedded.set("filename", document.filename)
        embedded.text = document.to_base64()

    if invoice.project_reference:
        _cbc(_cac(root, "ProjectReference"), "ID", invoice.project_reference)

    _write_party(root, "AccountingSupplierParty", invoice.seller)  # type: ignore[arg-type]
    _write_party(root, "AccountingCustomerParty", invoice.buyer)  # type: ignore[arg-type]

    if invoice.delivery_date:
        _cbc(_cac(root, "Delivery"), "ActualDeliveryDate", invoice.delivery_date)

    payment = invoice.payment_info
    if payment is not None:
        means = _cac(root, "PaymentMeans")
        _cbc(means, "PaymentMeansCode", payment.payment_means_code)
        _cbc(means, "PaymentID", payment.payment_reference)
        if payment.iban:
            account = _cac(means, "PayeeFinancialAccount")
            _cbc(account, "ID", payment.iban)
            _cbc(account, "Name", payment.account_name)
            if payment.bic:
                _cbc(_cac(account, "FinancialInstitutionBranch"), "ID", payment.bic)
    if invoice.payment_terms:
        _cbc(_cac(root, "PaymentTerms"), "Note", invoice.payment_terms)

    for item in invoice.allowance_charges:
        _write_allowance_charge(root, item, currency, with_tax=True)

    _write_tax_total(root, invoice, currency)
    _write_monetary_total(root, totals, currency)

    for line in invoice.lines:
        _write_line(root, line, currency)

    return root


def export_invoice(invoice: Invoice) -> bytes:
    """Return the UBL document for ``invoice`` as UTF-8 bytes."""

    root = build_tree(invoice)
    LOGGER.debug("Exported invoice %s with %d line(s)", invoice.invoice_number, len(invoice.lines))
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


__all__ = ["build_tree", "export_invoice"]

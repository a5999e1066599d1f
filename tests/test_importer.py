from __future__ import annotations

from decimal import Decimal

import pytest

from ublinvoice import (
    AllowanceCharge,
    AttachedDocument,
    ImportStatus,
    ImportStructuralError,
    InvoiceLine,
    export_invoice,
    import_invoice,
    load_invoice,
)
from ublinvoice.codec import TotalMismatch, detect_profile
from ublinvoice.constants import CUSTOMIZATION_EN16931, CUSTOMIZATION_PEPPOL, CUSTOMIZATION_UBL_BE


def _rich_invoice(make_invoice):
    invoice = make_invoice("ublbe", calculate=False)
    invoice.buyer_reference = "PO-77"
    invoice.purchase_order_reference = "ORD-1"
    invoice.sales_order_reference = "SO-5"
    invoice.contract_reference = "C-9"
    invoice.project_reference = "PRJ-3"
    invoice.despatch_reference = "DESP-1"
    invoice.receipt_reference = "REC-1"
    invoice.accounting_cost = "4000"
    invoice.invoice_note = "Thank you"
    invoice.set_preceding_invoice_reference("INV-2025-099", "2025-12-15")
    invoice.set_invoice_period("2026-02-01", "2026-02-28")
    invoice.set_delivery_date("2026-02-28")
    invoice.set_payment_terms("30 days net")
    invoice.payment_info.payment_reference = "123456789095"
    invoice.payment_info.account_name = "Acme SPRL"

    line = InvoiceLine(
        "2",
        "Laptop",
        Decimal("2"),
        "H87",
        Decimal("899.995"),
        "S",
        Decimal("6"),
        description="14 inch",
        order_line_reference="3",
        seller_item_id="LT-14",
        standard_item_id="5412345000013",
        origin_country="CN",
        commodity_code="84713000",
    )
    line.add_allowance_charge(AllowanceCharge.allowance(Decimal("50"), reason="Bundle"))
    invoice.add_line(line)
    invoice.add_line(InvoiceLine("3", "Export service", Decimal("1"), "C62", Decimal("300"), "G", Decimal("0")))
    invoice.add_allowance(Decimal("100"), reason_code="95", reason="Discount")
    invoice.add_charge(Decimal("25"), "S", Decimal("21"), reason_code="FC", reason="Freight")
    invoice.attach_document(AttachedDocument.from_bytes("order.pdf", b"%PDF-1.4", description="Order"))
    invoice.attach_document(AttachedDocument.from_bytes("timesheet.csv", b"day;hours\n1;8\n"))
    invoice.set_vat_exemption_reason("VATEX-EU-G")
    invoice.set_prepaid_amount("100")
    return invoice.calculate_totals()


def _sample_document(make_invoice) -> bytes:
    return export_invoice(make_invoice())


def test_strict_round_trip_preserves_the_aggregate(make_invoice) -> None:
    original = _rich_invoice(make_invoice)

    result = import_invoice(export_invoice(original))

    assert result.status is ImportStatus.OK
    assert result.ok and result.usable
    imported = result.invoice
    for name in (
        "invoice_number",
        "issue_date",
        "due_date",
        "invoice_type_code",
        "currency_code",
        "profile",
        "buyer_reference",
        "purchase_order_reference",
        "sales_order_reference",
        "contract_reference",
        "project_reference",
        "despatch_reference",
        "receipt_reference",
        "accounting_cost",
        "invoice_note",
        "preceding_invoice_number",
        "preceding_invoice_date",
        "invoice_period_start",
        "invoice_period_end",
        "delivery_date",
        "payment_terms",
        "vat_exemption_reason",
        "vat_exemption_reason_code",
        "prepaid_amount",
    ):
        assert getattr(imported, name) == getattr(original, name), name
    assert imported.lines == original.lines
    assert [
        (item.charge_indicator, item.amount, item.vat_category, item.vat_rate, item.reason)
        for line in imported.lines
        for item in line.allowance_charges
    ] == [(False, Decimal("50"), "S", Decimal("6"), "Bundle")]
    assert imported.allowance_charges == original.allowance_charges
    assert imported.seller == original.seller
    assert imported.buyer == original.buyer
    assert imported.payment_info == original.payment_info
    assert imported.attachments == original.attachments
    assert imported.vat_breakdowns == original.vat_breakdowns
    assert imported.totals == original.totals


def test_round_trip_keeps_group_order(make_invoice) -> None:
    original = _rich_invoice(make_invoice)

    imported = load_invoice(export_invoice(original))

    assert [line.line_id for line in imported.lines] == ["1", "2", "3"]
    assert [bucket.key for bucket in imported.vat_breakdowns] == [
        ("S", Decimal("21")),
        ("S", Decimal("6")),
        ("G", Decimal("0")),
    ]
    assert [doc.filename for doc in imported.attachments] == ["order.pdf", "timesheet.csv"]
    assert imported.vat_breakdowns[2].exemption_reason_code == "VATEX-EU-G"
    assert imported.validate() == []


def test_lenient_import_reports_payable_mismatch(make_invoice) -> None:
    document = _sample_document(make_invoice).replace(
        b">1210.00</cbc:PayableAmount>", b">1300.00</cbc:PayableAmount>"
    )

    result = import_invoice(document, strict=False)

    assert result.status is ImportStatus.OK_WITH_WARNINGS
    assert result.usable and not result.ok
    assert result.invoice.payable_amount == Decimal("1210.00")
    assert result.total_mismatches == {
        "payable_amount": TotalMismatch(Decimal("1300.00"), Decimal("1210.00"), Decimal("90.00"))
    }
    assert result.anomalies == ()
    assert result.raise_for_status() is result.invoice


def test_strict_import_fails_on_payable_mismatch(make_invoice) -> None:
    document = _sample_document(make_invoice).replace(
        b">1210.00</cbc:PayableAmount>", b">1300.00</cbc:PayableAmount>"
    )

    result = import_invoice(document)

    assert result.status is ImportStatus.FAILED
    assert result.invoice is None
    assert "payable_amount declared 1300.00 calculated 1210.00" in result.error
    assert set(result.total_mismatches) == {"payable_amount"}
    with pytest.raises(ImportStructuralError):
        result.raise_for_status()
    with pytest.raises(ImportStructuralError):
        load_invoice(document)


def test_differences_within_tolerance_are_accepted(make_invoice) -> None:
    document = _sample_document(make_invoice).replace(
        b">1210.00</cbc:PayableAmount>", b">1210.02</cbc:PayableAmount>"
    )

    assert import_invoice(document).status is ImportStatus.OK


def test_lenient_import_keeps_malformed_values(make_invoice) -> None:
    document = (
        _sample_document(make_invoice)
        .replace(b">GEBABEBB<", b">BAD!<")
        .replace(b'unitCode="HUR"', b'unitCode="XYZ"')
    )

    result = import_invoice(document, strict=False)

    assert result.status is ImportStatus.OK_WITH_WARNINGS
    assert result.total_mismatches == {}
    assert len(result.anomalies) == 2
    assert "BIC" in result.anomalies[0]
    assert "unit code 'XYZ'" in result.anomalies[1]

    invoice = result.invoice
    assert invoice.payment_info.bic == "BAD!"
    assert invoice.lines[0].unit_code == "XYZ"
    assert invoice.payable_amount == Decimal("1210.00")
    findings = invoice.validate()
    assert "BR-23: Line 1: unit code 'XYZ' is not registered" in findings
    assert "BR-PAY: Payment: invalid BIC 'BAD!'" in findings


def test_strict_import_rejects_malformed_values(make_invoice) -> None:
    document = _sample_document(make_invoice).replace(b">GEBABEBB<", b">BAD!<")

    result = import_invoice(document)

    assert result.status is ImportStatus.FAILED
    assert "BIC" in result.error


def _rich_document(make_invoice, old: bytes, new: bytes) -> bytes:
    document = export_invoice(_rich_invoice(make_invoice))
    assert old in document
    return document.replace(old, new)


def test_strict_import_rejects_unknown_exemption_codes(make_invoice) -> None:
    document = _rich_document(make_invoice, b">VATEX-EU-G<", b">VATEX-BOGUS<")

    result = import_invoice(document)

    assert result.status is ImportStatus.FAILED
    assert result.error == "VAT breakdown G: unknown exemption reason code 'VATEX-BOGUS'"


def test_lenient_import_keeps_unknown_exemption_codes(make_invoice) -> None:
    document = _rich_document(make_invoice, b">VATEX-EU-G<", b">VATEX-BOGUS<")

    result = import_invoice(document, strict=False)

    assert result.status is ImportStatus.OK_WITH_WARNINGS
    assert result.total_mismatches == {}
    assert result.anomalies == (
        "VAT breakdown G: unknown exemption reason code 'VATEX-BOGUS' (kept as read)",
    )
    invoice = result.invoice
    assert invoice.vat_breakdowns[2].exemption_reason_code == "VATEX-BOGUS"
    assert (
        "BR-CL-22: VAT breakdown G 0%: exemption reason code 'VATEX-BOGUS' is not registered"
        in invoice.validate()
    )


def test_strict_import_rejects_unknown_charge_indicators(make_invoice) -> None:
    document = _rich_document(
        make_invoice,
        b"<cbc:ChargeIndicator>true</cbc:ChargeIndicator>",
        b"<cbc:ChargeIndicator>yes</cbc:ChargeIndicator>",
    )

    result = import_invoice(document)

    assert result.status is ImportStatus.FAILED
    assert result.error == (
        "Document allowance/charge: invalid charge indicator 'yes', expected 'true' or 'false'"
    )


def test_lenient_import_reports_unknown_charge_indicators(make_invoice) -> None:
    document = _rich_document(
        make_invoice,
        b"<cbc:ChargeIndicator>true</cbc:ChargeIndicator>",
        b"<cbc:ChargeIndicator>yes</cbc:ChargeIndicator>",
    )

    result = import_invoice(document, strict=False)

    assert result.status is ImportStatus.OK_WITH_WARNINGS
    assert result.anomalies[0] == (
        "Document allowance/charge: invalid charge indicator 'yes', expected 'true' or 'false'"
    )
    assert "unknown allowance reason code 'FC'" in result.anomalies[1]
    assert [item.charge_indicator for item in result.invoice.allowance_charges] == [False, False]
    assert "payable_amount" in result.total_mismatches


def test_lenient_import_replaces_bad_numbers(make_invoice) -> None:
    document = _sample_document(make_invoice).replace(
        b'<cbc:PriceAmount currencyID="EUR">100.00<', b'<cbc:PriceAmount currencyID="EUR">1OO<'
    )

    result = import_invoice(document, strict=False)

    assert result.status is ImportStatus.OK_WITH_WARNINGS
    assert any("invalid number '1OO'" in anomaly for anomaly in result.anomalies)
    assert result.invoice.lines[0].unit_price == Decimal("0")
    assert set(result.total_mismatches) == {
        "line_extension_amount",
        "tax_exclusive_amount",
        "total_vat_amount",
        "tax_inclusive_amount",
        "payable_amount",
    }


@pytest.mark.parametrize(
    "document",
    [
        b"<Invoice",
        b"<CreditNote xmlns='urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2'/>",
        b"<Invoice xmlns='urn:oasis:names:specification:ubl:schema:xsd:Invoice-2'/>",
    ],
)
@pytest.mark.parametrize("strict", [True, False])
def test_structural_failures(document: bytes, strict: bool) -> None:
    result = import_invoice(document, strict=strict)

    assert result.status is ImportStatus.FAILED
    assert not result.usable
    assert result.error


def test_missing_lines_and_parties(make_invoice) -> None:
    document = (
        b"<Invoice xmlns='urn:oasis:names:specification:ubl:schema:xsd:Invoice-2' "
        b"xmlns:cbc='urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2'>"
        b"<cbc:ID>X-1</cbc:ID><cbc:IssueDate>2026-03-01</cbc:IssueDate></Invoice>"
    )

    strict = import_invoice(document)
    assert strict.status is ImportStatus.FAILED
    assert strict.error == "missing mandatory seller party"

    lenient = import_invoice(document, strict=False)
    assert lenient.status is ImportStatus.OK_WITH_WARNINGS
    assert lenient.anomalies == (
        "missing mandatory seller party",
        "missing mandatory buyer party",
        "document has no usable invoice line",
        "missing mandatory payable amount (BT-115)",
    )
    assert lenient.invoice.invoice_number == "X-1"


@pytest.mark.parametrize(
    ("customization", "profile"),
    [
        (CUSTOMIZATION_EN16931, "en16931"),
        (CUSTOMIZATION_PEPPOL, "peppol"),
        (CUSTOMIZATION_UBL_BE, "ublbe"),
        (None, "en16931"),
    ],
)
def test_detect_profile(customization, profile: str) -> None:
    assert detect_profile(customization) == profile


def test_profile_is_detected_on_import(make_invoice) -> None:
    invoice = make_invoice("peppol")
    invoice.buyer_reference = "PO-77"

    imported = load_invoice(export_invoice(invoice))

    assert imported.profile == "peppol"
    assert imported.validate() == []


def test_invoice_level_exemption_reason_needs_an_exempt_bucket(make_invoice) -> None:
    invoice = make_invoice()
    invoice.set_vat_exemption_reason("VATEX-EU-G")

    imported = load_invoice(export_invoice(invoice))

    assert invoice.vat_exemption_reason_code == "VATEX-EU-G"
    assert imported.vat_exemption_reason_code is None
    assert [bucket.exemption_reason_code for bucket in imported.vat_breakdowns] == [None]

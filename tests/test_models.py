from __future__ import annotations

import base64
from decimal import Decimal

import pytest

from ublinvoice import (
    Address,
    AllowanceCharge,
    AttachedDocument,
    ConstructionError,
    ElectronicAddress,
    InvoiceLine,
    Party,
    PaymentInfo,
    VatBreakdown,
)


def _address() -> Address:
    return Address("Rue de la Loi 16", "Bruxelles", "1000", "be")


def test_address_normalises_country_and_requires_fields() -> None:
    assert _address().country_code == "BE"
    with pytest.raises(ConstructionError):
        Address("", "Bruxelles", "1000", "BE")
    with pytest.raises(ConstructionError):
        Address("Rue", "Bruxelles", "1000", "BEL")


def test_party_normalises_vat_and_rejects_bad_checksum() -> None:
    party = Party("Acme", _address(), vat_id="be 0477.472.701")
    assert party.vat_id == "BE0477472701"

    with pytest.raises(ConstructionError, match="modulo 97"):
        Party("Acme", _address(), vat_id="BE0477472702")
    with pytest.raises(ConstructionError):
        Party("Acme", _address(), email="not-an-email")
    with pytest.raises(ConstructionError):
        Party("  ", _address())


def test_party_unchecked_keeps_raw_values() -> None:
    party = Party("Acme", _address(), vat_id="BE0477472702", checked=False)
    assert party.vat_id == "BE0477472702"


def test_electronic_address_registry_and_factories() -> None:
    assert str(ElectronicAddress.from_enterprise_number("0477.472.701")) == "0208:0477472701"
    assert ElectronicAddress.from_vat("BE0477472701").scheme_id == "9925"
    assert ElectronicAddress.from_gln("5412345000013").scheme_id == "0088"
    with pytest.raises(ConstructionError):
        ElectronicAddress("1234", "abc")
    with pytest.raises(ConstructionError):
        ElectronicAddress.from_gln("123")


def test_invoice_line_amount_with_line_allowances_and_charges() -> None:
    line = InvoiceLine("1", "Widget", Decimal("3"), "C62", Decimal("19.99"), "S", Decimal("21"))
    line.add_allowance_charge(AllowanceCharge.allowance(Decimal("5.005"), reason="Promo"))
    line.add_allowance_charge(AllowanceCharge.charge("2.50", reason_code="PC"))

    # 59.97 - 5.005 + 2.50 = 57.465
    assert line.line_amount == Decimal("57.47")
    assert line.line_vat_amount == Decimal("12.07")


def test_line_allowances_take_the_line_tax_category() -> None:
    discount = AllowanceCharge.allowance(Decimal("10"), reason="Promo")
    line = InvoiceLine(
        "1", "Book", Decimal("1"), "C62", Decimal("40"), "Z", Decimal("0"), allowance_charges=[discount]
    )
    line.add_allowance_charge(AllowanceCharge.charge(Decimal("2"), reason_code="PC"))

    assert [item.vat_key for item in line.allowance_charges] == [
        ("Z", Decimal("0")),
        ("Z", Decimal("0")),
    ]
    assert discount.vat_key == ("S", Decimal("21"))
    assert line.line_amount == Decimal("32.00")


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"quantity": Decimal("0")}, "quantity"),
        ({"unit_price": Decimal("-1")}, "unit price"),
        ({"unit_code": "BOGUS"}, "unit code"),
        ({"vat_category": "S", "vat_rate": Decimal("0")}, "rate greater than 0"),
        ({"vat_category": "G", "vat_rate": Decimal("21")}, "rate of 0"),
        ({"vat_category": "Q"}, "unknown VAT category"),
    ],
)
def test_invoice_line_rejects_invalid_values(kwargs: dict, message: str) -> None:
    fields = {
        "line_id": "1",
        "name": "Widget",
        "quantity": Decimal("1"),
        "unit_code": "C62",
        "unit_price": Decimal("10"),
        "vat_category": "S",
        "vat_rate": Decimal("21"),
    }
    fields.update(kwargs)
    with pytest.raises(ConstructionError, match=message):
        InvoiceLine(**fields)


def test_invoice_line_accepts_strings_and_floats() -> None:
    line = InvoiceLine("1", "Widget", "2", "C62", 12.5, "S", 21)
    assert line.quantity == Decimal("2")
    assert line.unit_price == Decimal("12.5")
    assert line.line_amount == Decimal("25.00")


def test_allowance_charge_rules() -> None:
    discount = AllowanceCharge.from_percentage(False, "200", "10", reason_code="95")
    assert discount.amount == Decimal("20.00")
    assert discount.signed_amount == Decimal("-20.00")
    assert discount.vat_amount == Decimal("4.20")

    with pytest.raises(ConstructionError):
        AllowanceCharge.allowance("-1")
    with pytest.raises(ConstructionError):
        AllowanceCharge.allowance("1", percentage="120")
    with pytest.raises(ConstructionError, match="allowance reason code"):
        AllowanceCharge.allowance("1", reason_code="FC")
    assert AllowanceCharge.charge("1", reason_code="FC").charge_indicator


def test_vat_breakdown_accumulates_with_rounding() -> None:
    bucket = VatBreakdown("S", Decimal("21"))
    bucket.accumulate(Decimal("10.005"))
    bucket.accumulate(Decimal("10.005"))

    assert bucket.taxable_amount == Decimal("20.02")
    assert bucket.expected_tax_amount() == Decimal("4.20")
    assert not bucket.requires_exemption_reason
    assert VatBreakdown("E", Decimal("0")).requires_exemption_reason


def test_payment_info_validation() -> None:
    payment = PaymentInfo("30", iban="be68 5390 0754 7034", bic="gebabebb", payment_reference="123456789095")
    assert payment.iban == "BE68539007547034"
    assert payment.bic == "GEBABEBB"
    assert payment.is_structured_reference
    assert payment.formatted_reference == "+++123/4567/89095+++"

    with pytest.raises(ConstructionError, match="BIC"):
        PaymentInfo("30", iban="BE68539007547034", bic="BAD")
    with pytest.raises(ConstructionError, match="payment means"):
        PaymentInfo("99")
    with pytest.raises(ConstructionError, match="structured"):
        PaymentInfo("30", payment_reference="+++123/4567/89096+++")


def test_attached_document_mime_and_size() -> None:
    document = AttachedDocument.from_bytes("terms.pdf", b"%PDF-1.4", description="Terms")
    assert document.mime_type == "application/pdf"
    assert document.size == 8

    decoded = AttachedDocument.from_base64("note.txt", base64.b64encode(b"hello").decode())
    assert decoded.content == b"hello"
    assert decoded.mime_type == "text/plain"

    with pytest.raises(ConstructionError, match="mime"):
        AttachedDocument.from_bytes("payload.exe", b"MZ")
    with pytest.raises(ConstructionError, match="exceeds"):
        AttachedDocument.from_bytes("big.pdf", b"0" * (10 * 1024 * 1024 + 1))
    with pytest.raises(ConstructionError, match="base64"):
        AttachedDocument.from_base64("note.txt", "***")

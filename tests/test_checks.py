from __future__ import annotations

import pytest

from ublinvoice import checks


def test_structured_reference_check_digits() -> None:
    expected = 97 - (1234567890 % 97)

    reference = checks.make_structured_reference("1234567890")

    assert reference == f"1234567890{expected:02d}"
    assert reference == "123456789095"
    assert checks.is_valid_structured_reference(reference)
    assert checks.format_structured_reference(reference) == "+++123/4567/89095+++"
    assert checks.is_valid_structured_reference("+++123/4567/89095+++")


def test_structured_reference_uses_97_for_zero_remainder() -> None:
    base = 97 * 10309278
    assert base % 97 == 0

    reference = checks.make_structured_reference(f"{base:010d}")

    assert reference.endswith("97")
    assert checks.is_valid_structured_reference(reference)


def test_structured_reference_rejects_wrong_suffix() -> None:
    assert not checks.is_valid_structured_reference("123456789096")
    assert not checks.is_valid_structured_reference("12345")
    with pytest.raises(ValueError):
        checks.make_structured_reference("12345")


@pytest.mark.parametrize(
    ("vat_id", "valid"),
    [
        ("BE0477472701", True),
        ("BE 0477.472.701", True),
        ("BE0123456749", True),
        ("BE0477472702", False),
        ("BE047747270", False),
        ("FR40303265045", True),
        ("NL123456789B01", True),
        ("X1", False),
        ("123456789", False),
    ],
)
def test_vat_id_validation(vat_id: str, valid: bool) -> None:
    assert checks.is_valid_vat_id(vat_id) is valid


def test_belgian_vat_mod97() -> None:
    assert checks.mod97_check_digits(4774727) == 1
    assert checks.is_valid_belgian_vat("BE0477472701")
    assert not checks.is_valid_belgian_vat("FR40303265045")


def test_iban_and_bic() -> None:
    assert checks.is_valid_iban("BE68 5390 0754 7034")
    assert not checks.is_valid_iban("BE69539007547034")
    assert not checks.is_valid_iban("not an iban")
    assert checks.is_valid_bic("GEBABEBB")
    assert checks.is_valid_bic("GEBABEBB036")
    assert not checks.is_valid_bic("GEBA")


def test_email_and_country() -> None:
    assert checks.is_valid_email("billing@acme.be")
    assert not checks.is_valid_email("billing@acme")
    assert not checks.is_valid_email("billing acme.be")
    assert checks.is_valid_country_code("BE")
    assert not checks.is_valid_country_code("be")
    assert not checks.is_valid_country_code("BEL")

from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path
from typing import Callable

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from ublinvoice import (  # noqa: E402
    Address,
    ElectronicAddress,
    Invoice,
    InvoiceLine,
    Party,
    PaymentInfo,
)
from ublinvoice import rules_loader  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_rules_cache() -> None:
    rules_loader.clear_cache()


@pytest.fixture
def seller() -> Party:
    return Party(
        "Acme SPRL",
        Address("Rue de la Loi 16", "Bruxelles", "1000", "BE"),
        vat_id="BE 0477.472.701",
        company_id="0477472701",
        email="billing@acme.be",
        electronic_address=ElectronicAddress("0208", "0477472701"),
        phone="+32 2 123 45 67",
    )


@pytest.fixture
def buyer() -> Party:
    return Party(
        "Client NV",
        Address("Meir 1", "Antwerpen", "2000", "BE"),
        vat_id="BE0123456749",
        electronic_address=ElectronicAddress.from_enterprise_number("0123.456.749"),
    )


@pytest.fixture
def make_invoice(seller: Party, buyer: Party) -> Callable[..., Invoice]:
    """Return a factory for a calculated 1000.00 + 21% invoice."""

    def factory(profile: str = "en16931", *, calculate: bool = True) -> Invoice:
        invoice = Invoice(
            "INV-2026-001",
            "2026-03-01",
            due_date="2026-03-31",
            profile=profile,
        )
        invoice.set_seller(seller).set_buyer(buyer)
        invoice.add_line(
            InvoiceLine("1", "Consulting", Decimal("10"), "HUR", Decimal("100"), "S", Decimal("21"))
        )
        invoice.set_payment_info(
            PaymentInfo("30", iban="BE68 5390 0754 7034", bic="GEBABEBB")
        )
        if calculate:
            invoice.calculate_totals()
        return invoice

    return factory

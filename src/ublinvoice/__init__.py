"""UBL 2.1 / EN16931 invoices.

The package models an invoice, derives its VAT breakdown and totals, checks
it against the EN16931, Peppol BIS and UBL.BE rule layers, and converts it to
and from UBL XML.
"""

from __future__ import annotations

from .codec import ImportResult, ImportStatus, export_invoice, import_invoice, load_invoice
from .exceptions import (
    ConstructionError,
    ExportError,
    ImportStructuralError,
    InvoiceError,
    RulesLoaderError,
    UnknownProfileError,
)
from .invoice import Invoice
from .models import (
    Address,
    AllowanceCharge,
    AttachedDocument,
    ElectronicAddress,
    InvoiceLine,
    Party,
    PaymentInfo,
    VatBreakdown,
)
from .rules import LookupTables, RuleLayer, Validator

__version__ = "0.4.0"

__all__ = [
    "Address",
    "AllowanceCharge",
    "AttachedDocument",
    "ConstructionError",
    "ElectronicAddress",
    "ExportError",
    "ImportResult",
    "ImportStatus",
    "ImportStructuralError",
    "Invoice",
    "InvoiceError",
    "InvoiceLine",
    "LookupTables",
    "Party",
    "PaymentInfo",
    "RuleLayer",
    "RulesLoaderError",
    "UnknownProfileError",
    "Validator",
    "VatBreakdown",
    "export_invoice",
    "import_invoice",
    "load_invoice",
]

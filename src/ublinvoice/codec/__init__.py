"""UBL 2.1 XML exporter and importer."""

from __future__ import annotations

from .exporter import build_tree, export_invoice
from .importer import (
    ImportResult,
    ImportStatus,
    TotalMismatch,
    detect_profile,
    import_invoice,
    load_invoice,
)

__all__ = [
    "ImportResult",
    "ImportStatus",
    "TotalMismatch",
    "build_tree",
    "detect_profile",
    "export_invoice",
    "import_invoice",
    "load_invoice",
]

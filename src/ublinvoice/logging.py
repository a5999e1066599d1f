"""Logging setup and Excel reports for validation and import diagnostics.

``ExcelLogger`` writes any sequence of rows to a single-sheet workbook; rows
may be plain iterables or objects exposing ``as_cells()`` such as
:class:`~ublinvoice.rules.ValidationIssue`.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Protocol, Sequence

if TYPE_CHECKING:
    from .codec.importer import ImportResult
    from .rules import ValidationIssue

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(verbose: bool = False, *, stream=None) -> logging.Logger:
    """Attach a stream handler to the ``ublinvoice`` logger once."""

    logger = logging.getLogger("ublinvoice")
    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    logging.captureWarnings(True)
    return logger


class RowLike(Protocol):
    """Protocol for rows that know how to serialise themselves."""

    def as_cells(self) -> Iterable[str]:
        """Return the ordered values to write to the sheet."""


@dataclass(slots=True)
class ExcelLoggerConfig:
    """Configuration used by :class:`ExcelLogger`."""

    columns: Sequence[str]
    filename: str = "ublinvoice-report.xlsx"
    sheet_title: str = "Log"


class ExcelLogger:
    """Write rows to an Excel workbook using :mod:`openpyxl`.

    Each call to :meth:`write_rows` creates a new workbook with the header
    from :class:`ExcelLoggerConfig` followed by the given rows.
    """

    def __init__(self, config: ExcelLoggerConfig) -> None:
        self.config = config

    def write_rows(self, rows: Iterable[RowLike | Iterable[str]]) -> Path:
        """Persist ``rows`` to the configured file and return its path."""

        from openpyxl import Workbook

        destination = Path(self.config.filename)
        destination.parent.mkdir(parents=True, exist_ok=True)

        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = self.config.sheet_title

        if self.config.columns:
            worksheet.append(list(self.config.columns))

        for row in rows:
            if hasattr(row, "as_cells"):
                cells = list(row.as_cells())  # type: ignore[union-attr]
            else:
                cells = list(row)  # type: ignore[arg-type]
            worksheet.append(cells)

        workbook.save(destination)
        return destination


def export_report(issues: Iterable["ValidationIssue"], *, destination: Path) -> Path:
    """Export validation issues to an Excel report."""

    logger = ExcelLogger(
        ExcelLoggerConfig(columns=("code", "message"), filename=str(destination), sheet_title="Findings")
    )
    return logger.write_rows(issues)


def export_import_report(result: "ImportResult", *, destination: Path) -> Path:
    """Export total mismatches and field anomalies of an import."""

    rows: list[list[str]] = [["status", result.status.value, "", "", ""]]
    for name, mismatch in result.total_mismatches.items():
        rows.append(["total", name, *mismatch.as_cells()])
    for anomaly in result.anomalies:
        rows.append(["anomaly", anomaly, "", "", ""])
    if result.error:
        rows.append(["error", result.error, "", "", ""])

    logger = ExcelLogger(
        ExcelLoggerConfig(
            columns=("kind", "subject", "declared", "calculated", "diff"),
            filename=str(destination),
            sheet_title="Import",
        )
    )
    return logger.write_rows(rows)


__all__ = [
    "ExcelLogger",
    "ExcelLoggerConfig",
    "LOG_FORMAT",
    "RowLike",
    "configure_logging",
    "export_import_report",
    "export_report",
]

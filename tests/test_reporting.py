from __future__ import annotations

import io
import logging

import pytest
from openpyxl import load_workbook

from ublinvoice import export_invoice, import_invoice
from ublinvoice.logging import (
    ExcelLogger,
    ExcelLoggerConfig,
    configure_logging,
    export_import_report,
    export_report,
)
from ublinvoice.rules import Validator


@pytest.fixture
def package_logger():
    logger = logging.getLogger("ublinvoice")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
    logging.captureWarnings(False)


def test_export_report_writes_findings(tmp_path, make_invoice):
    invoice = make_invoice("peppol")
    issues = Validator("peppol").issues(invoice)
    excel_path = tmp_path / "reports" / "findings.xlsx"

    written = export_report(issues, destination=excel_path)

    assert written == excel_path
    workbook = load_workbook(excel_path)
    rows = list(workbook["Findings"].iter_rows(values_only=True))
    assert rows[0] == ("code", "message")
    assert rows[1][0] == "PEPPOL-EN16931-R003"
    assert len(rows) == 2


def test_export_import_report_lists_mismatches(tmp_path, make_invoice):
    document = export_invoice(make_invoice()).replace(
        b">1210.00</cbc:PayableAmount>", b">1300.00</cbc:PayableAmount>"
    )
    result = import_invoice(document, strict=False)
    excel_path = tmp_path / "import.xlsx"

    export_import_report(result, destination=excel_path)

    rows = list(load_workbook(excel_path)["Import"].iter_rows(values_only=True))
    assert rows[0] == ("kind", "subject", "declared", "calculated", "diff")
    assert rows[1][:2] == ("status", "ok_with_warnings")
    assert rows[2] == ("total", "payable_amount", "1300.00", "1210.00", "90.00")
    assert len(rows) == 3


def test_export_import_report_records_failures(tmp_path):
    result = import_invoice(b"<Invoice")
    excel_path = tmp_path / "failed.xlsx"

    export_import_report(result, destination=excel_path)

    rows = list(load_workbook(excel_path)["Import"].iter_rows(values_only=True))
    assert rows[1][:2] == ("status", "failed")
    assert rows[2][0] == "error"
    assert "not well-formed" in rows[2][1]


def test_excel_logger_accepts_plain_rows(tmp_path):
    config = ExcelLoggerConfig(columns=("a", "b"), filename=str(tmp_path / "plain.xlsx"))

    path = ExcelLogger(config).write_rows([["1", "2"], ("3", "4")])

    rows = list(load_workbook(path)["Log"].iter_rows(values_only=True))
    assert rows == [("a", "b"), ("1", "2"), ("3", "4")]


def test_configure_logging_adds_a_single_handler(package_logger):
    stream = io.StringIO()

    configure_logging(verbose=True, stream=stream)
    configure_logging(verbose=True, stream=stream)

    assert len(package_logger.handlers) == 1
    assert package_logger.level == logging.DEBUG
    logging.getLogger("ublinvoice.codec.importer").info("hello from the importer")
    assert "INFO [ublinvoice.codec.importer] hello from the importer" in stream.getvalue()

    configure_logging()
    assert package_logger.level == logging.INFO

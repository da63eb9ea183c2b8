"""
Tests for the Excel and PDF exports.
"""

import datetime
from io import BytesIO

import numpy as np
import pytest
from openpyxl import load_workbook

from validation_engine.engine import run_workbook
from validation_engine.exporter import build_pdf_bytes, export_workbook
from validation_engine.report import build_report
from validation_engine.rules import dictionary_from_rules, make_rule


@pytest.fixture
def sheets(e2e_rows):
    return [
        ("Customers", e2e_rows),
        ("Numbers", [["n", "when"], [3, datetime.datetime(2024, 1, 2)], [np.int64(7), None]]),
    ]


@pytest.fixture
def report(sheets, e2e_dictionary):
    return build_report(run_workbook(sheets, e2e_dictionary), file_name="book.xlsx")


def _load(data):
    return load_workbook(BytesIO(data))


class TestExportWorkbook:

    def test_summary_sheet_is_appended_last(self, sheets, report):
        wb = _load(export_workbook(sheets, report))
        assert wb.sheetnames == ["Customers", "Numbers", "Validation Summary"]

    def test_original_values_are_preserved(self, sheets, report):
        wb = _load(export_workbook(sheets, report))
        customers = wb["Customers"]
        assert [c.value for c in customers[1]] == ["id", "email"]
        assert customers["B2"].value == "a@x.com"

        numbers = wb["Numbers"]
        assert numbers["A2"].value == 3
        assert numbers["B2"].value == datetime.datetime(2024, 1, 2)
        assert numbers["A3"].value == 7
        assert numbers["B3"].value is None

    def test_summary_content_matches_report(self, sheets, report):
        ws = _load(export_workbook(sheets, report))["Validation Summary"]
        rows = report.to_rows()
        assert ws["A1"].value == "Data Quality Summary Report"
        for r, row in enumerate(rows, 1):
            for c, val in enumerate(row, 1):
                assert ws.cell(row=r, column=c).value == val

    def test_status_cell_is_coloured(self, sheets, report):
        ws = _load(export_workbook(sheets, report))["Validation Summary"]
        assert ws["A12"].value == "Status:"
        assert ws["B12"].fill.start_color.rgb.endswith("FFC7CE")

    def test_sheet_name_collision(self, report):
        sheets = [("Validation Summary", [["a"], ["1"]])]
        wb = _load(export_workbook(sheets, report))
        assert wb.sheetnames == ["Validation Summary", "Validation Summary (2)"]
        assert wb["Validation Summary"]["A2"].value == "1"


class TestBuildPdf:

    def test_pdf_bytes(self, report):
        data = build_pdf_bytes(report)
        assert data.startswith(b"%PDF")
        assert len(data) > 1000

    def test_pdf_without_issues(self):
        clean = build_report(run_workbook([("S", [["a"], ["1"]])]), file_name="clean.csv")
        assert build_pdf_bytes(clean).startswith(b"%PDF")


class TestCellContent:

    @pytest.fixture
    def formula_like(self):
        sheets = [("Calc", [["name", "calc"], ["a", "=1+1"], ["b", "-x"]])]
        dictionary = dictionary_from_rules([make_rule("calc", "REGEX", r"^\d+$")])
        return sheets, build_report(run_workbook(sheets, dictionary))

    def test_equals_prefixed_text_stays_text_in_original_sheet(self, formula_like):
        sheets, report = formula_like
        cell = _load(export_workbook(sheets, report))["Calc"]["B2"]
        assert cell.data_type == "s"
        assert cell.value == "=1+1"

    def test_summary_sheet_holds_no_formulas(self, formula_like):
        sheets, report = formula_like
        ws = _load(export_workbook(sheets, report))["Validation Summary"]
        cells = [c for row in ws.iter_rows() for c in row if c.value is not None]
        assert "=1+1" in [c.value for c in cells]
        assert all(c.data_type != "f" for c in cells)

    def test_illegal_characters_are_stripped(self, caplog):
        sheets = [("S", [["name"], ["a\x07b"], ["a\x07b"]])]
        report = build_report(run_workbook(sheets))
        wb = _load(export_workbook(sheets, report))
        assert wb["S"]["A2"].value == "ab"
        assert "stripped illegal characters from 2 cell(s)" in caplog.text
        assert build_pdf_bytes(report).startswith(b"%PDF")

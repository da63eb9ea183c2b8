"""
Tests for upload decoding.
"""

import datetime
import json

import pytest
from openpyxl import Workbook

from validation_engine.config import RuleType
from validation_engine.exceptions import DictionaryFormatError
from validation_engine.reader import load_dictionary, read_workbook


class TestReadWorkbook:

    def test_csv_is_one_sheet_of_strings(self, tmp_path):
        path = tmp_path / "people.csv"
        path.write_text("id,email\n1,a@x.com\n2,\n", encoding="utf-8")
        assert read_workbook(path) == [("people", [["id", "email"], ["1", "a@x.com"], ["2", ""]])]

    def test_xlsx_keeps_sheet_order_and_types(self, tmp_path):
        wb = Workbook()
        ws = wb.active
        ws.title = "First"
        ws.append(["n", "when"])
        ws.append([5, datetime.datetime(2024, 3, 1)])
        wb.create_sheet("Second").append(["x"])
        path = tmp_path / "book.xlsx"
        wb.save(path)

        sheets = read_workbook(path)
        assert [name for name, _ in sheets] == ["First", "Second"]
        rows = sheets[0][1]
        assert rows == [["n", "when"], [5, datetime.datetime(2024, 3, 1)]]
        assert sheets[1][1] == [["x"]]

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ValueError, match="Unsupported format"):
            read_workbook(path)


class TestLoadDictionary:

    def test_rule_list(self, tmp_path, wire_records):
        path = tmp_path / "people_dd.json"
        path.write_text(json.dumps(wire_records), encoding="utf-8")
        dictionary = load_dictionary(path)
        assert dictionary.name == "people_dd"
        assert len(dictionary.rules) == 5

    def test_stored_document_with_encoded_rules(self, tmp_path, wire_records):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"name": "People", "rules_json": json.dumps(wire_records)}))
        dictionary = load_dictionary(path)
        assert dictionary.name == "People"
        assert dictionary.rules_for("score")[0].type is RuleType.NUMERIC_RANGE

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{")
        with pytest.raises(DictionaryFormatError):
            load_dictionary(path)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "rules.csv"
        path.write_text("a,b")
        with pytest.raises(ValueError):
            load_dictionary(path)

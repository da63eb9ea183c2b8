"""
Tests for the dataset adapter.
"""

import datetime

import numpy as np
import pytest

from validation_engine.dataset import build_dataset, cell_text, is_blank
from validation_engine.exceptions import InvalidDatasetError


class TestCellHelpers:

    @pytest.mark.parametrize("value", [None, "", "   ", "\t", float("nan"), np.nan])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, 0.0, "0", "x", False, datetime.date(2024, 1, 1)])
    def test_not_blank(self, value):
        assert not is_blank(value)

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (5.0, "5"),
        (5.5, "5.5"),
        (12, "12"),
        (True, "TRUE"),
        (" a ", " a "),
        (datetime.datetime(2024, 1, 2), "2024-01-02"),
        (datetime.datetime(2024, 1, 2, 10, 30), "2024-01-02 10:30:00"),
    ])
    def test_cell_text(self, value, expected):
        assert cell_text(value) == expected


class TestBuildDataset:

    def test_header_and_rows(self, e2e_dataset):
        assert e2e_dataset.header == ["id", "email"]
        assert e2e_dataset.row_count == 3
        assert not e2e_dataset.truncated
        assert e2e_dataset.column_index("email") == 1

    def test_leading_blank_rows_are_skipped(self):
        ds = build_dataset("S", [[None, None], ["", " "], [" id ", 7], ["1", "x"]])
        assert ds.header == ["id", "7"]
        assert ds.rows == [["1", "x"]]
        assert ds.header_row_offset == 2

    def test_rows_are_padded_to_common_width(self):
        ds = build_dataset("S", [["a", "b"], ["1"], ["1", "2", "3"]])
        assert ds.header == ["a", "b", ""]
        assert ds.rows == [["1", None, None], ["1", "2", "3"]]

    def test_cells_are_not_coerced(self):
        when = datetime.datetime(2024, 1, 1)
        ds = build_dataset("S", [["n", "d"], [3, when]])
        assert ds.rows[0] == [3, when]

    def test_truncation(self, caplog):
        rows = [["id"]] + [[str(i)] for i in range(12)]
        ds = build_dataset("Big", rows, max_rows=10)
        assert ds.truncated
        assert ds.row_count == 10
        assert ds.source_row_count == 12
        assert "Processing only the first 10 rows" in caplog.text

    def test_exactly_max_rows_is_not_truncated(self):
        rows = [["id"]] + [[str(i)] for i in range(10)]
        assert not build_dataset("S", rows, max_rows=10).truncated

    def test_blank_sheet_is_empty(self):
        assert build_dataset("S", []).is_empty
        assert build_dataset("S", [[None], [""]]).is_empty

    def test_header_only_sheet(self):
        ds = build_dataset("S", [["a", "b"]])
        assert not ds.is_empty
        assert ds.row_count == 0

    def test_column_series(self, e2e_dataset):
        series = e2e_dataset.column(1)
        assert list(series) == ["a@x.com", "", "a@x.com"]
        assert list(series.index) == [0, 1, 2]

    def test_to_frame_disambiguates_headers(self):
        frame = build_dataset("S", [["a", "a", None], [1, 2, 3]]).to_frame()
        assert list(frame.columns) == ["a", "a (2)", "Column 3"]

    @pytest.mark.parametrize("rows", ["abc", None, {"a": 1}, [["ok"], "row"]])
    def test_structural_errors(self, rows):
        with pytest.raises(InvalidDatasetError):
            build_dataset("S", rows)

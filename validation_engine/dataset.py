"""
validation_engine/dataset.py
============================
Normalises a decoded sheet (array of rows, header somewhere near the top)
into the rectangular ``Dataset`` the executor and duplicate detector use.

Cells are never coerced: strings, numbers, dates and ``None`` pass through as
the reader produced them. Rule code does its own coercion through
``cell_text`` / ``is_blank``.
"""
from __future__ import annotations

import datetime
import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

import pandas as pd

from .config import AppConfig
from .exceptions import InvalidDatasetError

logger = logging.getLogger(__name__)

Cell = Union[str, int, float, datetime.datetime, datetime.date, None]


def is_blank(value: Any) -> bool:
    """None, NaN, or a string that trims to empty."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def cell_text(value: Any) -> str:
    """String form of a cell as a spreadsheet would show it (untrimmed).

    Integral floats drop the trailing ``.0`` so ``5.0`` and ``"5"`` compare
    equal in allowed-value and uniqueness checks.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, datetime.datetime) and value.time() == datetime.time(0):
        return value.date().isoformat()
    return str(value)


@dataclass
class Dataset:
    sheet_name: str
    header: List[str]
    rows: List[List[Cell]]
    truncated: bool = False
    source_row_count: int = 0
    header_row_offset: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.header and not self.rows

    def column_index(self, name: str) -> Optional[int]:
        name = name.strip()
        for i, h in enumerate(self.header):
            if h == name:
                return i
        return None

    def column(self, index: int) -> pd.Series:
        """Cells of one column as an object Series indexed by data-row position."""
        return pd.Series([row[index] for row in self.rows], dtype=object)

    def to_frame(self) -> pd.DataFrame:
        """Preview frame; duplicate or blank headers get positional suffixes."""
        names: List[str] = []
        for i, h in enumerate(self.header):
            label = h or f"Column {i + 1}"
            names.append(label if label not in names else f"{label} ({i + 1})")
        width = len(self.header)
        return pd.DataFrame([row[:width] for row in self.rows], columns=names, dtype=object)


def _is_blank_row(row: Sequence[Any]) -> bool:
    return all(is_blank(v) for v in row)


def build_dataset(
    sheet_name: str,
    raw_rows: Sequence[Sequence[Any]],
    max_rows: int = AppConfig.MAX_ROWS,
) -> Dataset:
    """
    Turn raw sheet rows into a Dataset.

    * Leading fully-blank rows are skipped; the first non-blank row is the header.
    * Header cells become trimmed strings (``None`` → ``""``).
    * Data rows are right-padded with ``None`` to one common width.
    * Rows beyond ``max_rows`` are dropped and ``truncated`` is set.

    Raises
    ------
    InvalidDatasetError
        When ``raw_rows`` is not a sequence of row sequences.
    """
    if isinstance(raw_rows, (str, bytes)) or not isinstance(raw_rows, (list, tuple)):
        raise InvalidDatasetError(
            f"Sheet '{sheet_name}' rows must be a list of rows, got {type(raw_rows).__name__}"
        )
    for i, row in enumerate(raw_rows):
        if isinstance(row, (str, bytes)) or not isinstance(row, (list, tuple)):
            raise InvalidDatasetError(
                f"Sheet '{sheet_name}' row {i + 1} is not a list of cells"
            )

    offset = 0
    while offset < len(raw_rows) and _is_blank_row(raw_rows[offset]):
        offset += 1
    if offset == len(raw_rows):
        return Dataset(sheet_name=sheet_name, header=[], rows=[], header_row_offset=offset)

    header = ["" if v is None else cell_text(v).strip() for v in raw_rows[offset]]
    data = [list(r) for r in raw_rows[offset + 1:]]
    source_count = len(data)

    truncated = source_count > max_rows
    if truncated:
        logger.warning(
            "Sheet '%s' has %d data rows. Processing only the first %d rows.",
            sheet_name, source_count, max_rows,
        )
        data = data[:max_rows]

    width = max([len(header)] + [len(r) for r in data])
    header += [""] * (width - len(header))
    for r in data:
        if len(r) < width:
            r.extend([None] * (width - len(r)))

    return Dataset(
        sheet_name=sheet_name,
        header=header,
        rows=data,
        truncated=truncated,
        source_row_count=source_count,
        header_row_offset=offset,
    )

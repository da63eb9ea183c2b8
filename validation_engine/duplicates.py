"""
validation_engine/duplicates.py
===============================
Whole-row exact duplicate detection, independent of any dictionary rule.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

import pandas as pd

from .config import AppConfig
from .dataset import Dataset, cell_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateRecord:
    sheet: str
    duplicate_row_index: int     # 0-based data row
    first_seen_row_index: int

    @property
    def duplicate_row_number(self) -> int:
        """Spreadsheet row (header row = 1)."""
        return self.duplicate_row_index + 2

    @property
    def first_seen_row_number(self) -> int:
        return self.first_seen_row_index + 2


def row_fingerprint(row: Sequence[Any], separator: str = AppConfig.ROW_FINGERPRINT_SEPARATOR) -> str:
    """Trimmed string form of every cell, joined in column order."""
    return separator.join(cell_text(v).strip() for v in row)


def find_duplicates(dataset: Dataset) -> List[DuplicateRecord]:
    """
    Flag every row whose fingerprint was already seen earlier in the sheet.

    Each repeat yields one record pointing at the first occurrence, so three
    identical rows give two records, both pointing at the first.
    """
    if not dataset.rows:
        return []
    fingerprints = pd.Series([row_fingerprint(r) for r in dataset.rows])
    first_seen = {fp: idx for idx, fp in fingerprints.drop_duplicates(keep="first").items()}
    repeats = fingerprints[fingerprints.duplicated(keep="first")]

    records = [
        DuplicateRecord(dataset.sheet_name, int(idx), int(first_seen[fp]))
        for idx, fp in repeats.items()
    ]
    logger.info("Sheet '%s': %d duplicate row(s) in %d rows",
                dataset.sheet_name, len(records), dataset.row_count)
    return records

"""
validation_engine/engine.py
===========================
Runs the adapter, executor and duplicate detector over every sheet of a
workbook and exposes the workbook-wide inputs of ``aggregate``.

Sheets are independent; nothing is shared between them.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .aggregation import EMPTY_OVERRIDES, AggregateStats, OverrideSet, aggregate
from .config import AppConfig
from .dataset import Dataset, build_dataset
from .duplicates import DuplicateRecord, find_duplicates
from .executor import Finding, utc_today, validate
from .rules import DataDictionary

logger = logging.getLogger(__name__)

RawSheet = Tuple[str, Sequence[Sequence[Any]]]


@dataclass
class SheetResult:
    dataset: Dataset
    findings: List[Finding] = field(default_factory=list)
    duplicates: List[DuplicateRecord] = field(default_factory=list)
    total_cells_checked: int = 0
    validated_columns: List[str] = field(default_factory=list)

    @property
    def sheet_name(self) -> str:
        return self.dataset.sheet_name

    @property
    def total_rows_checked(self) -> int:
        return self.dataset.row_count

    def findings_for(self, column: str) -> List[Finding]:
        return [f for f in self.findings if f.column == column]

    def issue_columns(self) -> List[str]:
        """Columns with findings, in sheet header order."""
        with_issues = {f.column for f in self.findings}
        return [c for c in self.validated_columns if c in with_issues]


@dataclass
class WorkbookResult:
    sheets: List[SheetResult] = field(default_factory=list)
    run_date: Optional[datetime.date] = None

    @property
    def findings(self) -> List[Finding]:
        return [f for s in self.sheets for f in s.findings]

    @property
    def duplicates(self) -> List[DuplicateRecord]:
        return [d for s in self.sheets for d in s.duplicates]

    @property
    def total_cells_checked(self) -> int:
        return sum(s.total_cells_checked for s in self.sheets)

    @property
    def total_rows_checked(self) -> int:
        return sum(s.total_rows_checked for s in self.sheets)

    @property
    def truncated_sheets(self) -> List[SheetResult]:
        return [s for s in self.sheets if s.dataset.truncated]

    def sheet(self, name: str) -> Optional[SheetResult]:
        for s in self.sheets:
            if s.sheet_name == name:
                return s
        return None

    def stats(self, override_set: OverrideSet = EMPTY_OVERRIDES) -> AggregateStats:
        """Fresh aggregate for the given overrides."""
        return aggregate(
            self.findings,
            self.duplicates,
            override_set,
            self.total_cells_checked,
            self.total_rows_checked,
        )

    def issue_counts(self) -> Dict[Tuple[str, str], int]:
        counts: Dict[Tuple[str, str], int] = {}
        for f in self.findings:
            counts[(f.sheet, f.column)] = counts.get((f.sheet, f.column), 0) + 1
        return counts


def run_sheet(
    dataset: Dataset,
    dictionary: Optional[DataDictionary],
    today: Optional[datetime.date] = None,
) -> SheetResult:
    validation = validate(dataset, dictionary, today=today)
    return SheetResult(
        dataset=dataset,
        findings=validation.findings,
        duplicates=find_duplicates(dataset),
        total_cells_checked=validation.total_cells_checked,
        validated_columns=validation.validated_columns,
    )


def run_workbook(
    sheets: Sequence[RawSheet],
    dictionary: Optional[DataDictionary] = None,
    today: Optional[datetime.date] = None,
    max_rows: int = AppConfig.MAX_ROWS,
) -> WorkbookResult:
    """
    Validate every non-empty sheet of a workbook.

    Duplicate detection runs on every sheet; dictionary rules run only when a
    dictionary is supplied.
    """
    today = today or utc_today()
    result = WorkbookResult(run_date=today)
    for name, raw_rows in sheets:
        dataset = build_dataset(name, raw_rows, max_rows=max_rows)
        if dataset.is_empty:
            logger.info("Skipping empty sheet '%s'", name)
            continue
        result.sheets.append(run_sheet(dataset, dictionary, today=today))

    logger.info(
        "Workbook run: %d sheet(s), %d finding(s), %d duplicate row(s), %d truncated",
        len(result.sheets), len(result.findings), len(result.duplicates),
        len(result.truncated_sheets),
    )
    return result

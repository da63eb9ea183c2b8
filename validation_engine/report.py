"""
validation_engine/report.py
===========================
Summary report payload shared by the on-screen view, the PDF and the
exported "Validation Summary" worksheet.

Worksheet row layout (``SummaryReport.to_rows``)
────────────────────────────────────────────────
  Data Quality Summary Report
  <blank>
  Overall Statistics
  File / cells / rows / custom issues / duplicates / total / issue rate /
  clean rate / status
  <blank>
  Detailed Custom Issues by Column
  Sheet | Column | Rule Type | Failure Message | Value | Row # | Overridden
  one line per finding, or one "ALL ISSUES OVERRIDDEN" line per overridden column
  <blank>
  Duplicate Row Details
  Sheet | Duplicate Row # | First Seen At Row # | Sample Data (First 3 Cells)
  one line per duplicate row
"""
from __future__ import annotations

import datetime
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .aggregation import EMPTY_OVERRIDES, AggregateStats, OverrideSet
from .config import AppConfig
from .dataset import cell_text
from .engine import WorkbookResult

ISSUE_HEADERS = ["Sheet", "Column", "Rule Type", "Failure Message", "Value", "Row #", "Overridden"]
DUPLICATE_HEADERS = ["Sheet", "Duplicate Row #", "First Seen At Row #", "Sample Data (First 3 Cells)"]

NO_ISSUES_LINE = "No custom validation issues found or overridden to export."
NO_DUPLICATES_LINE = "No duplicate rows found to export."


@dataclass(frozen=True)
class IssueLine:
    sheet: str
    column: str
    rule_type: str
    message: str
    value: str
    row: Union[int, str]
    overridden: bool = False

    def as_row(self) -> List[Any]:
        return [self.sheet, self.column, self.rule_type, self.message,
                self.value, self.row, "Yes" if self.overridden else "No"]


@dataclass(frozen=True)
class DuplicateLine:
    sheet: str
    duplicate_row: int
    first_seen_row: int
    sample: str

    def as_row(self) -> List[Any]:
        return [self.sheet, self.duplicate_row, self.first_seen_row, self.sample]


@dataclass
class SummaryReport:
    file_name: str
    stats: AggregateStats
    issues: List[IssueLine] = field(default_factory=list)
    duplicates: List[DuplicateLine] = field(default_factory=list)
    truncated_sheets: List[str] = field(default_factory=list)
    generated_on: Optional[datetime.date] = None

    @property
    def status_text(self) -> str:
        return f"{self.stats.pass_fail} (Threshold: {self.stats.threshold:g}% clean)"

    def statistics(self) -> List[List[Any]]:
        """Label/value pairs of the overall statistics block."""
        s = self.stats
        return [
            ["File:", self.file_name],
            ["Total Cells Processed (for custom rules):", s.total_cells_checked],
            ["Total Rows Processed (for duplicates):", s.total_rows_checked_for_duplicates],
            ["Total Custom Validation Issues (effective):", s.effective_custom_issue_count],
            ["Total Duplicate Rows Found:", s.duplicate_row_count],
            ["Total Effective Issues (Custom + Duplicates):", s.total_effective_issues],
            ["Issue Rate (approximate):", f"{s.issue_rate_percent:.2f}%"],
            ["Clean Rate (approximate):", f"{s.clean_rate_percent:.2f}%"],
            ["Status:", self.status_text],
        ]

    def to_rows(self) -> List[List[Any]]:
        rows: List[List[Any]] = [[AppConfig.REPORT_TITLE], [], ["Overall Statistics"]]
        rows.extend(self.statistics())
        rows.append([])

        rows.append(["Detailed Custom Issues by Column"])
        rows.append(list(ISSUE_HEADERS))
        if self.issues:
            rows.extend(line.as_row() for line in self.issues)
        else:
            rows.append([NO_ISSUES_LINE])
        rows.append([])

        rows.append(["Duplicate Row Details"])
        rows.append(list(DUPLICATE_HEADERS))
        if self.duplicates:
            rows.extend(line.as_row() for line in self.duplicates)
        else:
            rows.append([NO_DUPLICATES_LINE])
        return rows

    def issues_frame(self) -> pd.DataFrame:
        return pd.DataFrame([line.as_row() for line in self.issues], columns=ISSUE_HEADERS)

    def duplicates_frame(self) -> pd.DataFrame:
        return pd.DataFrame([line.as_row() for line in self.duplicates], columns=DUPLICATE_HEADERS)


def display_value(value: Any) -> str:
    text = cell_text(value)
    return AppConfig.BLANK_PLACEHOLDER if text.strip() == "" else text


def _sample(row: List[Any]) -> str:
    cells = ", ".join(cell_text(v) for v in row[:AppConfig.SAMPLE_CELLS])
    return f"{cells}..."


def build_report(
    result: WorkbookResult,
    override_set: OverrideSet = EMPTY_OVERRIDES,
    file_name: str = "",
) -> SummaryReport:
    """Assemble the report for one workbook run under the given overrides."""
    issues: List[IssueLine] = []
    duplicates: List[DuplicateLine] = []

    for sheet in result.sheets:
        name = sheet.sheet_name
        # row numbers as they appear in the exported original sheet
        offset = sheet.dataset.header_row_offset
        by_column: Dict[str, list] = {}
        for f in sheet.findings:
            by_column.setdefault(f.column, []).append(f)

        for column in sheet.validated_columns:
            if (name, column) in override_set:
                issues.append(IssueLine(name, column, "N/A", AppConfig.OVERRIDDEN_LINE,
                                        "N/A", "N/A", overridden=True))
                continue
            for f in by_column.get(column, []):
                issues.append(IssueLine(name, column, f.rule_type, f.message,
                                        display_value(f.value), f.row + offset))

        for dup in sheet.duplicates:
            duplicates.append(DuplicateLine(
                name, dup.duplicate_row_number + offset, dup.first_seen_row_number + offset,
                _sample(sheet.dataset.rows[dup.duplicate_row_index]),
            ))

    return SummaryReport(
        file_name=file_name,
        stats=result.stats(override_set),
        issues=issues,
        duplicates=duplicates,
        truncated_sheets=[s.sheet_name for s in result.truncated_sheets],
        generated_on=result.run_date,
    )


def column_overview(result: WorkbookResult, override_set: OverrideSet = EMPTY_OVERRIDES) -> pd.DataFrame:
    """One row per (sheet, header column): custom issue count and override flag."""
    records = []
    for sheet in result.sheets:
        counts: Dict[str, int] = {}
        for f in sheet.findings:
            counts[f.column] = counts.get(f.column, 0) + 1
        for column in dict.fromkeys(h for h in sheet.dataset.header if h):
            records.append({
                "Sheet": sheet.sheet_name,
                "Column": column,
                "Custom Issues": counts.get(column, 0),
                "Overridden": (sheet.sheet_name, column) in override_set,
            })
    return pd.DataFrame(records, columns=["Sheet", "Column", "Custom Issues", "Overridden"])


def export_file_name(file_name: Optional[str], today: Optional[datetime.date] = None) -> str:
    """``<base>_Summary_<YYYY-MM-DD>.xlsx``"""
    today = today or datetime.date.today()
    base = re.sub(r"\.(xlsx|xlsm|xls|csv)$", "", file_name or "", flags=re.IGNORECASE)
    return f"{base or 'Validation_Report'}_Summary_{today.isoformat()}.xlsx"

"""
validation_engine/aggregation.py
================================
Override-aware aggregate statistics.

``aggregate`` is a pure function of the findings, duplicates, override set and
the two coverage counters. It is recomputed from scratch on every call; there
is no incremental patching of counts when an override is toggled.

Overrides only ever suppress per-column custom rule findings. Duplicate rows
always count.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Sequence, Set, Tuple

from .config import AppConfig
from .duplicates import DuplicateRecord
from .executor import Finding

OverrideKey = Tuple[str, str]
OverrideSet = FrozenSet[OverrideKey]

EMPTY_OVERRIDES: OverrideSet = frozenset()


def make_override_set(pairs: Iterable[OverrideKey] = ()) -> OverrideSet:
    return frozenset((str(sheet), str(column).strip()) for sheet, column in pairs)


def toggle_override(overrides: OverrideSet, sheet: str, column: str) -> OverrideSet:
    """Return a new set with ``(sheet, column)`` flipped."""
    key = (sheet, column.strip())
    if key in overrides:
        return overrides - {key}
    return overrides | {key}


def set_override(overrides: OverrideSet, sheet: str, column: str, enabled: bool) -> OverrideSet:
    key = (sheet, column.strip())
    return overrides | {key} if enabled else overrides - {key}


def overridden_columns(overrides: OverrideSet, sheet: str) -> Set[str]:
    return {column for s, column in overrides if s == sheet}


def is_overridden(finding: Finding, overrides: OverrideSet) -> bool:
    return (finding.sheet, finding.column) in overrides


@dataclass(frozen=True)
class AggregateStats:
    total_cells_checked: int
    total_rows_checked_for_duplicates: int
    effective_custom_issue_count: int
    duplicate_row_count: int
    issue_rate_percent: float
    clean_rate_percent: float
    pass_fail: str
    threshold: float = AppConfig.CLEAN_RATE_PASS_THRESHOLD

    @property
    def total_effective_issues(self) -> int:
        return self.effective_custom_issue_count + self.duplicate_row_count

    @property
    def passed(self) -> bool:
        return self.pass_fail == "Pass"


def aggregate(
    findings: Sequence[Finding],
    duplicates: Sequence[DuplicateRecord],
    override_set: OverrideSet,
    total_cells_checked: int,
    total_rows_checked: int,
    threshold: float = AppConfig.CLEAN_RATE_PASS_THRESHOLD,
) -> AggregateStats:
    """
    Issue rate (%) = (effective custom issues + duplicate rows) /
                     max(1, cells checked + rows checked) × 100

    Clean rate is ``100 - issue rate`` floored at 0; the run passes when the
    clean rate reaches ``threshold``.
    """
    effective = sum(1 for f in findings if not is_overridden(f, override_set))
    dup_count = len(duplicates)
    denominator = max(1, total_cells_checked + total_rows_checked)
    issue_rate = (effective + dup_count) * 100 / denominator
    clean_rate = max(0.0, 100 - issue_rate)
    return AggregateStats(
        total_cells_checked=total_cells_checked,
        total_rows_checked_for_duplicates=total_rows_checked,
        effective_custom_issue_count=effective,
        duplicate_row_count=dup_count,
        issue_rate_percent=issue_rate,
        clean_rate_percent=clean_rate,
        pass_fail="Pass" if clean_rate >= threshold else "Fail",
        threshold=threshold,
    )

"""
validation_engine/executor.py
=============================
Evaluates data dictionary rules against one sheet.

Each single-cell rule is evaluated column-wise as a boolean pandas mask
(True = valid). Blank cells are skipped by every rule except REQUIRED, so a
column with REQUIRED + REGEX reports a blank cell once. UNIQUE runs as a
second, whole-column pass after the single-cell rules of that column.

Nothing in here raises on data or rule content: a broken regex passes
everything, a parameterised rule saved without its parameter fails every
non-blank cell, an unknown rule type is inert.
"""
from __future__ import annotations

import datetime
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import AppConfig, RuleType
from .dataset import Dataset, cell_text, is_blank
from .rules import ColumnRule, DataDictionary

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_RANGE_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)\s*-\s*([+-]?\d+(?:\.\d+)?)\s*$")
_UNIX_EPOCH = pd.Timestamp("1970-01-01")


@dataclass(frozen=True)
class Finding:
    sheet: str
    column: str
    row: int                # 1-based, header row = 1
    rule_type: str
    value: Any
    message: str
    first_seen_row: Optional[int] = None

    @property
    def row_index(self) -> int:
        """0-based data-row index."""
        return self.row - 2


@dataclass
class SheetValidation:
    sheet: str
    findings: List[Finding] = field(default_factory=list)
    total_cells_checked: int = 0
    validated_columns: List[str] = field(default_factory=list)

    def findings_by_column(self) -> Dict[str, List[Finding]]:
        grouped: Dict[str, List[Finding]] = {}
        for f in self.findings:
            grouped.setdefault(f.column, []).append(f)
        return grouped


def utc_today() -> datetime.date:
    return datetime.datetime.now(datetime.timezone.utc).date()


def _row_number(index: int) -> int:
    return index + 2


# ═══════════════════════════════════════════════════════════════════════
#  CELL COERCION
# ═══════════════════════════════════════════════════════════════════════
def to_number(value: Any) -> float:
    """Finite float for numeric cells, NaN for anything else."""
    if isinstance(value, (bool, np.bool_)):
        return np.nan
    if isinstance(value, (int, float, np.integer, np.floating)):
        num = float(value)
    elif isinstance(value, str) and _NUMBER_RE.match(value.strip()):
        num = float(value.strip())
    else:
        return np.nan
    return num if math.isfinite(num) else np.nan


def to_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse a DATE_PAST cell into a naive UTC timestamp.

    Numbers are spreadsheet serials: ``(serial - 25569)`` days after the Unix
    epoch, rounded to the millisecond.
    """
    if isinstance(value, (bool, np.bool_)):
        return None
    try:
        if isinstance(value, (datetime.datetime, datetime.date)):
            ts = pd.Timestamp(value)
        elif isinstance(value, (int, float, np.integer, np.floating)):
            if not math.isfinite(float(value)):
                return None
            millis = round((float(value) - AppConfig.EXCEL_EPOCH_OFFSET_DAYS) * 86400 * 1000)
            ts = _UNIX_EPOCH + pd.Timedelta(milliseconds=millis)
        elif isinstance(value, str) and value.strip():
            ts = pd.to_datetime(value.strip())
        else:
            return None
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is pd.NaT or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def parse_range(value: Optional[str]) -> Optional[Tuple[float, float]]:
    m = _RANGE_RE.match(value or "")
    if not m:
        return None
    return float(m.group(1)), float(m.group(2))


def parse_allowed_values(value: Optional[str]) -> List[str]:
    tokens = [t.strip().lower() for t in (value or "").split(",")]
    return [t for t in tokens if t]


# ═══════════════════════════════════════════════════════════════════════
#  SINGLE-CELL RULES  (True where the cell is valid)
# ═══════════════════════════════════════════════════════════════════════
def rule_required(series: pd.Series) -> pd.Series:
    return ~series.map(is_blank).astype(bool)


def rule_allowed_values(series: pd.Series, allowed: List[str]) -> pd.Series:
    allowed_lower = {v.strip().lower() for v in allowed}
    return series.map(lambda v: cell_text(v).strip().lower() in allowed_lower).astype(bool)


def rule_numeric_range(series: pd.Series, min_val: float, max_val: float) -> pd.Series:
    num = series.map(to_number).astype(float)
    # NaN (non-numeric) compares False on both sides
    return (num >= min_val) & (num <= max_val)


def rule_regex(series: pd.Series, pattern: "re.Pattern[str]") -> pd.Series:
    return series.map(lambda v: pattern.search(cell_text(v)) is not None).astype(bool)


def rule_date_past(series: pd.Series, today: datetime.date) -> pd.Series:
    cutoff = pd.Timestamp(today)

    def _before(v: Any) -> bool:
        ts = to_timestamp(v)
        return ts is not None and ts < cutoff

    return series.map(_before).astype(bool)


# ═══════════════════════════════════════════════════════════════════════
#  RULE DISPATCH
# ═══════════════════════════════════════════════════════════════════════
@dataclass
class _Check:
    valid: pd.Series
    message: Optional[str] = None   # replaces the rule message on every failure
    counted: bool = True


def _all(series: pd.Series, value: bool) -> pd.Series:
    return pd.Series(value, index=series.index, dtype=bool)


def _misconfigured(series: pd.Series, rule: ColumnRule, reason: str) -> _Check:
    logger.warning("Rule %s for column '%s' is misconfigured: %s", rule.raw_type, rule.column_name, reason)
    return _Check(
        _all(series, False),
        message=f"Rule {rule.raw_type} for column '{rule.column_name}' is misconfigured: {reason}",
    )


def _check_required(series, rule, today) -> _Check:
    return _Check(rule_required(series))


def _check_allowed_values(series, rule, today) -> _Check:
    allowed = parse_allowed_values(rule.value)
    if rule.is_misconfigured or not allowed:
        return _misconfigured(series, rule, "no allowed values configured")
    return _Check(rule_allowed_values(series, allowed))


def _check_numeric_range(series, rule, today) -> _Check:
    if rule.is_misconfigured:
        return _misconfigured(series, rule, "no range configured")
    bounds = parse_range(rule.value)
    if bounds is None:
        return _misconfigured(series, rule, f"range '{rule.value}' is not in 'min-max' form")
    return _Check(rule_numeric_range(series, *bounds))


def _check_regex(series, rule, today) -> _Check:
    if rule.is_misconfigured:
        return _misconfigured(series, rule, "no pattern configured")
    try:
        pattern = re.compile(rule.value)
    except re.error as exc:
        logger.warning("Invalid regex for column %s: %s (%s). Skipping rule.", rule.column_name, rule.value, exc)
        return _Check(_all(series, True))
    return _Check(rule_regex(series, pattern))


def _check_date_past(series, rule, today) -> _Check:
    return _Check(rule_date_past(series, today))


def _check_none(series, rule, today) -> _Check:
    return _Check(_all(series, True), counted=False)


def _check_unknown(series, rule, today) -> _Check:
    logger.warning("Unknown validation type: %s for column %s. Skipping.", rule.raw_type, rule.column_name)
    return _Check(_all(series, True))


CellCheck = Callable[[pd.Series, ColumnRule, datetime.date], _Check]

_CELL_CHECKS: Dict[RuleType, CellCheck] = {
    RuleType.REQUIRED: _check_required,
    RuleType.ALLOWED_VALUES: _check_allowed_values,
    RuleType.NUMERIC_RANGE: _check_numeric_range,
    RuleType.REGEX: _check_regex,
    RuleType.DATE_PAST: _check_date_past,
    RuleType.NONE: _check_none,
    RuleType.UNKNOWN: _check_unknown,
}

_missing = set(RuleType) - set(_CELL_CHECKS) - {RuleType.UNIQUE}
if _missing:
    raise RuntimeError(f"No cell check registered for: {sorted(t.value for t in _missing)}")


# ═══════════════════════════════════════════════════════════════════════
#  EXECUTION
# ═══════════════════════════════════════════════════════════════════════
def _run_cell_rule(
    sheet: str,
    series: pd.Series,
    blank: pd.Series,
    rule: ColumnRule,
    today: datetime.date,
) -> Tuple[int, List[Finding]]:
    check = _CELL_CHECKS[rule.type](series, rule, today)
    if rule.type is RuleType.REQUIRED:
        evaluated = _all(series, True)
    else:
        evaluated = ~blank
    fails = series.index[evaluated & ~check.valid]
    message = check.message or rule.message
    findings = [
        Finding(sheet, rule.column_name, _row_number(idx), rule.raw_type, series.loc[idx], message)
        for idx in fails
    ]
    counted = int(evaluated.sum()) if check.counted else 0
    return counted, findings


def _run_unique(
    sheet: str,
    series: pd.Series,
    blank: pd.Series,
    rule: ColumnRule,
    existing: List[Finding],
) -> Tuple[int, List[Finding]]:
    keys = series[~blank].map(lambda v: cell_text(v).strip().lower())
    first_seen = {key: idx for idx, key in keys.drop_duplicates(keep="first").items()}
    flagged = {(f.row, cell_text(f.value).strip().lower()) for f in existing}

    findings: List[Finding] = []
    for idx, key in keys[keys.duplicated(keep="first")].items():
        row = _row_number(idx)
        if (row, key) in flagged:
            continue
        flagged.add((row, key))
        findings.append(Finding(
            sheet, rule.column_name, row, RuleType.UNIQUE.value,
            series.loc[idx], rule.message, first_seen_row=_row_number(first_seen[key]),
        ))
    return len(keys), findings


def validate(
    dataset: Dataset,
    dictionary: Optional[DataDictionary],
    today: Optional[datetime.date] = None,
) -> SheetValidation:
    """
    Run every dictionary rule whose column matches a header of ``dataset``.

    ``today`` is the cut-off for DATE_PAST (defaults to the current UTC date).
    Columns with no matching rules, and rules with no matching column, are
    ignored.
    """
    result = SheetValidation(sheet=dataset.sheet_name)
    if dictionary is None or not dataset.header:
        return result
    today = today or utc_today()
    lookup = dictionary.rules_by_column()

    for col_idx, header in enumerate(dataset.header):
        rules = lookup.get(header) if header else None
        if not rules:
            continue
        series = dataset.column(col_idx)
        blank = series.map(is_blank).astype(bool)
        column_findings: List[Finding] = []
        if header not in result.validated_columns:
            result.validated_columns.append(header)

        for rule in rules:
            if rule.type is RuleType.UNIQUE:
                continue
            counted, found = _run_cell_rule(dataset.sheet_name, series, blank, rule, today)
            result.total_cells_checked += counted
            column_findings.extend(found)

        for rule in rules:
            if rule.type is not RuleType.UNIQUE:
                continue
            counted, found = _run_unique(dataset.sheet_name, series, blank, rule, column_findings)
            result.total_cells_checked += counted
            column_findings.extend(found)

        logger.debug("Sheet '%s' column '%s': %d rule(s), %d finding(s)",
                     dataset.sheet_name, header, len(rules), len(column_findings))
        result.findings.extend(column_findings)

    logger.info("Validated sheet '%s': %d cells checked, %d finding(s)",
                dataset.sheet_name, result.total_cells_checked, len(result.findings))
    return result

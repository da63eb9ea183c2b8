"""
validation_engine/exporter.py
=============================
Excel export (original sheets + appended "Validation Summary") and the
printable PDF rendering of the same report.
"""
from __future__ import annotations

import datetime
import logging
from io import BytesIO
from typing import Any, List, Sequence, Set

import numpy as np
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .config import AppConfig
from .engine import RawSheet
from .report import DUPLICATE_HEADERS, ISSUE_HEADERS, SummaryReport

logger = logging.getLogger(__name__)

_CLR_WHITE = "FFFFFF"
_CLR_ALT_ROW = "EBF3FB"
_CLR_LABEL_BG = "D6E4F0"
_MAX_SHEET_TITLE = 31


# ── Value sanitiser ───────────────────────────────────────────────────
def _safe_val(v: Any) -> Any:
    """numpy scalars to plain Python for openpyxl; everything else untouched."""
    if isinstance(v, np.integer):
        return int(v)
    if isinstance(v, np.floating):
        return float(v)
    if isinstance(v, np.bool_):
        return bool(v)
    return v


def _write_cell(ws, row: int, column: int, value: Any) -> bool:
    """
    Write one value as data, never as a formula.

    Characters XML cannot hold are stripped; returns True when that happened.
    """
    value = _safe_val(value)
    altered = False
    if isinstance(value, str):
        cleaned = ILLEGAL_CHARACTERS_RE.sub("", value)
        altered = cleaned != value
        value = cleaned
    cell = ws.cell(row=row, column=column, value=value)
    if isinstance(value, str) and value.startswith("="):
        cell.data_type = "s"
    return altered


def _unique_sheet_title(title: str, taken: Set[str]) -> str:
    candidate = title[:_MAX_SHEET_TITLE]
    n = 2
    while candidate.lower() in taken:
        suffix = f" ({n})"
        candidate = title[:_MAX_SHEET_TITLE - len(suffix)] + suffix
        n += 1
    return candidate


# ── Styling ───────────────────────────────────────────────────────────
def _apply_header_style(ws, row_num: int, fill_color: str = AppConfig.EXCEL_HEADER_COLOR) -> None:
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    fill = PatternFill(start_color=fill_color, end_color=fill_color, fill_type="solid")
    font = Font(bold=True, color=_CLR_WHITE, size=11, name="Arial")
    align = Alignment(horizontal="center", vertical="center", wrap_text=True)
    thin = Side(style="thin", color="BDC3C7")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row_num]:
        if cell.value is not None:
            cell.fill = fill
            cell.font = font
            cell.alignment = align
            cell.border = border


def _apply_data_style(ws, start_row: int, end_row: int, num_cols: int) -> None:
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    thin = Side(style="thin", color="BDC3C7")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for r in range(start_row, end_row + 1):
        bg = _CLR_ALT_ROW if r % 2 == 0 else _CLR_WHITE
        fill = PatternFill(start_color=bg, end_color=bg, fill_type="solid")
        for c in range(1, num_cols + 1):
            cell = ws.cell(row=r, column=c)
            cell.fill = fill
            cell.font = Font(size=10, name="Arial")
            cell.alignment = Alignment(vertical="center", wrap_text=True)
            cell.border = border


def _style_section_title(ws, row_num: int, size: int = 12) -> None:
    from openpyxl.styles import Font
    ws.cell(row=row_num, column=1).font = Font(bold=True, size=size, color=AppConfig.EXCEL_SECTION_COLOR, name="Arial")


def _auto_col_width(ws, min_w: int = 12, max_w: int = 60) -> None:
    from openpyxl.utils import get_column_letter
    widths = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            widths[cell.column] = max(widths.get(cell.column, 0), len(str(cell.value)))
    for col, width in widths.items():
        ws.column_dimensions[get_column_letter(col)].width = min(max(width + 3, min_w), max_w)


def _style_summary_sheet(ws, report: SummaryReport, rows: List[List[Any]]) -> None:
    from openpyxl.styles import Font, PatternFill

    ws.cell(row=1, column=1).font = Font(bold=True, size=16, color=AppConfig.EXCEL_HEADER_COLOR, name="Arial")

    label_fill = PatternFill(start_color=_CLR_LABEL_BG, end_color=_CLR_LABEL_BG, fill_type="solid")
    stats_start = 4
    stats_end = stats_start + len(report.statistics()) - 1
    for r in range(stats_start, stats_end + 1):
        ws.cell(row=r, column=1).fill = label_fill
        ws.cell(row=r, column=1).font = Font(bold=True, size=10, name="Arial")

    status = ws.cell(row=stats_end, column=2)
    bg, fg = (
        (AppConfig.EXCEL_PASS_COLOR, AppConfig.EXCEL_PASS_FONT) if report.stats.passed
        else (AppConfig.EXCEL_FAIL_COLOR, AppConfig.EXCEL_FAIL_FONT)
    )
    status.fill = PatternFill(start_color=bg, end_color=bg, fill_type="solid")
    status.font = Font(bold=True, color=fg, size=10, name="Arial")

    for i, row in enumerate(rows, 1):
        if row in (["Overall Statistics"], ["Detailed Custom Issues by Column"], ["Duplicate Row Details"]):
            _style_section_title(ws, i)
        elif row == ISSUE_HEADERS or row == DUPLICATE_HEADERS:
            _apply_header_style(ws, i)
            body_end = i
            while body_end < len(rows) and rows[body_end]:
                body_end += 1
            if body_end > i:
                _apply_data_style(ws, i + 1, body_end, len(row))

    _auto_col_width(ws)
    ws.sheet_view.showGridLines = False


# ── Main workbook exporter ────────────────────────────────────────────
def export_workbook(sheets: Sequence[RawSheet], report: SummaryReport) -> bytes:
    """
    Original sheets, cell for cell and in order, then the summary sheet last.

    Empty cells stay empty and no value is converted to text. Strings that
    start with "=" stay literal text.
    """
    from openpyxl import Workbook

    wb = Workbook()
    wb.remove(wb.active)
    taken: Set[str] = set()

    for name, raw_rows in sheets:
        title = _unique_sheet_title(str(name), taken)
        taken.add(title.lower())
        ws = wb.create_sheet(title)
        altered = 0
        for r, row in enumerate(raw_rows, 1):
            for c, val in enumerate(row, 1):
                if val is None:
                    continue
                altered += _write_cell(ws, r, c, val)
        if altered:
            logger.warning("Sheet '%s': stripped illegal characters from %d cell(s) on export", title, altered)

    rows = report.to_rows()
    summary_title = _unique_sheet_title(AppConfig.SUMMARY_SHEET_NAME, taken)
    ws = wb.create_sheet(summary_title)
    for r, row in enumerate(rows, 1):
        for c, val in enumerate(row, 1):
            _write_cell(ws, r, c, val)
    _style_summary_sheet(ws, report, rows)

    output = BytesIO()
    wb.save(output)
    logger.info("Exported %d original sheet(s) with '%s'", len(sheets), summary_title)
    return output.getvalue()


# ── PDF (print) ───────────────────────────────────────────────────────
_PDF_FONT = "Helvetica"
_PDF_FONT_BOLD = "Helvetica-Bold"
_NAVY = colors.HexColor("#1F3864")
_STEEL = colors.HexColor("#2E75B6")
_LIGHT = colors.HexColor("#EBF3FB")
_DARK = colors.HexColor("#1a1a2e")


def _get_styles():
    return {
        "Title": ParagraphStyle("VTitle", fontName=_PDF_FONT_BOLD, fontSize=20,
                                textColor=_NAVY, spaceAfter=10, alignment=TA_CENTER),
        "Heading1": ParagraphStyle("VH1", fontName=_PDF_FONT_BOLD, fontSize=14,
                                   textColor=_STEEL, spaceBefore=12, spaceAfter=6),
        "Normal": ParagraphStyle("VNormal", fontName=_PDF_FONT, fontSize=10,
                                 textColor=_DARK, spaceAfter=4),
        "Cell": ParagraphStyle("VCell", fontName=_PDF_FONT, fontSize=8,
                               textColor=_DARK, leading=10),
        "CellHdr": ParagraphStyle("VCellHdr", fontName=_PDF_FONT_BOLD, fontSize=8,
                                  textColor=colors.white, leading=10),
    }


def _header_table_style():
    return TableStyle([
        ("BACKGROUND",  (0, 0), (-1, 0),  _NAVY),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, _LIGHT]),
        ("GRID",        (0, 0), (-1, -1), 0.3, colors.HexColor("#BDC3C7")),
        ("VALIGN",      (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING",  (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ])


def _escape(value: Any) -> str:
    return ILLEGAL_CHARACTERS_RE.sub("", str(value)).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _table(headers: List[str], body: List[List[Any]], styles, col_widths=None) -> Table:
    data = [[Paragraph(_escape(h), styles["CellHdr"]) for h in headers]]
    data += [[Paragraph(_escape(v), styles["Cell"]) for v in row] for row in body]
    t = Table(data, repeatRows=1, colWidths=col_widths)
    t.setStyle(_header_table_style())
    return t


def build_pdf_bytes(report: SummaryReport) -> bytes:
    buffer = BytesIO()
    styles = _get_styles()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=40, rightMargin=40, topMargin=40, bottomMargin=30,
    )
    story = []

    story.append(Paragraph(AppConfig.REPORT_TITLE, styles["Title"]))
    generated = report.generated_on or datetime.date.today()
    story.append(Paragraph(f"Generated on: {generated.strftime('%d %b %Y')}", styles["Normal"]))
    for name in report.truncated_sheets:
        story.append(Paragraph(
            f"Sheet <b>{_escape(name)}</b> exceeded {AppConfig.MAX_ROWS} rows; only the first "
            f"{AppConfig.MAX_ROWS} rows were processed.", styles["Normal"],
        ))
    story.append(Spacer(1, 10))

    story.append(Paragraph("Overall Statistics (Overrides Applied)", styles["Heading1"]))
    story.append(_table(["Metric", "Value"], report.statistics(), styles, col_widths=[300, 300]))

    story.append(Paragraph("Detailed Custom Issues by Column", styles["Heading1"]))
    issue_rows = [line.as_row() for line in report.issues] or [["No custom validation issues found.", "", "", "", "", "", ""]]
    story.append(_table(ISSUE_HEADERS, issue_rows, styles,
                        col_widths=[80, 90, 80, 250, 110, 45, 60]))

    story.append(Paragraph("Duplicate Row Details", styles["Heading1"]))
    dup_rows = [line.as_row() for line in report.duplicates] or [["No duplicate rows found.", "", "", ""]]
    story.append(_table(DUPLICATE_HEADERS, dup_rows, styles, col_widths=[120, 100, 110, 380]))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes

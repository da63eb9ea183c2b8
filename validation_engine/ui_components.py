"""
validation_engine/ui_components.py
==================================
Streamlit widgets for the validation page. The override set lives in
``st.session_state`` and is only ever replaced, never mutated.
"""
from typing import List

import pandas as pd
import streamlit as st

from .aggregation import OverrideSet, set_override
from .config import AppConfig, RuleType
from .engine import WorkbookResult
from .report import SummaryReport, column_overview

OVERRIDES_KEY = "validation_overrides"


def _btn_desc(text: str) -> None:
    """Render a small descriptive line below a download button."""
    st.markdown(
        f'<p style="font-size:0.76rem;color:#7a7a9a;margin-top:0.2rem;'
        f'margin-bottom:0.6rem;line-height:1.45;">{text}</p>',
        unsafe_allow_html=True,
    )


def _color_status(val):
    if val == "✅ PASSED":
        return "background-color: #C6EFCE; color: #006100"
    return "background-color: #FFC7CE; color: #9C0006"


class UIComponents:
    """Streamlit UI components for the validation page."""

    @staticmethod
    def render_header():
        st.markdown(f"# {AppConfig.APP_ICON} {AppConfig.APP_TITLE}")
        st.caption(f"Version {AppConfig.VERSION}")
        st.markdown("---")

    @staticmethod
    def render_sidebar():
        with st.sidebar:
            st.markdown("### 📏 Supported Rules")
            st.markdown(" · ".join(t.value for t in RuleType if t not in (RuleType.NONE, RuleType.UNKNOWN)))
            st.markdown("### 📁 File Formats")
            st.markdown("Data: " + " · ".join(AppConfig.SUPPORTED_DATA_FORMATS))
            st.markdown("Dictionary: " + " · ".join(AppConfig.SUPPORTED_DICTIONARY_FORMATS))
            st.markdown("### ⚙️ Limits")
            st.markdown(f"First {AppConfig.MAX_ROWS:,} data rows per sheet · "
                        f"pass at {AppConfig.CLEAN_RATE_PASS_THRESHOLD}% clean")

    @staticmethod
    def render_dictionary_format_help():
        with st.expander("📋 Expected Data Dictionary Format"):
            st.markdown("""
            A JSON list of rule records, or a stored document
            `{"name": ..., "rules_json": [...]}`.

            **Fields per record:**
            - `Column Name`: header of the target column
            - `Validation Type`: REQUIRED, ALLOWED_VALUES, NUMERIC_RANGE, REGEX, DATE_PAST, UNIQUE or NONE
            - `Validation Value`: `a,b,c` for ALLOWED_VALUES, `min-max` for NUMERIC_RANGE, a pattern for REGEX
            - `Failure Message`: optional, a default is generated

            Records may instead carry a nested `validation_rules` list of
            `{"type", "value", "message"}` objects.
            """)

    @staticmethod
    def get_overrides() -> OverrideSet:
        return st.session_state.get(OVERRIDES_KEY, frozenset())

    @staticmethod
    def reset_overrides() -> None:
        st.session_state[OVERRIDES_KEY] = frozenset()

    @staticmethod
    def render_truncation_warnings(result: WorkbookResult):
        for sheet in result.truncated_sheets:
            st.warning(
                f"⚠️ Sheet **{sheet.sheet_name}** has {sheet.dataset.source_row_count:,} data rows. "
                f"Only the first {AppConfig.MAX_ROWS:,} rows were processed."
            )

    @staticmethod
    def render_stats(report: SummaryReport):
        s = report.stats
        st.subheader("📊 Overall Statistics")
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Cells Checked", f"{s.total_cells_checked:,}")
        col2.metric("Custom Issues", f"{s.effective_custom_issue_count:,}")
        col3.metric("Duplicate Rows", f"{s.duplicate_row_count:,}")
        col4.metric("Clean Rate", f"{s.clean_rate_percent:.2f}%")

        if s.passed:
            st.success(f"✅ **{report.status_text}**")
        else:
            st.error(f"❌ **{report.status_text}**")

    @staticmethod
    def render_override_controls(result: WorkbookResult) -> OverrideSet:
        """One checkbox per column with findings; returns the updated override set."""
        overrides = UIComponents.get_overrides()
        counts = result.issue_counts()
        st.subheader("🛡️ Column Overrides")
        if not counts:
            st.info("No custom validation issues to override.")
            return overrides

        for sheet in result.sheets:
            columns = sheet.issue_columns()
            if not columns:
                continue
            st.markdown(f"**{sheet.sheet_name}**")
            for column in columns:
                key = (sheet.sheet_name, column)
                checked = st.checkbox(
                    f"Override {column} ({counts[key]:,} issue(s))",
                    value=key in overrides,
                    key=f"override::{sheet.sheet_name}::{column}",
                )
                overrides = set_override(overrides, sheet.sheet_name, column, checked)

        st.session_state[OVERRIDES_KEY] = overrides
        return overrides

    @staticmethod
    def render_detailed_views(result: WorkbookResult, report: SummaryReport, overrides: OverrideSet):
        st.subheader("🔍 Detailed Analysis")
        tab1, tab2, tab3 = st.tabs(["Column Overview", "Custom Issues", "Duplicate Rows"])
        with tab1:
            overview = column_overview(result, overrides)
            if overview.empty:
                st.info("No columns to show")
            else:
                overview["Status"] = [
                    "✅ PASSED" if n == 0 or o else "❌ FAILED"
                    for n, o in zip(overview["Custom Issues"], overview["Overridden"])
                ]
                st.dataframe(
                    overview.style.map(_color_status, subset=["Status"]),
                    use_container_width=True, hide_index=True,
                )
        with tab2:
            UIComponents._render_frame(report.issues_frame(), "No custom validation issues found.")
        with tab3:
            UIComponents._render_frame(report.duplicates_frame(), "No duplicate rows found.")

    @staticmethod
    def _render_frame(df: pd.DataFrame, empty_text: str):
        if df.empty:
            st.info(empty_text)
            return
        st.dataframe(df.astype(str), use_container_width=True, hide_index=True)

    @staticmethod
    def render_download_section(excel_bytes: bytes, excel_name: str, pdf_bytes: bytes, sheet_names: List[str]):
        st.subheader("📥 Download Reports")
        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                "📊 Download Excel Report", excel_bytes,
                file_name=excel_name,
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True,
            )
            _btn_desc(
                f"Original sheets ({', '.join(sheet_names)}) with a "
                f"'{AppConfig.SUMMARY_SHEET_NAME}' sheet appended. Overrides applied."
            )
        with col2:
            st.download_button(
                "🖨️ Download PDF Summary", pdf_bytes,
                file_name=excel_name.rsplit(".", 1)[0] + ".pdf",
                mime="application/pdf",
                use_container_width=True,
            )
            _btn_desc("Printable summary: statistics, custom issues and duplicate rows.")

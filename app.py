"""
app.py: Data Dictionary Validation Engine
Upload a workbook and a data dictionary, review findings, override columns,
download the summary.
"""

import logging
import traceback

import streamlit as st

st.set_page_config(
    page_title="Data Dictionary Validation Engine",
    page_icon="✅",
    layout="wide",
)

from validation_engine.config import AppConfig
from validation_engine.engine import run_workbook
from validation_engine.exporter import build_pdf_bytes, export_workbook
from validation_engine.reader import load_dictionary, read_workbook
from validation_engine.report import build_report, export_file_name
from validation_engine.ui_components import UIComponents

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("validation_app")


def _upload_signature(data_file, dict_file) -> tuple:
    return (
        data_file.name, getattr(data_file, "size", None),
        dict_file.name if dict_file else None, getattr(dict_file, "size", None),
    )


def main():
    UIComponents.render_header()
    UIComponents.render_sidebar()

    col1, col2 = st.columns(2)
    with col1:
        data_file = st.file_uploader(
            "📂 Data workbook", type=AppConfig.SUPPORTED_DATA_FORMATS, key="data_upload",
        )
    with col2:
        dict_file = st.file_uploader(
            "📜 Data dictionary (optional)", type=AppConfig.SUPPORTED_DICTIONARY_FORMATS, key="dict_upload",
        )
        UIComponents.render_dictionary_format_help()

    if data_file is None:
        st.info("Upload a CSV or Excel workbook to begin. Without a dictionary only duplicate rows are checked.")
        return

    signature = _upload_signature(data_file, dict_file)
    if st.session_state.get("upload_signature") != signature:
        st.session_state["upload_signature"] = signature
        UIComponents.reset_overrides()

    try:
        sheets = read_workbook(data_file)
        dictionary = load_dictionary(dict_file) if dict_file else None
    except Exception as e:
        logger.exception("Failed to load uploads")
        st.error(f"❌ Failed to load file: {e}")
        return

    if dictionary is not None:
        st.success(f"✅ Dictionary **{dictionary.name}**: {len(dictionary.rules)} rule(s) "
                   f"over {len(dictionary)} column(s)")
        if not dictionary.rules:
            st.warning("⚠️ The selected data dictionary has no rules defined.")

    with st.spinner("⚙️ Validating…"):
        result = run_workbook(sheets, dictionary)

    if not result.sheets:
        st.warning("⚠️ The uploaded file has no data.")
        return

    UIComponents.render_truncation_warnings(result)
    st.success(f"✅ Validated **{len(result.sheets)}** sheet(s), "
               f"**{result.total_rows_checked:,}** data row(s)")

    overrides = UIComponents.render_override_controls(result)
    report = build_report(result, overrides, file_name=data_file.name)

    UIComponents.render_stats(report)
    UIComponents.render_detailed_views(result, report, overrides)

    try:
        excel_bytes = export_workbook(sheets, report)
        pdf_bytes = build_pdf_bytes(report)
    except Exception as e:
        logger.exception("Report export failed")
        st.error(f"❌ Error building reports: {e}")
        with st.expander("Details"):
            st.code(traceback.format_exc())
        return

    UIComponents.render_download_section(
        excel_bytes,
        export_file_name(data_file.name, result.run_date),
        pdf_bytes,
        [name for name, _ in sheets],
    )


main()

"""
validation_engine/reader.py
===========================
Upload decoding: workbooks into ``(sheet name, rows)`` pairs and data
dictionary JSON into a ``DataDictionary``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import replace
from io import BytesIO
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from .config import AppConfig
from .engine import RawSheet
from .exceptions import DictionaryFormatError
from .rules import DataDictionary, parse_dictionary

logger = logging.getLogger(__name__)


def _file_name(uploaded_file) -> str:
    return str(getattr(uploaded_file, "name", uploaded_file))


def _read_bytes(uploaded_file) -> bytes:
    if isinstance(uploaded_file, (str, Path)):
        return Path(uploaded_file).read_bytes()
    data = uploaded_file.read()
    if hasattr(uploaded_file, "seek"):
        uploaded_file.seek(0)
    return data


def file_extension(uploaded_file) -> str:
    return Path(_file_name(uploaded_file)).suffix.lower().lstrip(".")


def _read_excel_rows(data: bytes) -> List[RawSheet]:
    from openpyxl import load_workbook
    wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
    try:
        sheets: List[RawSheet] = []
        for ws in wb.worksheets:
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
            sheets.append((ws.title, rows))
        return sheets
    finally:
        wb.close()


def _read_csv_rows(data: bytes, sheet_name: str) -> List[RawSheet]:
    df = pd.read_csv(BytesIO(data), dtype=str, keep_default_na=False, header=None)
    return [(sheet_name, df.values.tolist())]


def read_workbook(uploaded_file) -> List[RawSheet]:
    """
    Decode an uploaded workbook into sheets of raw rows, in workbook order.

    xlsx/xlsm cells keep their native types (numbers, datetimes, ``None``);
    a csv file becomes a single sheet of strings named after the file.
    """
    name = _file_name(uploaded_file)
    ext = file_extension(uploaded_file)
    if ext not in AppConfig.SUPPORTED_DATA_FORMATS:
        raise ValueError(f"Unsupported format: {name}")

    data = _read_bytes(uploaded_file)
    if ext == "csv":
        sheets = _read_csv_rows(data, Path(name).stem or "Sheet1")
    else:
        sheets = _read_excel_rows(data)
    logger.info("Read '%s': %d sheet(s)", name, len(sheets))
    return sheets


def load_dictionary(uploaded_file, name: Optional[str] = None) -> DataDictionary:
    """
    Load a data dictionary from a JSON file.

    The file holds either the bare list of rule records or the stored
    document ``{"name", "rules_json", "company_id"}``; ``rules_json`` may
    itself be a JSON-encoded string.
    """
    file_name = _file_name(uploaded_file)
    if file_extension(uploaded_file) not in AppConfig.SUPPORTED_DICTIONARY_FORMATS:
        raise ValueError(f"Unsupported format: {file_name}")

    try:
        document: Any = json.loads(_read_bytes(uploaded_file).decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DictionaryFormatError(f"'{file_name}' is not valid JSON: {exc}") from exc

    if isinstance(document, dict) and isinstance(document.get("rules_json"), str):
        try:
            document = {**document, "rules_json": json.loads(document["rules_json"])}
        except json.JSONDecodeError as exc:
            raise DictionaryFormatError(f"'rules_json' in '{file_name}' is not valid JSON: {exc}") from exc

    dictionary = parse_dictionary(document, name=name or "")
    if not dictionary.name:
        dictionary = replace(dictionary, name=Path(file_name).stem)
    return dictionary

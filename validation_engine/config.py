"""
Configuration module for the Validation Engine
Centralized configuration management
"""

from enum import Enum
from typing import Dict, List


class AppConfig:
    """Main application configuration"""

    # Application metadata
    APP_TITLE = "Data Dictionary Validation Engine"
    APP_ICON = "✅"
    VERSION = "1.0.0"

    # File format support
    SUPPORTED_DATA_FORMATS = ["csv", "xlsx", "xlsm"]
    SUPPORTED_DICTIONARY_FORMATS = ["json"]

    # Validation configuration
    MAX_ROWS = 5000
    CLEAN_RATE_PASS_THRESHOLD = 95
    ROW_FINGERPRINT_SEPARATOR = "~!~"
    SAMPLE_CELLS = 3

    # Spreadsheet serial dates: days between 1899-12-30 and 1970-01-01
    EXCEL_EPOCH_OFFSET_DAYS = 25569

    # Report / export
    SUMMARY_SHEET_NAME = "Validation Summary"
    REPORT_TITLE = "Data Quality Summary Report"
    OVERRIDDEN_LINE = "ALL ISSUES OVERRIDDEN FOR THIS COLUMN"
    BLANK_PLACEHOLDER = "[Blank]"

    # Excel formatting
    EXCEL_HEADER_COLOR = "1F3864"
    EXCEL_SECTION_COLOR = "2E75B6"
    EXCEL_PASS_COLOR = "C6EFCE"
    EXCEL_PASS_FONT = "276221"
    EXCEL_FAIL_COLOR = "FFC7CE"
    EXCEL_FAIL_FONT = "9C0006"


class RuleType(Enum):
    """Rule type enumeration"""
    REQUIRED = "REQUIRED"
    ALLOWED_VALUES = "ALLOWED_VALUES"
    NUMERIC_RANGE = "NUMERIC_RANGE"
    REGEX = "REGEX"
    DATE_PAST = "DATE_PAST"
    UNIQUE = "UNIQUE"
    NONE = "NONE"
    UNKNOWN = "UNKNOWN"


# Rule types whose "Validation Value" is mandatory
PARAMETERISED_RULE_TYPES = (
    RuleType.ALLOWED_VALUES,
    RuleType.NUMERIC_RANGE,
    RuleType.REGEX,
)


# Wire field names of a persisted data dictionary record
DICTIONARY_FIELDS: Dict[str, str] = {
    "column": "Column Name",
    "type": "Validation Type",
    "value": "Validation Value",
    "message": "Failure Message",
}


# Descriptive metadata captured by the dictionary builder (snake_case keys)
DESCRIPTOR_METADATA_FIELDS: List[str] = [
    "description",
    "data_type",
    "length_size",
    "format",
    "allowable_values",
    "nullability",
    "source_systems",
    "target_systems",
    "business_rules",
    "relationships",
    "ownership",
    "security_classification",
]

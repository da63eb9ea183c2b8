"""
Shared test fixtures for the validation engine.
"""

import datetime
from typing import Any, Dict, List

import pytest

from validation_engine.dataset import build_dataset
from validation_engine.rules import make_rule, dictionary_from_rules


# ============================================================================
# COMMON TEST DATA FIXTURES
# ============================================================================

@pytest.fixture
def today() -> datetime.date:
    """Fixed DATE_PAST cut-off."""
    return datetime.date(2024, 6, 15)


@pytest.fixture
def e2e_rows() -> List[List[Any]]:
    """Header plus three data rows: one blank email, one full duplicate."""
    return [
        ["id", "email"],
        ["1", "a@x.com"],
        ["2", ""],
        ["1", "a@x.com"],
    ]


@pytest.fixture
def e2e_dataset(e2e_rows):
    return build_dataset("Sheet1", e2e_rows)


@pytest.fixture
def e2e_dictionary():
    return dictionary_from_rules([
        make_rule("id", "UNIQUE"),
        make_rule("email", "REQUIRED"),
    ])


@pytest.fixture
def wire_records() -> List[Dict[str, Any]]:
    """Data dictionary records in the persisted flat layout."""
    return [
        {"Column Name": "id", "Validation Type": "UNIQUE",
         "Validation Value": "", "Failure Message": ""},
        {"Column Name": "status", "Validation Type": "ALLOWED_VALUES",
         "Validation Value": "Active, Inactive", "Failure Message": "Bad status"},
        {"Column Name": "score", "Validation Type": "NUMERIC_RANGE",
         "Validation Value": "0-100", "Failure Message": ""},
        {"Column Name": "email", "Validation Type": "REGEX",
         "Validation Value": r"^[^@\s]+@[^@\s]+\.\w+$", "Failure Message": "Invalid email"},
        {"Column Name": "joined", "Validation Type": "DATE_PAST",
         "Validation Value": "", "Failure Message": ""},
    ]


@pytest.fixture
def people_rows() -> List[List[Any]]:
    return [
        ["id", "status", "score", "email", "joined"],
        ["1", "Active", "50", "ann@x.com", "2020-01-01"],
        ["2", "inactive", 100, "bob@x.com", datetime.datetime(2023, 5, 1)],
        ["3", "Gone", "150", "not-an-email", "2099-01-01"],
        ["2", "", "", "", ""],
    ]

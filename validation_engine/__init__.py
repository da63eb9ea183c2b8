"""
Validation Engine Modules
Rule-based spreadsheet validation organised as importable modules
"""

__version__ = "1.0.0"
__all__ = [
    "config",
    "exceptions",
    "rules",
    "dataset",
    "executor",
    "duplicates",
    "aggregation",
    "engine",
    "report",
    "exporter",
    "reader",
    "ui_components",
]

"""
validation_engine/rules.py
==========================
Typed data dictionary: column descriptors and the validation rules attached
to them.

Two record layouts are accepted:

* the flat wire format persisted by the storage layer::

      {"Column Name": "email", "Validation Type": "REQUIRED",
       "Validation Value": "", "Failure Message": "Email is mandatory"}

* the builder layout, with rules nested under ``validation_rules``::

      {"Column Name": "email", "description": "...",
       "validation_rules": [{"type": "REQUIRED", "value": "", "message": ""}]}

When a record carries both, the flat rule comes first.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import (
    DESCRIPTOR_METADATA_FIELDS,
    DICTIONARY_FIELDS,
    PARAMETERISED_RULE_TYPES,
    RuleType,
)
from .exceptions import DictionaryFormatError

logger = logging.getLogger(__name__)

_KNOWN_TYPES = {t.value: t for t in RuleType if t is not RuleType.UNKNOWN}


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def resolve_rule_type(raw: Any) -> Tuple[RuleType, str]:
    """Map an authored type string to ``(RuleType, normalised string)``.

    Blank types mean "no validation"; anything unrecognised is tagged
    ``UNKNOWN`` but keeps its original spelling.
    """
    name = _clean(raw).upper()
    if not name:
        return RuleType.NONE, RuleType.NONE.value
    return _KNOWN_TYPES.get(name, RuleType.UNKNOWN), name


def default_message(column: str, raw_type: str) -> str:
    if raw_type == RuleType.UNIQUE.value:
        return f"Value in column '{column}' is not unique."
    return f"Validation failed for {column} (Rule: {raw_type})"


@dataclass(frozen=True)
class ColumnRule:
    column_name: str
    type: RuleType
    raw_type: str
    value: Optional[str] = None
    message: str = ""

    @property
    def has_value(self) -> bool:
        return bool(_clean(self.value))

    @property
    def is_misconfigured(self) -> bool:
        """True when a parameterised rule was saved without its parameter."""
        return self.type in PARAMETERISED_RULE_TYPES and not self.has_value


def make_rule(
    column_name: str,
    rule_type: Any,
    value: Any = None,
    message: Any = None,
) -> ColumnRule:
    column = _clean(column_name)
    kind, raw_type = resolve_rule_type(rule_type)
    text = _clean(message) or default_message(column, raw_type)
    return ColumnRule(
        column_name=column,
        type=kind,
        raw_type=raw_type,
        value=None if value is None else str(value),
        message=text,
    )


def parse_rule(record: Mapping[str, Any]) -> Optional[ColumnRule]:
    """Parse one flat dictionary record. Returns None without a column name."""
    column = _clean(record.get(DICTIONARY_FIELDS["column"]))
    if not column:
        return None
    return make_rule(
        column,
        record.get(DICTIONARY_FIELDS["type"]),
        record.get(DICTIONARY_FIELDS["value"]),
        record.get(DICTIONARY_FIELDS["message"]),
    )


@dataclass(frozen=True)
class ColumnDescriptor:
    column_name: str
    rules: Tuple[ColumnRule, ...] = ()
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def active_rules(self) -> Tuple[ColumnRule, ...]:
        return tuple(r for r in self.rules if r.type is not RuleType.NONE)


def parse_descriptor(record: Mapping[str, Any]) -> Optional[ColumnDescriptor]:
    column = _clean(record.get(DICTIONARY_FIELDS["column"]) or record.get("column_name"))
    if not column:
        return None

    rules: List[ColumnRule] = []
    if DICTIONARY_FIELDS["type"] in record:
        rules.append(make_rule(
            column,
            record.get(DICTIONARY_FIELDS["type"]),
            record.get(DICTIONARY_FIELDS["value"]),
            record.get(DICTIONARY_FIELDS["message"]),
        ))
    for nested in record.get("validation_rules") or []:
        if not isinstance(nested, Mapping):
            logger.warning("Ignoring malformed nested rule for column '%s': %r", column, nested)
            continue
        rules.append(make_rule(column, nested.get("type"), nested.get("value"), nested.get("message")))

    metadata = {
        key: _clean(record.get(key))
        for key in DESCRIPTOR_METADATA_FIELDS
        if _clean(record.get(key))
    }
    return ColumnDescriptor(column_name=column, rules=tuple(rules), metadata=metadata)


@dataclass(frozen=True)
class DataDictionary:
    """Ordered column descriptors for one dataset shape."""
    descriptors: Tuple[ColumnDescriptor, ...] = ()
    name: str = ""
    tenant: Optional[str] = None

    @property
    def rules(self) -> List[ColumnRule]:
        return [r for d in self.descriptors for r in d.rules]

    def rules_by_column(self) -> Dict[str, List[ColumnRule]]:
        """Trimmed column name → rules, in authored order. NONE rules are dropped."""
        lookup: Dict[str, List[ColumnRule]] = {}
        for descriptor in self.descriptors:
            for rule in descriptor.active_rules:
                lookup.setdefault(rule.column_name, []).append(rule)
        return lookup

    def rules_for(self, column: str) -> List[ColumnRule]:
        return self.rules_by_column().get(_clean(column), [])

    @property
    def columns(self) -> List[str]:
        return [d.column_name for d in self.descriptors]

    def __len__(self) -> int:
        return len(self.descriptors)


def dictionary_from_rules(rules: Iterable[ColumnRule], name: str = "") -> DataDictionary:
    """Group already-built rules into descriptors, keeping first-seen column order."""
    grouped: Dict[str, List[ColumnRule]] = {}
    for rule in rules:
        grouped.setdefault(rule.column_name, []).append(rule)
    descriptors = tuple(ColumnDescriptor(col, tuple(rs)) for col, rs in grouped.items())
    return DataDictionary(descriptors=descriptors, name=name)


def parse_dictionary(document: Any, name: str = "", tenant: Optional[str] = None) -> DataDictionary:
    """
    Build a DataDictionary from a persisted document.

    Accepts the bare list of records or ``{"name": ..., "rules_json": [...]}``.
    Records for the same column are merged into one descriptor in first-seen
    order.
    """
    if isinstance(document, Mapping):
        name = name or _clean(document.get("name"))
        tenant = tenant or (_clean(document.get("company_id")) or None)
        document = document.get("rules_json")
    if not isinstance(document, (list, tuple)):
        raise DictionaryFormatError(
            f"Data dictionary must be a list of rule records, got {type(document).__name__}"
        )

    merged: Dict[str, ColumnDescriptor] = {}
    for position, record in enumerate(document):
        if not isinstance(record, Mapping):
            raise DictionaryFormatError(f"Dictionary record {position} is not an object")
        descriptor = parse_descriptor(record)
        if descriptor is None:
            continue
        existing = merged.get(descriptor.column_name)
        if existing is None:
            merged[descriptor.column_name] = descriptor
        else:
            merged[descriptor.column_name] = ColumnDescriptor(
                column_name=existing.column_name,
                rules=existing.rules + descriptor.rules,
                metadata={**descriptor.metadata, **existing.metadata},
            )

    if not merged:
        logger.warning("Data dictionary '%s' has no rules defined.", name or "<unnamed>")
    dictionary = DataDictionary(descriptors=tuple(merged.values()), name=name, tenant=tenant)
    unknown = sorted({r.raw_type for r in dictionary.rules if r.type is RuleType.UNKNOWN})
    if unknown:
        logger.warning("Data dictionary '%s' uses unrecognised rule types: %s",
                       name or "<unnamed>", ", ".join(unknown))
    return dictionary

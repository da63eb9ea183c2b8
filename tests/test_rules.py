"""
Tests for data dictionary parsing.
"""

import pytest

from validation_engine.config import RuleType
from validation_engine.exceptions import DictionaryFormatError
from validation_engine.rules import (
    default_message,
    make_rule,
    parse_descriptor,
    parse_dictionary,
    parse_rule,
    resolve_rule_type,
)


class TestResolveRuleType:

    @pytest.mark.parametrize("raw,expected", [
        ("REQUIRED", RuleType.REQUIRED),
        (" regex ", RuleType.REGEX),
        ("Date_Past", RuleType.DATE_PAST),
        ("NONE", RuleType.NONE),
        ("", RuleType.NONE),
        (None, RuleType.NONE),
    ])
    def test_known_types(self, raw, expected):
        assert resolve_rule_type(raw)[0] is expected

    def test_unknown_type_keeps_spelling(self):
        kind, name = resolve_rule_type("email_format")
        assert kind is RuleType.UNKNOWN
        assert name == "EMAIL_FORMAT"


class TestMakeRule:

    def test_default_message(self):
        rule = make_rule("age", "NUMERIC_RANGE", "0-120")
        assert rule.message == "Validation failed for age (Rule: NUMERIC_RANGE)"

    def test_unique_default_message(self):
        assert default_message("id", "UNIQUE") == "Value in column 'id' is not unique."

    def test_custom_message_and_trimmed_column(self):
        rule = make_rule("  email ", "REQUIRED", None, " Email is mandatory ")
        assert rule.column_name == "email"
        assert rule.message == "Email is mandatory"
        assert rule.value is None

    def test_parameterised_rule_without_value_is_misconfigured(self):
        assert make_rule("status", "ALLOWED_VALUES", "").is_misconfigured
        assert not make_rule("status", "ALLOWED_VALUES", "a,b").is_misconfigured
        assert not make_rule("status", "REQUIRED").is_misconfigured


class TestParseRule:

    def test_flat_record(self, wire_records):
        rule = parse_rule(wire_records[1])
        assert rule.column_name == "status"
        assert rule.type is RuleType.ALLOWED_VALUES
        assert rule.value == "Active, Inactive"
        assert rule.message == "Bad status"

    def test_record_without_column_is_skipped(self):
        assert parse_rule({"Column Name": "  ", "Validation Type": "REQUIRED"}) is None


class TestParseDescriptor:

    def test_nested_rules_and_metadata(self):
        descriptor = parse_descriptor({
            "Column Name": "email",
            "description": "Contact address",
            "nullability": "Not Null",
            "ownership": "",
            "validation_rules": [
                {"type": "REQUIRED", "value": "", "message": ""},
                {"type": "REGEX", "value": ".+@.+", "message": "Bad email"},
            ],
        })
        assert [r.type for r in descriptor.rules] == [RuleType.REQUIRED, RuleType.REGEX]
        assert descriptor.metadata == {"description": "Contact address", "nullability": "Not Null"}

    def test_flat_rule_comes_before_nested(self):
        descriptor = parse_descriptor({
            "Column Name": "code",
            "Validation Type": "REQUIRED",
            "validation_rules": [{"type": "UNIQUE"}],
        })
        assert [r.raw_type for r in descriptor.rules] == ["REQUIRED", "UNIQUE"]

    def test_none_rules_are_inactive(self):
        descriptor = parse_descriptor({"Column Name": "notes", "Validation Type": ""})
        assert len(descriptor.rules) == 1
        assert descriptor.active_rules == ()


class TestParseDictionary:

    def test_list_document(self, wire_records):
        dictionary = parse_dictionary(wire_records, name="people")
        assert dictionary.name == "people"
        assert dictionary.columns == ["id", "status", "score", "email", "joined"]
        assert len(dictionary.rules) == 5

    def test_stored_document(self, wire_records):
        dictionary = parse_dictionary({"name": "People DD", "company_id": 7, "rules_json": wire_records})
        assert dictionary.name == "People DD"
        assert dictionary.tenant == "7"

    def test_records_for_same_column_are_merged_in_order(self):
        dictionary = parse_dictionary([
            {"Column Name": "id", "Validation Type": "REQUIRED"},
            {"Column Name": "name", "Validation Type": "REQUIRED"},
            {"Column Name": "id", "Validation Type": "UNIQUE"},
        ])
        assert dictionary.columns == ["id", "name"]
        assert [r.raw_type for r in dictionary.rules_for("id")] == ["REQUIRED", "UNIQUE"]

    def test_rules_by_column_drops_none(self):
        dictionary = parse_dictionary([
            {"Column Name": "id", "Validation Type": "NONE"},
            {"Column Name": "name", "Validation Type": "REQUIRED"},
        ])
        assert list(dictionary.rules_by_column()) == ["name"]

    def test_empty_dictionary_logs_warning(self, caplog):
        dictionary = parse_dictionary([])
        assert len(dictionary) == 0
        assert "no rules defined" in caplog.text

    def test_unknown_types_log_warning(self, caplog):
        parse_dictionary([{"Column Name": "x", "Validation Type": "FUZZY"}], name="dd")
        assert "FUZZY" in caplog.text

    @pytest.mark.parametrize("document", ["not a list", 42, {"rules_json": "x"}, None])
    def test_malformed_document_raises(self, document):
        with pytest.raises(DictionaryFormatError):
            parse_dictionary(document)

    def test_non_object_record_raises(self):
        with pytest.raises(DictionaryFormatError):
            parse_dictionary([{"Column Name": "a"}, "b"])

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_dictionary("nope")

import logging
import re

import pytest
from frozendict import frozendict

from rvframework import CHECKERS, ConfigurationError, RuleItem, RuleType, UnknownRuleTypeError
from rvframework.checkers import REQUIRED_CHECKER
from rvframework.normalization import (
    check_rule_types,
    child_rules,
    internalize,
    normalize_descriptor,
    resolve_type,
    select_fields,
    to_rule_item,
    to_rule_items,
)


def is_even(rule, value, callback, source, options):
    return value % 2 == 0


class TestToRuleItem:
    def test_mapping(self):
        item = to_rule_item({"type": "string", "required": True, "min": 2, "enum": ["a", "b"]})
        assert item == RuleItem(type="string", required=True, min=2, enum=("a", "b"))

    def test_rule_type_enum(self):
        item = to_rule_item({"type": RuleType.EMAIL})
        assert item.type_name == "email"

    def test_function_becomes_validator(self):
        item = to_rule_item(is_even)
        assert item.validator is is_even
        assert item.has_custom_validator

    def test_rule_item_is_kept(self):
        item = RuleItem(type="number", max=3)
        assert to_rule_item(item) == item

    def test_nested_rules_are_normalized(self):
        item = to_rule_item(
            {"type": "object", "fields": {"city": {"required": True}, 0: [{"type": "string"}, is_even]}}
        )
        assert isinstance(item.fields, frozendict)
        assert item.fields["city"] == (RuleItem(required=True),)
        assert len(item.fields["0"]) == 2
        assert item.is_deep

    def test_default_field_is_normalized(self):
        item = to_rule_item({"type": "array", "default_field": {"type": "string"}})
        assert item.default_field == (RuleItem(type="string"),)
        assert item.is_deep

    def test_array_without_nested_rules_is_not_deep(self):
        assert not to_rule_item({"type": "array"}).is_deep

    def test_unknown_attribute(self):
        with pytest.raises(ConfigurationError, match="minimum"):
            to_rule_item({"type": "string", "minimum": 3})

    @pytest.mark.parametrize(
        "rule",
        [
            pytest.param({"required": "yes"}, id="required"),
            pytest.param({"min": "3"}, id="min"),
            pytest.param({"pattern": 5}, id="pattern"),
            pytest.param({"validator": "not callable"}, id="validator"),
            pytest.param({"localized_field": 1}, id="localized_field"),
        ],
    )
    def test_invalid_attribute_type(self, rule):
        with pytest.raises(ConfigurationError):
            to_rule_item(rule)

    @pytest.mark.parametrize("pattern", ["(", "a{4294967296}"])
    def test_invalid_pattern(self, pattern):
        with pytest.raises(ConfigurationError, match="pattern"):
            to_rule_item({"pattern": pattern})

    def test_string_pattern_is_compiled(self):
        rule = to_rule_item({"pattern": r"^\d+$"})
        assert rule.pattern == re.compile(r"^\d+$")
        assert rule.type == "string"
        assert to_rule_item({"type": "pattern", "pattern": "a"}).type == "pattern"

    def test_invalid_rule(self):
        with pytest.raises(ConfigurationError):
            to_rule_item(42)

    def test_to_rule_items(self):
        assert to_rule_items({"type": "string"}) == (RuleItem(type="string"),)
        assert to_rule_items([{"type": "string"}, {"max": 3}]) == (RuleItem(type="string"), RuleItem(max=3))


class TestNormalizeDescriptor:
    def test_keys_become_strings(self):
        rules = normalize_descriptor({1: {"type": "number"}, "name": [{"type": "string"}]})
        assert list(rules) == ["1", "name"]

    def test_empty_descriptor(self):
        with pytest.raises(ConfigurationError):
            normalize_descriptor({})

    @pytest.mark.parametrize("descriptor", [None, [{"type": "string"}], "name"])
    def test_no_mapping(self, descriptor):
        with pytest.raises(ConfigurationError):
            normalize_descriptor(descriptor)


class TestResolveType:
    def test_explicit_type(self):
        assert resolve_type(RuleItem(type="number"), CHECKERS) == "number"

    def test_default_type_is_string(self):
        assert resolve_type(RuleItem(min=3), CHECKERS) == "string"

    def test_compiled_pattern(self):
        assert resolve_type(RuleItem(pattern=re.compile("a")), CHECKERS) == "pattern"
        assert resolve_type(RuleItem(pattern="a"), CHECKERS) == "string"

    def test_required_only(self):
        assert resolve_type(RuleItem(required=True), CHECKERS) == REQUIRED_CHECKER
        assert resolve_type(RuleItem(required=True, message="needed"), CHECKERS) == REQUIRED_CHECKER

    def test_unknown_type(self):
        with pytest.raises(UnknownRuleTypeError) as error_info:
            resolve_type(RuleItem(type="even"), CHECKERS, "count")
        assert error_info.value.type_name == "even"
        assert error_info.value.field == "count"

    def test_unknown_type_with_validator(self):
        assert resolve_type(RuleItem(type="even", validator=is_even), CHECKERS) == "even"

    def test_nested_unknown_type(self):
        rules = normalize_descriptor({"addr": {"type": "object", "fields": {"city": {"type": "town"}}}})
        with pytest.raises(UnknownRuleTypeError) as error_info:
            check_rule_types(rules, CHECKERS)
        assert error_info.value.field == "addr.city"


class TestInternalize:
    def test_top_level(self):
        rule = internalize(RuleItem(min=3), "name", None, CHECKERS)
        assert rule.field == "name"
        assert rule.full_field == "name"
        assert rule.full_fields == ("name",)
        assert rule.type == "string"
        assert rule.min == 3

    def test_nested(self):
        parent = internalize(RuleItem(type="object"), "addr", None, CHECKERS)
        rule = internalize(RuleItem(required=True), "city", parent, CHECKERS)
        assert rule.full_field == "addr.city"
        assert rule.full_fields == ("addr", "city")
        assert rule.type is None

    def test_display_name(self):
        assert internalize(RuleItem(localized_field="Stadt"), "city", None, CHECKERS).display_name == "Stadt"
        assert internalize(RuleItem(), "city", None, CHECKERS).display_name == "city"


class TestSelectFields:
    rules = normalize_descriptor({"a": {"type": "string"}, "b": {"type": "number"}, "c": {"type": "boolean"}})

    def test_all_fields(self):
        assert select_fields(self.rules, None) is self.rules

    def test_keys_order(self):
        assert list(select_fields(self.rules, ("c", "a"))) == ["a", "c"]

    def test_unknown_keys_are_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert list(select_fields(self.rules, ("a", "x"))) == ["a"]
        assert "x" in caplog.text

    def test_no_warning_if_suppressed(self, caplog):
        with caplog.at_level(logging.WARNING):
            select_fields(self.rules, ("x",), warn=False)
        assert caplog.text == ""


class TestChildRules:
    def test_default_field_for_every_index(self):
        rule = to_rule_item({"type": "array", "default_field": {"type": "string"}})
        assert list(child_rules(rule, ["a", "b"])) == ["0", "1"]

    def test_fields_replace_default_field(self):
        rule = to_rule_item(
            {"type": "object", "default_field": {"type": "string"}, "fields": {"b": {"type": "number"}}}
        )
        nested = child_rules(rule, {"a": "x", "b": 1})
        assert nested["a"] == (RuleItem(type="string"),)
        assert nested["b"] == (RuleItem(type="number"),)

    def test_fields_without_value(self):
        rule = to_rule_item({"type": "object", "fields": {"city": {"required": True}}})
        assert list(child_rules(rule, {})) == ["city"]

import asyncio
import logging
from typing import Any, Optional

import pytest

from rvframework import Schema, ValidateOptions, ValidationManager, ValidationResult
from rvframework.normalization import normalize_descriptor


async def run(descriptor: dict[str, Any], source: Any, **options: Any) -> ValidationResult:
    _, result = await Schema(descriptor).run(source, options or None)
    return result


def messages_of(result: ValidationResult) -> list[str]:
    return [error.message for error in result.errors or []]


async def slow_failure(rule, value, callback, source, options):
    await asyncio.sleep(0.01)
    raise ValueError("slow failure")


async def never_completes(rule, value, callback, source, options):
    await asyncio.Event().wait()


class TestSyncValidator:
    @pytest.mark.parametrize(
        "outcome, expected",
        [
            pytest.param(None, [], id="None"),
            pytest.param(True, [], id="True"),
            pytest.param(False, ["name fails"], id="False"),
            pytest.param("bad name", ["bad name"], id="message"),
            pytest.param(ValueError("invalid"), ["invalid"], id="exception"),
            pytest.param([ValueError("a"), "b"], ["a", "b"], id="list"),
            pytest.param([], [], id="empty list"),
        ],
    )
    async def test_return_value(self, outcome, expected):
        result = await run({"name": {"validator": lambda *args: outcome}}, {"name": "x"})
        assert messages_of(result) == expected
        assert result.validator_errors == []

    async def test_callback(self):
        def validator(rule, value, callback, source, options):
            callback(f"{rule.full_field} is taken" if value == "admin" else None)

        assert messages_of(await run({"name": validator}, {"name": "admin"})) == ["name is taken"]
        assert messages_of(await run({"name": validator}, {"name": "jo"})) == []

    async def test_callback_wins_over_return_value(self):
        def validator(rule, value, callback, source, options):
            callback()
            return "ignored"

        assert messages_of(await run({"name": validator}, {"name": "x"})) == []

    async def test_only_first_callback_counts(self, caplog):
        def validator(rule, value, callback, source, options):
            callback("first")
            callback("second")

        with caplog.at_level(logging.WARNING):
            result = await run({"name": validator}, {"name": "x"})
        assert messages_of(result) == ["first"]
        assert "more than once" in caplog.text

    async def test_repeated_callback_warning_can_be_suppressed(self, caplog):
        def validator(rule, value, callback, source, options):
            callback("first")
            callback("second")

        with caplog.at_level(logging.WARNING):
            await run({"name": validator}, {"name": "x"}, suppress_warning=True)
        assert "more than once" not in caplog.text

    async def test_callback_after_return_is_logged(self, caplog):
        def validator(rule, value, callback, source, options):
            asyncio.get_running_loop().call_soon(callback, "name is taken")

        with caplog.at_level(logging.WARNING):
            result = await run({"name": validator}, {"name": "x"})
            await asyncio.sleep(0.01)
        assert result.succeeded
        assert "called back after it returned" in caplog.text
        assert "name is taken" in caplog.text

    async def test_callback_after_return_warning_can_be_suppressed(self, caplog):
        def validator(rule, value, callback, source, options):
            asyncio.get_running_loop().call_soon(callback, "name is taken")

        with caplog.at_level(logging.WARNING):
            result = await run({"name": validator}, {"name": "x"}, suppress_warning=True)
            await asyncio.sleep(0.01)
        assert result.succeeded
        assert "after it returned" not in caplog.text

    async def test_false_uses_rule_message(self):
        result = await run({"name": {"validator": lambda *args: False, "message": "%s is odd"}}, {"name": "x"})
        assert messages_of(result) == ["name is odd"]

    async def test_validator_receives_arguments(self):
        received: dict[str, Any] = {}

        def validator(rule, value, callback, source, options):
            received.update(rule=rule, value=value, source=source, options=options)

        source = {"name": "x", "other": 1}
        await run({"name": validator}, source, first_fields=True)
        assert received["rule"].full_field == "name"
        assert received["value"] == "x"
        assert received["source"] == source
        assert received["options"].first_fields is True

    async def test_missing_value_is_passed_as_none(self):
        values: list[Any] = []
        await run({"name": lambda rule, value, *args: values.append(value)}, {})
        assert values == [None]


class TestValidatorMisuse:
    async def test_awaitable_from_sync_validator(self, caplog):
        async def validator(rule, value, callback, source, options):
            return None

        with caplog.at_level(logging.ERROR):
            result = await run({"name": {"validator": validator}}, {"name": "x"})
        assert messages_of(result) == ["synchronous validator returned an awaitable, use async_validator instead"]
        assert len(result.validator_errors) == 1
        assert result.validator_errors[0].field == "name"
        assert "misbehaved" in caplog.text

    async def test_unsupported_return_value(self):
        result = await run({"name": lambda *args: 42}, {"name": "x"})
        assert messages_of(result) == ["validator returned an unsupported value 42"]
        assert len(result.validator_errors) == 1

    async def test_raising_validator(self, caplog):
        def validator(rule, value, callback, source, options):
            raise ValueError("boom")

        with caplog.at_level(logging.ERROR):
            result = await run({"name": validator}, {"name": "x"})
        assert messages_of(result) == ["boom"]
        assert "ValueError('boom')" in result.validator_errors[0].reason
        assert "boom" in caplog.text

    async def test_suppressed(self, caplog):
        with caplog.at_level(logging.ERROR):
            result = await run({"name": lambda *args: 42}, {"name": "x"}, suppress_validator_error=True)
        assert messages_of(result) == ["validator returned an unsupported value 42"]
        assert result.validator_errors == []
        assert caplog.text == ""

    async def test_misuse_in_nested_field(self):
        result = await run(
            {"addr": {"type": "object", "fields": {"city": lambda *args: 42}}},
            {"addr": {"city": "x"}},
        )
        assert [misuse.field for misuse in result.validator_errors] == ["addr.city"]


class TestAsyncValidator:
    async def test_raised_exception_fails(self):
        async def validator(rule, value, callback, source, options):
            raise ValueError(f"{value} is taken")

        result = await run({"name": {"async_validator": validator}}, {"name": "jo"})
        assert messages_of(result) == ["jo is taken"]
        assert result.validator_errors == []

    async def test_completes_without_error(self):
        async def validator(rule, value, callback, source, options):
            await asyncio.sleep(0)

        assert (await run({"name": {"async_validator": validator}}, {"name": "jo"})).succeeded

    @pytest.mark.parametrize(
        "outcome, expected",
        [
            pytest.param(False, ["name fails"], id="False"),
            pytest.param("bad", ["bad"], id="message"),
            pytest.param(["a", "b"], ["a", "b"], id="list"),
        ],
    )
    async def test_return_value(self, outcome, expected):
        async def validator(rule, value, callback, source, options):
            return outcome

        assert messages_of(await run({"name": {"async_validator": validator}}, {"name": "x"})) == expected

    async def test_deferred_callback(self):
        def validator(rule, value, callback, source, options):
            asyncio.get_running_loop().call_later(0.01, callback, "too late")

        result = await run({"name": {"async_validator": validator}}, {"name": "x"})
        assert messages_of(result) == ["too late"]

    async def test_callback_from_coroutine(self):
        async def validator(rule, value, callback, source, options):
            await asyncio.sleep(0)
            callback([ValueError("first"), ValueError("second")])

        result = await run({"name": {"async_validator": validator}}, {"name": "x"})
        assert messages_of(result) == ["first", "second"]


class TestOrdering:
    async def test_rules_keep_their_order(self):
        result = await run(
            {"name": [{"async_validator": slow_failure}, {"validator": lambda *args: "sync failure"}]},
            {"name": "x"},
        )
        assert messages_of(result) == ["slow failure", "sync failure"]

    async def test_fields_keep_their_order(self):
        result = await run(
            {"b": {"async_validator": slow_failure}, "a": {"type": "number"}},
            {"a": "x", "b": "y"},
        )
        assert [error.field for error in result.errors] == ["b", "a"]

    async def test_checker_messages_keep_their_order(self):
        result = await run({"name": [{"type": "string", "min": 5}, {"pattern": "^x"}]}, {"name": "abc"})
        assert messages_of(result) == ["name must be at least 5 characters", "name value abc does not match pattern ^x"]


class TestEarlyStop:
    async def test_first_reports_a_single_error(self):
        result = await run(
            {"a": [{"type": "number"}, {"type": "integer"}], "b": {"type": "number"}},
            {"a": "x", "b": "y"},
            first=True,
        )
        assert result.num_errors_total == 1
        assert result.failed_fields == ["a"]
        assert messages_of(result) == ["a is not a number"]

    async def test_first_without_errors(self):
        result = await run({"a": {"type": "number"}, "b": {"type": "number"}}, {"a": 1, "b": 2}, first=True)
        assert result.succeeded

    async def test_first_doesnt_wait_for_pending_validators(self):
        result = await asyncio.wait_for(
            run({"slow": {"async_validator": never_completes}, "b": {"type": "number"}}, {"b": "y"}, first=True),
            timeout=1,
        )
        assert messages_of(result) == ["b is not a number"]

    async def test_first_fields_for_all_fields(self):
        descriptor = {
            "a": [{"type": "string", "min": 5}, {"pattern": "^x"}],
            "b": [{"type": "string", "min": 5}, {"pattern": "^x"}],
        }
        result = await run(descriptor, {"a": "abc", "b": "abc"}, first_fields=True)
        assert result.num_errors_per_field == {"a": 1, "b": 1}
        assert result.fields["a"][0].message == "a must be at least 5 characters"

    async def test_first_fields_for_some_fields(self):
        descriptor = {
            "a": [{"type": "string", "min": 5}, {"pattern": "^x"}],
            "c": [{"type": "string", "min": 5}, {"pattern": "^x"}],
        }
        result = await run(descriptor, {"a": "abc", "c": "abc"}, first_fields=["a"])
        assert result.num_errors_per_field == {"a": 1, "c": 2}

    async def test_first_fields_skips_later_validators(self):
        calls: list[str] = []

        def validator(rule, value, callback, source, options):
            calls.append(rule.full_field)

        await run({"a": [{"type": "number"}, validator]}, {"a": "x"}, first_fields=True)
        assert calls == []


class TestValidationManager:
    async def test_validate(self):
        rules = normalize_descriptor({"name": {"type": "string", "required": True}, "age": {"type": "number"}})
        manager = ValidationManager(rules, ValidateOptions())
        source, result = await manager.validate({"age": "old"})
        assert source == {"age": "old"}
        assert result.failed_fields == ["name", "age"]
        assert [str(error) for error in result.errors] == ["name: name is required", "age: age is not a number"]

    async def test_error_factory(self):
        def error_factory(rule, message) -> Optional[dict[str, str]]:
            return {"path": rule.full_field, "text": message}

        result = await run({"name": {"required": True}}, {}, error=error_factory)
        assert result.errors == [{"path": "name", "text": "name is required"}]
        assert result.fields == {"name": [{"path": "name", "text": "name is required"}]}

    async def test_error_carries_value(self):
        result = await run({"age": {"type": "number"}}, {"age": "old"})
        assert result.errors[0].field_value == "old"

    async def test_transform(self):
        rules = normalize_descriptor({"name": {"type": "string", "min": 2, "transform": str.strip}})
        source = {"name": "  ab  "}
        resolved_source, result = await ValidationManager(rules, ValidateOptions()).validate(source)
        assert result.succeeded
        assert resolved_source == {"name": "ab"}
        assert source == {"name": "  ab  "}

    async def test_transformed_value_is_checked(self):
        result = await run({"name": {"type": "string", "min": 2, "transform": str.strip}}, {"name": "  a  "})
        assert messages_of(result) == ["name must be at least 2 characters"]

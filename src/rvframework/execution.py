"""
Contains the logic to execute the rules of a schema on a data set
"""
import asyncio
import inspect
import itertools
import logging
from typing import Any, Mapping, Optional

from .analysis import FieldError, ValidationResult
from .checkers import CHECKERS, REQUIRED_CHECKER
from .errors import ValidateError, ValidatorMisuseError
from .messages import format_message
from .normalization import child_rules, internalize, select_fields
from .options import ValidateOptions
from .rule import InternalRule, NormalizedRules
from .types import CheckerFunction, ErrorInput, RuleType, Value, Values
from .utils.query_object import MISSING, field_value, is_record, is_sequence, with_field

logger = logging.getLogger(__name__)

_background_tasks: set[asyncio.Future] = set()
"""Keeps the tasks alive which are still running after a run completed early"""


def _forget(task: asyncio.Future) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("A validation task failed after its run completed; the result is discarded", exc_info=error)


def _to_messages(error: ErrorInput) -> list[str]:
    """Converts the error(s) passed to a validator callback into messages. Falsy values are no errors."""
    if error is None:
        return []
    if isinstance(error, (list, tuple)):
        return list(itertools.chain.from_iterable(_to_messages(item) for item in error))
    if isinstance(error, BaseException):
        return [str(error) or type(error).__name__]
    if not error:
        return []
    return [str(error)]


def _is_error_like(value: Any) -> bool:
    return value is None or isinstance(value, (str, bool, BaseException))


class _Completion:
    """
    Adapts the callback convention of custom validators to a future. Only the first call of `callback` counts.
    """

    def __init__(self, rule: InternalRule, options: ValidateOptions):
        self._rule = rule
        self._options = options
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._returned = False

    @property
    def called(self) -> bool:
        """True if the validator already completed"""
        return self._future.done()

    def callback(self, error: ErrorInput = None) -> None:
        """The callback handed to custom validators. Call it without argument to signal success."""
        if self._future.done():
            if self._options.suppress_warning:
                return
            if self._returned:
                logger.warning(
                    "%s: validator called back after it returned, ignoring the late result %s",
                    self._rule.full_field,
                    _to_messages(error),
                )
            else:
                logger.warning(
                    "%s: validator completed more than once, ignoring the later result", self._rule.full_field
                )
            return
        self._future.set_result(_to_messages(error))

    def complete(self, messages: list[str]) -> None:
        """Completes with `messages` unless the validator already invoked the callback"""
        if not self._future.done():
            self._future.set_result(messages)

    def returned(self, messages: list[str]) -> None:
        """Completes with the outcome of a synchronous validator. Later callback calls are ignored."""
        self._returned = True
        self.complete(messages)

    def messages(self) -> list[str]:
        """The result of a completed validator"""
        return self._future.result()

    async def wait(self) -> list[str]:
        """Waits until the validator completes"""
        return await self._future


class ValidationManager:
    """
    Drives one validation run of a data set against normalized rules. Every run needs its own instance; the manager
    holds the state of the run (early stop, reported validator errors). Nested objects and arrays are validated by
    child managers.
    """

    def __init__(
        self,
        rules: NormalizedRules,
        options: ValidateOptions,
        registry: Optional[Mapping[str, CheckerFunction]] = None,
        parent: Optional[InternalRule] = None,
    ):
        self.rules = rules
        self.options = options
        self.registry: Mapping[str, CheckerFunction] = CHECKERS if registry is None else registry
        self.parent = parent
        """The rule of the enclosing field if this manager validates a nested object or array"""
        self.validator_errors: list[ValidatorMisuseError] = []
        self._completed = False
        self._first_failure: Optional[asyncio.Future] = None

    def _prepare(self, source: Values) -> tuple[dict[str, list[tuple[InternalRule, Value, Values]]], Values]:
        """
        Binds the rules to the fields and applies the transforms. Returns the rules per field together with the value
        and the source they are checked against, and the source including all transformed values.
        """
        entries: dict[str, list[tuple[InternalRule, Value, Values]]] = {}
        working_source = source
        selected = select_fields(self.rules, self.options.keys, warn=not self.options.suppress_warning)
        for name, items in selected.items():
            value = field_value(source, name)
            if value is MISSING:
                value = None
            for item in items:
                rule = internalize(item, name, self.parent, self.registry)
                if rule.transform is not None:
                    value = rule.transform(value)
                    working_source = with_field(working_source, name, value)
                entries.setdefault(name, []).append((rule, value, working_source))
        return entries, working_source

    async def validate(self, source: Values) -> tuple[Values, ValidationResult]:
        """
        Validates `source`. Returns the source with all transformed values and the result of the run.
        Fields are validated concurrently; the errors in the result are ordered by the fields of the schema and the
        rules of each field. If `options.first` is set, the run completes with the first failing rule and leaves the
        remaining validators running in the background, their results are discarded.
        """
        entries, resolved_source = self._prepare(source)
        result = ValidationResult(list(entries))
        if not entries:
            return resolved_source, result
        if self.options.first:
            self._first_failure = asyncio.get_running_loop().create_future()
        field_runs = asyncio.gather(
            *(self._validate_field(name, field_entries) for name, field_entries in entries.items())
        )
        if self._first_failure is None:
            outcomes = await field_runs
            self._completed = True
            for name, field_errors in zip(entries, outcomes):
                result.record(name, field_errors)
        else:
            await asyncio.wait({field_runs, self._first_failure}, return_when=asyncio.FIRST_COMPLETED)
            self._completed = True
            if self._first_failure.done():
                name, first_error = self._first_failure.result()
                result.record(name, [first_error])
                _background_tasks.add(field_runs)
                field_runs.add_done_callback(_forget)
            else:
                field_runs.result()
                self._first_failure.cancel()
        result.validator_errors.extend(self.validator_errors)
        return resolved_source, result

    async def _validate_field(self, name: str, entries: list[tuple[InternalRule, Value, Values]]) -> list[FieldError]:
        if self.options.applies_first_fields(name):
            for rule, value, source in entries:
                field_errors = await self._run_rule(name, rule, value, source)
                if field_errors:
                    return field_errors
            return []
        outcomes = await asyncio.gather(*(self._run_rule(name, rule, value, source) for rule, value, source in entries))
        return list(itertools.chain.from_iterable(outcomes))

    async def _run_rule(self, name: str, rule: InternalRule, value: Value, source: Values) -> list[FieldError]:
        field_errors = await self._execute_rule(rule, value, source)
        if field_errors and self._first_failure is not None and not self._first_failure.done():
            self._first_failure.set_result((name, field_errors[0]))
        return field_errors

    async def _execute_rule(self, rule: InternalRule, value: Value, source: Values) -> list[FieldError]:
        """
        Executes a single rule: the custom (async) validator if there is one, the type checker otherwise.
        Afterwards the content of objects and arrays is validated if the rule describes it.
        """
        if rule.async_validator is not None:
            messages = await self._execute_async_validator(rule, value, source)
        elif rule.validator is not None:
            messages = self._execute_sync_validator(rule, value, source)
        else:
            messages = self._execute_checker(rule, value, source)
        if messages:
            logger.debug("Rule of field %s failed: %s", rule.full_field, messages)
            if rule.message is not None:
                messages = [format_message(rule.message, rule.display_name)]
        field_errors: list[FieldError] = [
            (rule.full_field, self._build_error(rule, value, message)) for message in messages
        ]
        if field_errors and self.options.first:
            return field_errors
        if self._descends(rule, value):
            field_errors.extend(await self._validate_nested(rule, value))
        return field_errors

    def _execute_checker(self, rule: InternalRule, value: Value, source: Values) -> list[str]:
        checker = self.registry[rule.type_name or REQUIRED_CHECKER]
        messages: list[str] = []
        checker(rule, value, source, messages, self.options)
        return messages

    def _execute_sync_validator(self, rule: InternalRule, value: Value, source: Values) -> list[str]:
        """
        Executes a synchronous validator. It either invokes the callback before it returns, or returns its result:
        `None` or `True` (passed), `False` (failed), an error message, an exception or a list of those.
        A callback invoked after the validator returned is logged and ignored.
        """
        assert rule.validator is not None
        completion = _Completion(rule, self.options)
        try:
            outcome = rule.validator(rule, value, completion.callback, source, self.options)
            if inspect.isawaitable(outcome):
                if inspect.iscoroutine(outcome):
                    outcome.close()
                raise ValidatorMisuseError(
                    rule.full_field, "synchronous validator returned an awaitable, use async_validator instead"
                )
            messages = completion.messages() if completion.called else self._interpret_outcome(rule, outcome)
        except ValidatorMisuseError as misuse:
            self._report_validator_error(misuse)
            messages = [misuse.reason]
        except Exception as error:  # pylint: disable=broad-except
            self._report_validator_error(ValidatorMisuseError(rule.full_field, f"validator raised {error!r}"), error)
            messages = _to_messages(error)
        completion.returned(messages)
        return messages

    async def _execute_async_validator(self, rule: InternalRule, value: Value, source: Values) -> list[str]:
        """
        Executes an asynchronous validator. It either invokes the callback (at any time) or returns an awaitable.
        A completed awaitable is interpreted like the return value of a synchronous validator, a raised exception
        fails the rule.
        """
        assert rule.async_validator is not None
        completion = _Completion(rule, self.options)
        try:
            outcome = rule.async_validator(rule, value, completion.callback, source, self.options)
            if inspect.isawaitable(outcome):
                returned = await outcome
                if not completion.called:
                    completion.complete(self._interpret_outcome(rule, returned))
        except ValidatorMisuseError as misuse:
            self._report_validator_error(misuse)
            completion.complete([misuse.reason])
        except Exception as error:  # pylint: disable=broad-except
            logger.debug("Async validator of field %s raised %r", rule.full_field, error)
            completion.complete(_to_messages(error))
        return await completion.wait()

    def _interpret_outcome(self, rule: InternalRule, outcome: Any) -> list[str]:
        if outcome is None or outcome is True:
            return []
        if outcome is False:
            if rule.message is not None:
                return [format_message(rule.message, rule.display_name)]
            return [f"{rule.display_name} fails"]
        if isinstance(outcome, (str, BaseException)):
            return _to_messages(outcome)
        if isinstance(outcome, (list, tuple)) and all(_is_error_like(item) for item in outcome):
            return _to_messages([item for item in outcome if item is not True])
        raise ValidatorMisuseError(rule.full_field, f"validator returned an unsupported value {outcome!r}")

    def _report_validator_error(self, misuse: ValidatorMisuseError, cause: Optional[BaseException] = None) -> None:
        if self.options.suppress_validator_error or self._completed:
            return
        logger.error("Custom validator misbehaved: %s", misuse, exc_info=cause)
        self.validator_errors.append(misuse)

    def _build_error(self, rule: InternalRule, value: Value, message: str) -> Any:
        if self.options.error is not None:
            return self.options.error(rule, message)
        return ValidateError(message=message, field=rule.full_field, field_value=value)

    @staticmethod
    def _descends(rule: InternalRule, value: Value) -> bool:
        if not rule.is_deep or value is None:
            return False
        if rule.type_name == RuleType.OBJECT.value:
            return is_record(value)
        return is_sequence(value)

    async def _validate_nested(self, rule: InternalRule, value: Value) -> list[FieldError]:
        nested_rules = child_rules(rule, value)
        if not nested_rules:
            return []
        manager = ValidationManager(
            nested_rules,
            self.options.for_nested_run(rule.options),
            registry=self.registry,
            parent=rule,
        )
        _, nested_result = await manager.validate(value)
        self.validator_errors.extend(nested_result.validator_errors)
        return nested_result.field_errors

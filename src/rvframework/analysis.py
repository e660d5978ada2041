"""
Contains functionality to collect and analyze the errors of a validation run
"""
import itertools
from typing import Any, Optional

from .errors import ValidatorMisuseError
from .types import ValidateFieldsError

FieldError = tuple[str, Any]
"""An error together with the full path of the field it belongs to"""


def _extract_field(field_error: FieldError) -> str:
    return field_error[0]


class ValidationResult:
    """
    `ValidationManager.validate` returns an instance of this class. It keeps the errors of every validated field in
    schema order and provides them as flat list (`errors`) and grouped by field path (`fields`).
    Note that the values are calculated only if you use them.
    """

    def __init__(self, field_names: Optional[list[str]] = None):
        self._field_errors: dict[str, list[FieldError]] = {name: [] for name in field_names or []}
        self.validator_errors: list[ValidatorMisuseError] = []
        """Custom validators which violated the calling convention (unless suppressed)"""

        self._errors: Optional[list[Any]] = None
        self._fields: Optional[ValidateFieldsError] = None
        self._num_errors_per_field: Optional[dict[str, int]] = None

    def _invalidate(self):
        self._errors = None
        self._fields = None
        self._num_errors_per_field = None

    def record(self, field_name: str, field_errors: list[FieldError]) -> None:
        """
        Stores the errors of the (top level) field `field_name`. Every error is paired with the full path of the
        (possibly nested) field it belongs to.
        """
        self._field_errors.setdefault(field_name, []).extend(field_errors)
        self._invalidate()

    @property
    def field_errors(self) -> list[FieldError]:
        """All errors paired with their field path, ordered by the top level fields of the schema"""
        return list(itertools.chain.from_iterable(self._field_errors.values()))

    @property
    def errors(self) -> Optional[list[Any]]:
        """The flat list of errors or None if no rule failed"""
        if self._errors is None:
            self._errors = [error for _, error in self.field_errors]
        return self._errors or None

    @property
    def fields(self) -> ValidateFieldsError:
        """Maps the path of every failed field onto its errors"""
        if self._fields is None:
            self._fields = {}
            for field_path, error in self.field_errors:
                self._fields.setdefault(field_path, []).append(error)
        return self._fields

    @property
    def succeeded(self) -> bool:
        """True if no rule failed"""
        return self.errors is None

    @property
    def num_errors_total(self) -> int:
        """Number of errors of all fields in total"""
        return len(self.errors or [])

    @property
    def failed_fields(self) -> list[str]:
        """Paths of all fields with at least one error (in order of their first error)"""
        return list(self.fields.keys())

    @property
    def num_errors_per_field(self) -> dict[str, int]:
        """
        Maps the path of every failed field onto the number of its errors.
        """
        if self._num_errors_per_field is None:
            self._num_errors_per_field = {
                key: sum(1 for _ in values_iter)
                for key, values_iter in itertools.groupby(
                    sorted(self.field_errors, key=_extract_field), key=_extract_field
                )
            }
        return self._num_errors_per_field

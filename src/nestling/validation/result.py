"""Validation result — immutable container for validated data or errors."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of running field rules over one level of data.

    ``is_valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = validate_data(data, rules)
        if not result:
            return form.with_errors(result.errors)

    ``data`` contains the values of the fields that passed every rule.

    ``errors`` maps field names to lists of raw (untranslated) messages::

        {"title": [ErrorMessage("This field is required")]}
    """

    data: dict[str, str]
    errors: dict[str, list[Any]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        """Falsy when invalid — enables ``if not result:`` pattern."""
        return self.is_valid

"""Nestling exception hierarchy.

Shared across the traversal engine, the built-in validators, and
submission binding so every module raises and catches the same types.

A form that fails validation is not an error: it comes back with
``errors`` populated and ``valid=False``. Exceptions here signal setup
mistakes or collaborators that broke their contract.
"""


class NestlingError(Exception):
    """Base for all nestling-specific errors."""


class ConfigurationError(NestlingError):
    """Raised when validation cannot be configured for a form.

    Typically: no validator strategy on the form type and no process-wide
    default. Never caught inside the traversal.
    """


class ValidatorContractError(NestlingError):
    """Raised when a validator strategy returns a malformed result.

    Attributes:
        validator: The offending strategy.
        form_type: Name of the form type being validated.
    """

    def __init__(self, validator: object, form_type: str, detail: str) -> None:
        self.validator = validator
        self.form_type = form_type
        name = getattr(validator, "__qualname__", None) or type(validator).__qualname__
        super().__init__(f"Validator {name} broke its contract on form {form_type!r}: {detail}")


class FormBindingError(NestlingError):
    """Raised when submitted params cannot be bound to a form tree.

    Attributes:
        errors: Dict mapping param paths to lists of error messages.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Form binding failed for: {fields}")

"""Built-in validator strategies.

``RulesValidator``
    Runs the per-field rules declared on the form type.

``SchemaValidator``
    Binds the form's values to a dataclass schema, reporting missing
    required fields and values that cannot be coerced to the field type.

``FunctionValidator``
    Wraps a plain ``(form) -> errors`` function.

All three validate a single level and return ``form.with_errors(...)``.
The traversal engine handles nested forms and collections.
"""

import types
from collections.abc import Callable, Mapping, Sequence
from dataclasses import MISSING, is_dataclass
from dataclasses import fields as dc_fields
from typing import Any, get_type_hints

from nestling.errors import ConfigurationError, FormBindingError
from nestling.form import Form
from nestling.validation.messages import ErrorMessage
from nestling.validation.result import ValidationResult
from nestling.validation.rules import Rule, required


def validate_data(
    data: Mapping[str, str] | dict[str, str],
    rules: Mapping[str, Sequence[Rule]],
) -> ValidationResult:
    """Run field rules over a flat mapping of values.

    Args:
        data: Field names to string values. Missing fields count as ``""``.
        rules: Field names to lists of rules. Each rule returns a message
            on failure, or ``None`` on success.

    Returns:
        A ``ValidationResult`` with ``.data`` (values that passed) and
        ``.errors`` (field → list of raw messages). Fields without
        errors have no key in ``.errors``.

    Example::

        result = validate_data(form_data, {
            "title": [required, max_length(200)],
            "body": [required, min_length(10)],
        })
    """
    errors: dict[str, list[Any]] = {}
    cleaned: dict[str, str] = {}

    for field_name, field_rules in rules.items():
        value = data.get(field_name) or ""

        field_errors: list[Any] = []
        for rule in field_rules:
            error = rule(value)
            if error is not None:
                field_errors.append(error)
                # No point running max_length on an empty string
                if rule is required:
                    break

        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    return ValidationResult(data=cleaned, errors=errors)


class RulesValidator:
    """Validate one form level against ``form.type.rules``.

    Pass *rules* to use the same rule set for every form type instead::

        FormType("user", validator=RulesValidator({"name": [required]}))
    """

    __slots__ = ("rules",)

    def __init__(self, rules: Mapping[str, Sequence[Rule]] | None = None) -> None:
        self.rules = rules

    def validate(self, form: Form) -> Form:
        rules = form.type.rules if self.rules is None else self.rules
        values = {name: form.value(name) for name in rules}
        return form.with_errors(validate_data(values, rules).errors)

    def __repr__(self) -> str:
        return f"RulesValidator({self.rules!r})"


# Type coercion map for schema binding
_COERCIONS: dict[type, Any] = {
    str: lambda v: v.strip(),
    int: int,
    float: float,
    bool: lambda v: v.strip().lower() in ("true", "1", "yes", "on"),
}


class SchemaValidator:
    """Validate one form level by binding it to ``form.type.schema``.

    The schema is a dataclass. Fields without defaults are required;
    blank submissions count as missing. ``str``, ``int``, ``float`` and
    ``bool`` annotations (and ``X | None``) are coerced::

        @dataclass(frozen=True, slots=True)
        class Address:
            city: str
            zip_code: int | None = None

        FormType("address", validator=SchemaValidator(), schema=Address)
    """

    __slots__ = ()

    def validate(self, form: Form) -> Form:
        _, errors = _bind_schema(form)
        return form.with_errors(errors)

    def load(self, form: Form) -> Any:
        """Return a schema instance built from *form*'s values.

        Raises:
            FormBindingError: Required fields are missing or coercion failed.
        """
        instance, errors = _bind_schema(form)
        if errors:
            raise FormBindingError(
                {name: [str(message) for message in messages] for name, messages in errors.items()}
            )
        return instance

    def __repr__(self) -> str:
        return "SchemaValidator()"


class FunctionValidator:
    """Adapt a ``(form) -> {field: [messages]}`` function into a strategy."""

    __slots__ = ("func",)

    def __init__(self, func: Callable[[Form], Mapping[str, Sequence[Any]]]) -> None:
        self.func = func

    def validate(self, form: Form) -> Form:
        return form.with_errors(self.func(form))

    def __repr__(self) -> str:
        return f"FunctionValidator({getattr(self.func, '__qualname__', self.func)!r})"


def _bind_schema(form: Form) -> tuple[Any, dict[str, list[ErrorMessage]]]:
    """Coerce *form*'s values into its schema. Returns (instance, errors)."""
    schema = form.type.schema
    if schema is None or not is_dataclass(schema):
        msg = f"SchemaValidator needs a dataclass schema on form type {form.type.name!r}"
        raise ConfigurationError(msg)

    hints = get_type_hints(schema)
    errors: dict[str, list[ErrorMessage]] = {}
    values: dict[str, Any] = {}

    for f in dc_fields(schema):
        raw = form.value(f.name)

        if not raw.strip():
            if f.default is not MISSING:
                values[f.name] = f.default
            elif f.default_factory is not MISSING:
                values[f.name] = f.default_factory()
            else:
                errors.setdefault(f.name, []).append(
                    ErrorMessage("{field} is required", {"field": f.name})
                )
            continue

        base_type = _unwrap_optional(hints.get(f.name, str))
        coerce = _COERCIONS.get(base_type, base_type)

        try:
            values[f.name] = coerce(raw)
        except ValueError, TypeError, ArithmeticError:
            errors.setdefault(f.name, []).append(
                ErrorMessage(
                    "Invalid value for {field}: expected {type}",
                    {"field": f.name, "type": base_type.__name__},
                )
            )

    if errors:
        return None, errors
    return schema(**values), errors


def _unwrap_optional(hint: Any) -> type:
    """Extract the base type from ``X | None`` or plain ``X``."""
    if isinstance(hint, types.UnionType):
        args = [a for a in hint.__args__ if a is not type(None)]
        if args:
            return args[0]
    return hint if isinstance(hint, type) else str

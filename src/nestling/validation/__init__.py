"""Built-in validator strategies, field rules, and translators.

Usage::

    from nestling import Form, FormType, Field, ValidatorConfig, validate
    from nestling.validation import RulesValidator, format_error, max_length, required

    post = FormType("post", rules={
        "title": [required, max_length(200)],
        "body": [required],
    })
    config = ValidatorConfig(validator=RulesValidator(), translate_error=format_error)

    form = validate(Form(post, items=(Field("title"), Field("body"))), config)
    # form.errors == {"title": ["This field is required"],
    #                 "body": ["This field is required"]}
"""

from nestling.validation.messages import ErrorMessage, catalog_translator, format_error
from nestling.validation.result import ValidationResult
from nestling.validation.rules import (
    Rule,
    email,
    integer,
    matches,
    max_length,
    min_length,
    number,
    one_of,
    required,
    url,
)
from nestling.validation.strategies import (
    FunctionValidator,
    RulesValidator,
    SchemaValidator,
    validate_data,
)

__all__ = [
    "ErrorMessage",
    "FunctionValidator",
    "Rule",
    "RulesValidator",
    "SchemaValidator",
    "ValidationResult",
    "catalog_translator",
    "email",
    "format_error",
    "integer",
    "matches",
    "max_length",
    "min_length",
    "number",
    "one_of",
    "required",
    "url",
    "validate_data",
]

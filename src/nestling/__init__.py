"""Nestling — recursive validation for nested form trees.

A form is a tree: plain fields, nested sub-forms, and repeatable
collections of sub-forms. Nestling walks the tree, runs a pluggable
validator strategy at every level, translates the messages, and
computes ``valid`` bottom-up. Collection items marked for removal are
skipped and always count as valid.

Basic usage::

    from nestling import Field, Form, FormType, ValidatorConfig, validate
    from nestling.validation import RulesValidator, required

    user = FormType("user", rules={"name": [required]})
    config = ValidatorConfig(validator=RulesValidator())

    form = validate(Form(user, items=(Field("name"),)), config)
    form.valid   # False
    form.errors  # {"name": [ErrorMessage("This field is required")]}

Submissions (``pip install nestling[forms]`` for multipart)::

    from nestling.params import bind, nest_params, parse_form_data

    flat = await parse_form_data(body, content_type)
    form = validate(bind(form, nest_params(flat)))
"""

__version__ = "0.1.0"
__all__ = [
    "CollectionItem",
    "ConfigurationError",
    "Field",
    "Form",
    "FormCollection",
    "FormItem",
    "FormNested",
    "FormType",
    "NestlingError",
    "ValidatorConfig",
    "ValidatorContractError",
    "ValidatorStrategy",
    "configure",
    "get_config",
    "reset_config",
    "validate",
]


# Public name → defining module
_LAZY_IMPORTS: dict[str, str] = {
    "CollectionItem": "nestling.form",
    "Field": "nestling.form",
    "Form": "nestling.form",
    "FormCollection": "nestling.form",
    "FormItem": "nestling.form",
    "FormNested": "nestling.form",
    "FormType": "nestling.form",
    "ValidatorConfig": "nestling.config",
    "configure": "nestling.config",
    "get_config": "nestling.config",
    "reset_config": "nestling.config",
    "ValidatorStrategy": "nestling.validator",
    "validate": "nestling.validator",
    "ConfigurationError": "nestling.errors",
    "NestlingError": "nestling.errors",
    "ValidatorContractError": "nestling.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import nestling`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)

"""Recursive validation over a form tree.

The engine does no field-level validation of its own. At every level it
hands the form to a pluggable *validator strategy*, translates the
messages the strategy reported, recurses into nested forms and
collections, and finally computes ``valid`` from the updated children.

A strategy is any object matching::

    class MyValidator:
        def validate(self, form: Form) -> Form:
            return form.with_errors({"name": ["can't be blank"]})

or a plain callable with the same signature. It fills ``errors`` for
one level only — recursion is the engine's job.

Strategy resolution, per level::

    form.type.validator  or  config.validator  or  ConfigurationError

so one tree can mix strategies. Collection items marked for removal are
never validated; their ``valid`` is forced to ``True``.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from typing import Any, Protocol

from nestling.config import ValidatorConfig, get_config
from nestling.errors import ConfigurationError, ValidatorContractError
from nestling.form import CollectionItem, Field, Form, FormCollection, FormItem, FormNested

logger = logging.getLogger("nestling.validator")

# A translation function: raw message in, display message out
type Translator = Callable[[Any], Any]


class ValidatorStrategy(Protocol):
    """Protocol for validator strategies.

    The engine checks the shape, not the lineage. Implementations must
    populate ``errors`` (or leave it empty), must not touch ``valid``,
    and must not recurse into nested forms or collections.
    """

    def validate(self, form: Form) -> Form: ...


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate(form: Form, config: ValidatorConfig | None = None) -> Form:
    """Validate *form* and every sub-form beneath it.

    Args:
        form: The root of the tree. ``errors`` and ``valid`` may be stale.
        config: Validation configuration. Defaults to the process-wide
            configuration installed with ``nestling.configure()``.

    Returns:
        A tree of identical shape with translated ``errors`` and a
        computed ``valid`` at every level.

    Raises:
        ConfigurationError: No validator strategy for some level.
        ValidatorContractError: A strategy returned a malformed form.

    Example::

        form = validate(form, ValidatorConfig(validator=RulesValidator()))
        if not form.is_valid:
            ...
    """
    if config is None:
        config = get_config()
    # Translator is resolved once and shared by the whole traversal
    return _validate(form, config, config.translator)


def resolve_validator(form: Form, config: ValidatorConfig) -> Any:
    """Return the strategy for *form*: the type's override, else the default.

    Raises:
        ConfigurationError: Neither the form type nor *config* names one.
    """
    validator = form.type.validator or config.validator
    if validator is None:
        msg = (
            f"No validator for form type {form.type.name!r}. "
            "Set FormType(validator=...) or configure a default with "
            "nestling.configure(ValidatorConfig(validator=...))."
        )
        raise ConfigurationError(msg)
    return validator


def translate_errors(form: Form, translate: Translator) -> Form:
    """Return *form* with *translate* applied to every error message.

    Keys, key order, per-key order, and message counts are preserved.
    """
    errors = {
        key: [translate(message) for message in messages]
        for key, messages in form.errors.items()
    }
    return replace(form, errors=errors)


def is_valid(form: Form) -> bool:
    """Compute validity from own errors and already-validated children.

    True when every error sequence is empty, every nested form is valid,
    and every collection item is valid. Removed items count as valid
    because the traversal forces their flag.
    """
    return (
        all(not messages for messages in form.errors.values())
        and all(nested.form.is_valid for nested in form.get_nested())
        and all(
            item.form.is_valid
            for collection in form.get_collections()
            for item in collection.forms
        )
    )


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def _validate(form: Form, config: ValidatorConfig, translate: Translator) -> Form:
    validator = resolve_validator(form, config)
    form = translate_errors(_run_validator(validator, form), translate)

    items = tuple(_validate_item(item, config, translate) for item in form.items)
    form = replace(form, items=items)

    valid = is_valid(form)
    logger.debug("validated %s: valid=%s errors=%d", form.type.name, valid, len(form.errors))
    return replace(form, valid=valid)


def _validate_item(item: FormItem, config: ValidatorConfig, translate: Translator) -> FormItem:
    match item:
        case Field():
            return item
        case FormNested(form=child):
            return replace(item, form=_validate(child, config, translate))
        case FormCollection(forms=entries):
            return replace(
                item,
                forms=tuple(_validate_entry(item, entry, config, translate) for entry in entries),
            )
        case _:
            msg = f"Unknown form item: {item!r}"
            raise TypeError(msg)


def _validate_entry(
    collection: FormCollection,
    entry: CollectionItem,
    config: ValidatorConfig,
    translate: Translator,
) -> CollectionItem:
    if collection.to_be_removed(entry):
        logger.debug("skipped %s item marked for removal", collection.name)
        return replace(entry, form=replace(entry.form, valid=True))
    return replace(entry, form=_validate(entry.form, config, translate))


def _run_validator(validator: Any, form: Form) -> Form:
    """Invoke *validator* on one level and check what it handed back."""
    run = getattr(validator, "validate", validator)
    result = run(form)

    if not isinstance(result, Form):
        raise ValidatorContractError(
            validator, form.type.name, f"returned {type(result).__name__}, not Form"
        )
    if not isinstance(result.errors, Mapping):
        raise ValidatorContractError(
            validator, form.type.name, f"errors is {type(result.errors).__name__}, not a mapping"
        )
    for key, messages in result.errors.items():
        if isinstance(messages, (str, bytes)) or not isinstance(messages, Sequence):
            raise ValidatorContractError(
                validator, form.type.name, f"errors[{key!r}] must be a sequence of messages"
            )
    return result

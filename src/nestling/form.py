"""The form tree — fields, nested forms, and collections.

A ``Form`` is one level of the tree. Its ``items`` are a closed union of
three kinds::

    Field           leaf, never recursed into
    FormNested      exactly one always-present child form (one-to-one)
    FormCollection  ordered child forms with removal markers (one-to-many)

All nodes are frozen dataclasses. Nothing is mutated in place: the
validator and the binder return updated copies built with
``dataclasses.replace``, so a partially validated tree is never visible
to the caller.

Usage::

    address = FormType("address", rules={"city": [required]})
    phone = FormType("phone", rules={"number": [required]})
    user = FormType("user", rules={"name": [required, max_length(50)]})

    form = Form(user, items=(
        Field("name", value="alice"),
        FormNested("address", Form(address, items=(Field("city"),))),
        FormCollection("phones", forms=(
            CollectionItem(Form(phone, items=(Field("number", value="555"),))),
        )),
    ))
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nestling.validator import ValidatorStrategy

# Submitted values that mark a collection item for removal
_TRUTHY = frozenset({"true", "1", "yes", "on"})


@dataclass(frozen=True, slots=True)
class FormType:
    """Schema and configuration shared by every form of one kind.

    ``validator`` overrides the process-wide default strategy for forms
    of this type. ``rules`` and ``schema`` are read by the built-in
    strategies (``RulesValidator`` and ``SchemaValidator``); the
    traversal engine itself never looks at them.
    """

    name: str
    validator: ValidatorStrategy | Callable[[Form], Form] | None = None
    rules: Mapping[str, Sequence[Callable[[str], Any]]] = field(default_factory=dict)
    schema: type | None = None


@dataclass(frozen=True, slots=True)
class Field:
    """A leaf input. Holds the submitted value as a string."""

    name: str
    value: str = ""
    label: str = ""
    required: bool = False


@dataclass(frozen=True, slots=True)
class Form:
    """One level of a form tree.

    ``errors`` maps field names to the messages the validator reported.
    A missing key and a key with an empty sequence mean the same thing.

    ``valid`` is ``None`` until the form has been through
    ``nestling.validate()``.
    """

    type: FormType
    items: tuple[FormItem, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict)
    errors: Mapping[str, Sequence[Any]] = field(default_factory=dict)
    valid: bool | None = None

    @property
    def is_valid(self) -> bool:
        """True only after validation succeeded at every level."""
        return self.valid is True

    def fields(self) -> Iterator[Field]:
        """Leaf fields at this level, in declaration order."""
        return (item for item in self.items if isinstance(item, Field))

    def get_field(self, name: str) -> Field | None:
        for item in self.fields():
            if item.name == name:
                return item
        return None

    def get_nested(self) -> list[FormNested]:
        """Nested sub-forms at this level."""
        return [item for item in self.items if isinstance(item, FormNested)]

    def get_collections(self) -> list[FormCollection]:
        """Form collections at this level."""
        return [item for item in self.items if isinstance(item, FormCollection)]

    def value(self, name: str) -> str:
        """Return the value of field *name*, falling back to ``data``.

        Missing values are returned as ``""`` so validators never see ``None``.
        """
        item = self.get_field(name)
        if item is not None:
            return item.value
        raw = self.data.get(name)
        return "" if raw is None else str(raw)

    def with_errors(self, errors: Mapping[str, Sequence[Any]]) -> Form:
        """Return a copy with *errors* replacing the current errors."""
        return replace(self, errors=errors)


@dataclass(frozen=True, slots=True)
class FormNested:
    """A single embedded sub-form. Always validated, never removed."""

    name: str
    form: Form


@dataclass(frozen=True, slots=True)
class CollectionItem:
    """One entry in a ``FormCollection``: a child form plus its removal flag."""

    form: Form
    removed: bool = False


@dataclass(frozen=True, slots=True)
class FormCollection:
    """A repeatable list of sub-forms.

    An item is marked for removal either explicitly (``removed=True``) or
    by a truthy value for its form's ``delete_field`` — the hidden
    checkbox a "remove" button toggles. The value is read like any other
    field: a declared ``Field`` first, then ``data``.
    """

    name: str
    forms: tuple[CollectionItem, ...] = ()
    delete_field: str = "_delete"

    def to_be_removed(self, item: CollectionItem) -> bool:
        """Return True if *item* is marked for removal."""
        if item.removed:
            return True
        marker = item.form.data.get(self.delete_field)
        if isinstance(marker, bool):
            return marker
        return item.form.value(self.delete_field).strip().lower() in _TRUTHY

    def active_forms(self) -> list[CollectionItem]:
        """Items that are not marked for removal."""
        return [item for item in self.forms if not self.to_be_removed(item)]


# Closed union over the kinds of form item
type FormItem = Field | FormNested | FormCollection

"""Error messages and translators.

Built-in rules report an ``ErrorMessage`` — a message template plus the
values to fill it with — rather than a finished string. That keeps the
template usable as a translation key::

    ErrorMessage("Must be at most {count} characters", {"count": 200})

A translator is any ``(message) -> display`` callable. Set one on
``ValidatorConfig(translate_error=...)``; the traversal applies it to
every message of every form in the tree.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ErrorMessage:
    """A message template and its interpolation values.

    Compared by value but not hashable, like the ``params`` mapping it holds.
    """

    text: str
    params: Mapping[str, Any] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def format(self, template: str | None = None) -> str:
        """Fill *template* (default: ``text``) with ``params``."""
        return (template or self.text).format_map(self.params)

    def __str__(self) -> str:
        return self.format()


def format_error(message: Any) -> Any:
    """Stock translator: render ``ErrorMessage`` values, pass others through."""
    if isinstance(message, ErrorMessage):
        return message.format()
    return message


def catalog_translator(catalog: Mapping[str, str]) -> Callable[[Any], Any]:
    """Build a translator from a ``{template: localized template}`` mapping.

    Templates missing from *catalog* are kept as-is. Plain string
    messages are looked up verbatim::

        fr = catalog_translator({
            "This field is required": "Ce champ est obligatoire",
            "Must be at most {count} characters": "{count} caractères maximum",
        })
        configure(ValidatorConfig(validator=RulesValidator(), translate_error=fr))
    """

    def translate(message: Any) -> Any:
        if isinstance(message, ErrorMessage):
            return message.format(catalog.get(message.text))
        if isinstance(message, str):
            return catalog.get(message, message)
        return message

    return translate

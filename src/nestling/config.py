"""Validation configuration.

ValidatorConfig is a frozen dataclass — immutable after creation, passed
explicitly to ``validate()`` or installed once as the process-wide default::

    from nestling import ValidatorConfig, configure
    from nestling.validation import RulesValidator, format_error

    configure(ValidatorConfig(validator=RulesValidator(), translate_error=format_error))
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nestling.validator import ValidatorStrategy


def _identity(message: Any) -> Any:
    return message


@dataclass(frozen=True, slots=True)
class ValidatorConfig:
    """Validation configuration. Immutable after creation.

    Both fields are optional. A missing ``validator`` is only an error
    when a form type does not name its own. A missing
    ``translate_error`` leaves messages exactly as the validator
    produced them.
    """

    validator: ValidatorStrategy | Callable[..., Any] | None = None
    translate_error: Callable[[Any], Any] | None = None

    @property
    def translator(self) -> Callable[[Any], Any]:
        """The translation function, or identity when none is set."""
        return self.translate_error or _identity


# Process-wide default, set once at startup by configure(). Shared by all threads.
_config_lock = threading.Lock()
_default_config: ValidatorConfig | None = None


def configure(config: ValidatorConfig) -> ValidatorConfig | None:
    """Install *config* as the default for ``validate()`` calls without one.

    Returns the previously installed configuration, for ``reset_config()``.
    """
    global _default_config
    with _config_lock:
        previous = _default_config
        _default_config = config
    return previous


def get_config() -> ValidatorConfig:
    """Return the installed default configuration (empty if never configured)."""
    config = _default_config
    if config is None:
        return ValidatorConfig()
    return config


def reset_config(previous: ValidatorConfig | None = None) -> None:
    """Restore *previous* (the value ``configure()`` returned) as the default."""
    global _default_config
    with _config_lock:
        _default_config = previous

"""Built-in field rules for ``RulesValidator``.

Each rule is a callable with the signature::

    def rule(value: str) -> ErrorMessage | None:
        '''Return an error message, or None if valid.'''

Parameterized rules are factory functions that return a rule::

    def max_length(n: int) -> Rule:
        def check(value: str) -> ErrorMessage | None:
            if len(value) > n:
                return ErrorMessage("Must be at most {count} characters", {"count": n})
            return None
        return check

Messages keep their template and parameters apart so a translator can
localize the template before it is filled in. Custom rules may return
plain strings too — anything the configured translator understands.
"""

import re
from collections.abc import Callable
from typing import Any

from nestling.validation.messages import ErrorMessage

# Type alias for a rule function
type Rule = Callable[[str], Any]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: str) -> ErrorMessage | None:
    """Field must be present and non-empty."""
    if not value or not value.strip():
        return ErrorMessage("This field is required")
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Rule:
    """String must be at most *n* characters."""

    def check(value: str) -> ErrorMessage | None:
        if len(value) > n:
            return ErrorMessage("Must be at most {count} characters", {"count": n})
        return None

    return check


def min_length(n: int) -> Rule:
    """String must be at least *n* characters."""

    def check(value: str) -> ErrorMessage | None:
        if len(value) < n:
            return ErrorMessage("Must be at least {count} characters", {"count": n})
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Basic email pattern — checks structure, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: str) -> ErrorMessage | None:
    """Value must be a valid email address (basic format check)."""
    if not _EMAIL_RE.match(value):
        return ErrorMessage("Must be a valid email address")
    return None


# Basic URL pattern — checks scheme + host structure
_URL_RE = re.compile(r"^https?://[^\s/$.?#].\S*$", re.IGNORECASE)


def url(value: str) -> ErrorMessage | None:
    """Value must be a valid URL (http/https)."""
    if not _URL_RE.match(value):
        return ErrorMessage("Must be a valid URL")
    return None


def matches(pattern: str, message: str | None = None) -> Rule:
    """Value must match the given regex pattern.

    A custom *message* is used verbatim as the template.
    """
    compiled = re.compile(pattern)

    def check(value: str) -> ErrorMessage | None:
        if not compiled.match(value):
            if message:
                return ErrorMessage(message)
            return ErrorMessage("Must match pattern: {pattern}", {"pattern": pattern})
        return None

    return check


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: str) -> Rule:
    """Value must be one of the given choices."""
    allowed = frozenset(choices)
    options = ", ".join(sorted(allowed))

    def check(value: str) -> ErrorMessage | None:
        if value not in allowed:
            return ErrorMessage("Must be one of: {options}", {"options": options})
        return None

    return check


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------


def integer(value: str) -> ErrorMessage | None:
    """Value must be a valid integer."""
    try:
        int(value)
    except ValueError, TypeError:
        return ErrorMessage("Must be a whole number")
    return None


def number(value: str) -> ErrorMessage | None:
    """Value must be a valid number (int or float)."""
    try:
        float(value)
    except ValueError, TypeError:
        return ErrorMessage("Must be a number")
    return None

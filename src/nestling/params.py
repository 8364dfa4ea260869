"""Submission parsing and binding — from request body to form tree.

Three steps take a browser submission to a tree ready for ``validate()``::

    flat = await parse_form_data(body, content_type)   # FormData
    params = nest_params(flat)                          # nested dicts
    form = bind(form, params)                           # values in place

Bracketed names address sub-forms and collection items::

    name=alice
    address[city]=Paris
    phones[0][number]=555-0100
    phones[1][number]=
    phones[1][_delete]=true

The last line marks the second phone for removal: ``bind()`` copies it
into that item's ``data``, where ``FormCollection.to_be_removed()``
finds it.

Only text values reach the form tree. Multipart file parts are skipped:
a ``Field`` holds a string, so an upload has nowhere to go.

``python-multipart`` is an optional dependency (``pip install nestling[forms]``).
URL-encoded bodies use stdlib ``urllib.parse`` — no extra dependency.
"""

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import replace
from typing import Any

from nestling.errors import ConfigurationError, FormBindingError
from nestling.form import CollectionItem, Field, Form, FormCollection, FormNested

logger = logging.getLogger("nestling.params")


class FormData(Mapping[str, str]):
    """Immutable flat submission: field name → submitted values.

    ``__getitem__`` returns the first value for a key. ``get_list``
    returns all of them — ``nest_params()`` uses it for ``name[]`` keys.
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, list[str]]) -> None:
        object.__setattr__(self, "_data", data)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"FormData({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return list(self._data.get(key, []))


# ---------------------------------------------------------------------------
# Body parsing
# ---------------------------------------------------------------------------


async def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body into FormData.

    Supports:
    - ``application/x-www-form-urlencoded`` (stdlib, no extra dependency)
    - ``multipart/form-data`` (requires ``python-multipart``)

    Raises:
        ConfigurationError: If multipart parsing is needed but
            ``python-multipart`` is not installed.
        ValueError: If content type is not a supported form encoding.
    """
    ct_lower = content_type.lower().split(";")[0].strip()

    if ct_lower == "application/x-www-form-urlencoded":
        return _parse_urlencoded(body)

    if ct_lower == "multipart/form-data":
        return await _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_urlencoded(body: bytes) -> FormData:
    """Parse URL-encoded form data using stdlib."""
    from urllib.parse import parse_qs

    return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))


async def _parse_multipart(body: bytes, content_type: str) -> FormData:
    """Collect the text parts of a multipart body. File parts are dropped."""
    try:
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install nestling[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    skipped: list[str] = []

    # Current part state
    header_name = ""
    chunks = bytearray()
    part_name: str | None = None
    is_file = False

    def on_part_begin() -> None:
        nonlocal chunks, part_name, is_file
        chunks = bytearray()
        part_name = None
        is_file = False

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        chunks.extend(chunk[start:end])

    def on_part_end() -> None:
        if part_name is None:
            return
        if is_file:
            skipped.append(part_name)
            return
        data.setdefault(part_name, []).append(chunks.decode("utf-8", errors="replace"))

    def on_header_field(hdata: bytes, start: int, end: int) -> None:
        nonlocal header_name
        header_name = hdata[start:end].decode("latin-1").lower()

    def on_header_value(hdata: bytes, start: int, end: int) -> None:
        nonlocal part_name, is_file
        if header_name != "content-disposition":
            return
        _, params = parse_options_header(hdata[start:end])
        name = params.get(b"name")
        if name is not None:
            part_name = name.decode("utf-8")
        is_file = b"filename" in params

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()

    if skipped:
        logger.debug("skipped %d file part(s): %s", len(skipped), skipped)
    return FormData(data)


# ---------------------------------------------------------------------------
# Bracket keys → nested params
# ---------------------------------------------------------------------------

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def nest_params(flat: Mapping[str, str]) -> dict[str, Any]:
    """Decode bracketed keys into nested dicts.

    ``a[b][c]=1`` becomes ``{"a": {"b": {"c": "1"}}}``. A trailing ``[]``
    collects every value of a ``FormData`` key into a list. Numeric
    segments stay string keys (``"0"``, ``"1"``) — ``bind()`` maps them
    onto collection positions.

    Raises:
        FormBindingError: The same path is used both as a value and as
            a group (``a=1`` together with ``a[b]=2``).
    """
    nested: dict[str, Any] = {}
    errors: dict[str, list[str]] = {}

    for key in flat:
        match = _KEY_RE.match(key)
        if match is None:
            # Unbalanced brackets: keep the key verbatim
            path = [key]
        else:
            path = [match.group(1), *_SEGMENT_RE.findall(match.group(2))]

        value: Any
        if path[-1] == "" and len(path) > 1:
            path.pop()
            value = flat.get_list(key) if isinstance(flat, FormData) else [flat[key]]
        else:
            value = flat[key]

        node = nested
        for segment in path[:-1]:
            node = node.setdefault(segment, {})
            if not isinstance(node, dict):
                errors.setdefault(key, []).append(f"{segment!r} is a value, not a group")
                break
        else:
            if isinstance(node.get(path[-1]), dict):
                errors.setdefault(key, []).append(f"{path[-1]!r} is a group, not a value")
            else:
                node[path[-1]] = value

    if errors:
        raise FormBindingError(errors)
    return nested


# ---------------------------------------------------------------------------
# Binding
# ---------------------------------------------------------------------------


def bind(form: Form, params: Mapping[str, Any]) -> Form:
    """Copy submitted *params* into an existing form tree.

    Fields receive their value, and every scalar param of a level is
    merged into that form's ``data`` (so hidden markers like ``_delete``
    are visible to the collection). Nested forms are bound by name;
    collection items by position. Params for nodes the tree does not
    have are ignored — ``bind()`` never adds or removes nodes.

    Raises:
        FormBindingError: A group was expected where a plain value was
            submitted, or the other way round.
    """
    errors: dict[str, list[str]] = {}
    bound = _bind(form, params, "", errors)
    if errors:
        raise FormBindingError(errors)
    return bound


def _bind(form: Form, params: Mapping[str, Any], prefix: str, errors: dict[str, list[str]]) -> Form:
    scalars = {k: v for k, v in params.items() if not isinstance(v, Mapping)}
    items = tuple(_bind_item(item, params, prefix, errors) for item in form.items)
    return replace(form, items=items, data={**form.data, **scalars})


def _bind_item(item: Any, params: Mapping[str, Any], prefix: str, errors: dict[str, list[str]]) -> Any:
    if item.name not in params:
        return item

    value = params[item.name]
    path = f"{prefix}[{item.name}]" if prefix else item.name

    match item:
        case Field():
            if isinstance(value, Mapping):
                errors.setdefault(path, []).append("expected a value, got a group")
                return item
            if isinstance(value, list):
                value = value[0] if value else ""
            return replace(item, value=value)
        case FormNested(form=child):
            if not isinstance(value, Mapping):
                errors.setdefault(path, []).append("expected a group of fields")
                return item
            return replace(item, form=_bind(child, value, path, errors))
        case FormCollection():
            if not isinstance(value, Mapping):
                errors.setdefault(path, []).append("expected indexed groups of fields")
                return item
            return replace(item, forms=_bind_entries(item, value, path, errors))
        case _:
            msg = f"Unknown form item: {item!r}"
            raise TypeError(msg)


def _bind_entries(
    collection: FormCollection,
    params: Mapping[str, Any],
    path: str,
    errors: dict[str, list[str]],
) -> tuple[CollectionItem, ...]:
    entries = []
    for index, entry in enumerate(collection.forms):
        key = str(index)
        sub = params.get(key)
        if sub is None:
            entries.append(entry)
            continue
        if not isinstance(sub, Mapping):
            errors.setdefault(f"{path}[{key}]", []).append("expected a group of fields")
            entries.append(entry)
            continue
        entries.append(replace(entry, form=_bind(entry.form, sub, f"{path}[{key}]", errors)))

    extra = set(params) - {str(i) for i in range(len(collection.forms))}
    if extra:
        logger.debug("ignored %d unknown %s entries: %s", len(extra), collection.name, sorted(extra))
    return tuple(entries)

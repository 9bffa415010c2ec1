"""Field value classification and decoded field containers.

Raw column values are opaque scalars.  Text that *looks* structured is
classified on read by :func:`decode_value`:

JSON-like
    Trimmed text delimited by ``{...}`` or ``[...]`` that fully parses as
    JSON -> :class:`DataJSON`.

Legacy-serialized
    PHP ``serialize()`` output: the literal ``N;`` or ``<tag>:<body>`` with
    ``tag`` in ``a, O, b, i, d, s`` -> decoded with ``phpserialize``.
    Arrays and objects become :class:`DataSerialize`; scalars are returned
    as plain Python values.

Anything else, including text that resembles either format but fails to
decode, is returned unchanged.  Classification is a heuristic and is never
cached.
"""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

import phpserialize

_SERIALIZED_TAG_RE = re.compile(r"^([adObis]):")


class FieldData(dict):
    """Ordered ``key -> value`` container built from a decoded field.

    Sequences are keyed by position, so a JSON array ``["x", "y"]`` becomes
    ``{0: "x", 1: "y"}``.
    """

    def __init__(self, data: Any = None) -> None:
        super().__init__()
        if not data:
            return
        items = data.items() if isinstance(data, Mapping) else enumerate(data)
        for key, value in items:
            self[key] = value

    def to_dict(self) -> dict[Any, Any]:
        return dict(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self)!r})"


class DataJSON(FieldData):
    """Container for a field holding JSON text."""


class DataSerialize(FieldData):
    """Container for a field holding PHP-serialized text."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _load_json(text: str) -> Any:
    """Parse strict JSON; ``NaN`` and ``Infinity`` literals are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def is_json(value: Any) -> bool:
    """Return ``True`` when ``value`` is bracket-delimited, valid JSON text."""
    if not isinstance(value, str):
        return False

    text = value.strip()
    if not text:
        return False
    if text[0] not in "{[" or text[-1] not in "}]":
        return False

    try:
        _load_json(text)
    except ValueError:
        return False
    return True


def is_serialized(value: Any) -> bool:
    """Return ``True`` when ``value`` has the shape of PHP-serialized text."""
    if not isinstance(value, str):
        return False

    text = value.strip()
    if text == "N;":
        return True

    match = _SERIALIZED_TAG_RE.match(text)
    if match is None:
        return False

    tag = match.group(1)
    if tag in ("a", "O", "s"):
        return re.match(rf"^{tag}:[0-9]+:.*[;}}]$", text, re.DOTALL) is not None
    return re.match(rf"^{tag}:[0-9.E-]+;$", text) is not None


def unserialize(text: str) -> Any:
    """Decode PHP-serialized ``text``.

    Arrays become :class:`DataSerialize`, objects become
    :class:`DataSerialize` of their properties, scalars are returned as is.

    Raises:
        ValueError: If ``text`` is not valid serialized data.
    """
    decoded = phpserialize.loads(
        text.encode("utf-8"),
        decode_strings=True,
        object_hook=phpserialize.phpobject,
    )
    if isinstance(decoded, phpserialize.phpobject):
        return DataSerialize(decoded._asdict())
    if isinstance(decoded, (dict, list)):
        return DataSerialize(decoded)
    return decoded


def decode_value(value: Any) -> Any:
    """Classify ``value`` and return its logical form.

    Args:
        value: A raw column value.

    Returns:
        A :class:`DataJSON`, a :class:`DataSerialize` or a decoded scalar
        for structured text; ``value`` itself otherwise.
    """
    if not isinstance(value, str):
        return value

    if is_json(value):
        return DataJSON(_load_json(value.strip()))

    if is_serialized(value):
        try:
            return unserialize(value.strip())
        except (ValueError, TypeError, UnicodeDecodeError):
            return value

    return value


def to_serializable(value: Any) -> Any:
    """Coerce ``value`` into a type ``phpserialize.dumps`` accepts."""
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, Mapping):
        return {key: to_serializable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_serializable(item) for item in value]
    return str(value)

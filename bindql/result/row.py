"""A single decoded result record."""
from __future__ import annotations

import json
from collections.abc import Callable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

import phpserialize

from bindql.result.fields import decode_value, to_serializable


@runtime_checkable
class FieldSettable(Protocol):
    """Target capable of receiving row fields one by one."""

    def set_field(self, name: str, value: Any) -> None: ...


class Row:
    """Name-ordered mapping of column name to raw value.

    Reading a field through :meth:`get` (or ``row[column]``) classifies the
    raw value on every access: JSON text and PHP-serialized text are
    decoded into containers, everything else is returned untouched.  The
    other accessors (:meth:`values`, :meth:`to_dict`, ...) expose the raw
    values.

    Args:
        fields: Raw tuple as an ordered ``column -> value`` mapping.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self._fields: dict[str, Any] = dict(fields or {})

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def get(self, column: str) -> Any:
        """Return the logical value of ``column`` or ``None`` if absent."""
        if column not in self._fields:
            return None
        return decode_value(self._fields[column])

    def set(self, column: str, value: Any) -> None:
        self._fields[column] = value

    def has(self, column: str) -> bool:
        return column in self._fields

    def unset(self, column: str) -> None:
        self._fields.pop(column, None)

    def fields(self) -> list[str]:
        """Return the column names in result order."""
        return list(self._fields)

    def values(self) -> list[Any]:
        """Return the raw values in result order."""
        return list(self._fields.values())

    __getitem__ = get
    __setitem__ = set
    __delitem__ = unset
    __contains__ = has

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._fields == other._fields
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Mapping onto other objects
    # ------------------------------------------------------------------

    def fetch_fields_into(self, target: Any) -> Any:
        """Copy every raw field onto ``target``.

        Args:
            target: A callable ``(column, value) -> None`` or an object
                implementing :class:`FieldSettable`.

        Returns:
            ``target`` itself.

        Raises:
            TypeError: If ``target`` is neither.
        """
        if isinstance(target, FieldSettable):
            setter: Callable[[str, Any], None] = target.set_field
        elif callable(target):
            setter = target
        else:
            raise TypeError(
                f"Cannot fetch fields into {type(target).__name__!r}: expected a "
                "callable(column, value) or an object with set_field(name, value)."
            )

        for column, value in self._fields.items():
            setter(column, value)
        return target

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return dict(self._fields)

    def to_json(self, indent: int | None = 4) -> str:
        """Render all raw fields as JSON (pretty-printed by default)."""
        return json.dumps(self._fields, indent=indent, default=str)

    def to_serialized(self) -> str:
        """Render all raw fields in PHP serialization format."""
        return phpserialize.dumps(to_serializable(self._fields)).decode("utf-8")

    def __str__(self) -> str:
        return json.dumps(self._fields, default=str)

    def __repr__(self) -> str:
        return f"Row({self._fields!r})"

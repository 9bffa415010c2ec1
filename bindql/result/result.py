"""Result set produced by one query execution.

``Result`` is a fixed-length, 0-indexed sequence of
:class:`~bindql.result.row.Row` with two counters:

``count()``
    Rows actually present ("found rows").
``count_all()``
    Rows available for the query ignoring pagination ("total rows").
    Defaults to ``count()`` and is overridden with :meth:`Result.set_total_rows`
    after a separate ``COUNT(*)`` round trip.

It offers a seekable cursor (``seek``/``next``/``previous``/``current``)
whose out-of-range moves clamp instead of failing, and independent
``for row in result`` iteration that does not disturb the cursor.
"""
from __future__ import annotations

import json
import math
import pickle
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bindql.errors import SerializationError
from bindql.result.row import Row


class ResultInfo(BaseModel):
    """Pagination summary of a result ("showing N of M").

    Attributes:
        rows: Total rows available (``count_all``).
        founds: Rows present in the result (``count``).
        entries: Page size used to derive :attr:`pages`.
    """

    model_config = ConfigDict(extra="forbid")

    rows: int = 0
    founds: int = 0
    entries: int = Field(default=5, gt=0)

    @property
    def pages(self) -> int:
        return math.ceil(self.rows / self.entries)

    def numbering(self, page: int = 1) -> tuple[int, int]:
        """Return the 1-based ``(start, end)`` row numbers shown on ``page``."""
        page = max(page, 1)
        start = (page - 1) * self.entries + 1
        return start, min(start + self.entries - 1, max(self.rows, start))


class Result:
    """Ordered, seekable, countable collection of rows.

    Args:
        rows: Raw tuples (``column -> value`` mappings) or ``Row`` objects,
            in result order.
    """

    def __init__(self, rows: Sequence[Mapping[str, Any] | Row] = ()) -> None:
        self._rows: list[Row] = [
            row if isinstance(row, Row) else Row(row) for row in rows
        ]
        self._num_rows = len(self._rows)
        self._total_rows = self._num_rows
        self._position = 0

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def count(self) -> int:
        return self._num_rows

    def __len__(self) -> int:
        return self._num_rows

    def count_all(self) -> int:
        return self._total_rows

    def set_total_rows(self, total_rows: int) -> None:
        self._total_rows = int(total_rows)

    def is_empty(self) -> bool:
        return self._num_rows == 0

    def get_info(self, entries: int = 5) -> ResultInfo:
        return ResultInfo(rows=self.count_all(), founds=self.count(), entries=entries)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def seek(self, position: int) -> None:
        """Move the cursor to ``position``, clamped into the result.

        Negative positions clamp to ``0`` and positions past the end clamp to
        ``count()``; the cursor only moves when a row exists there.
        """
        if position < 0:
            position = 0
        elif position > self._num_rows:
            position = self._num_rows

        if self._row_at(position) is not None:
            self._position = position

    def first(self) -> Row:
        self.seek(0)
        return self._current_or_empty()

    def last(self) -> Row:
        self.seek(self._num_rows - 1)
        return self._current_or_empty()

    def current(self) -> Row:
        self.seek(self._position)
        return self._current_or_empty()

    def next(self) -> None:
        self._position += 1
        self.seek(self._position)

    def previous(self) -> None:
        self._position -= 1
        self.seek(self._position)

    def key(self) -> int:
        return self._position

    def valid(self) -> bool:
        return self._row_at(self._position) is not None

    def rewind(self) -> None:
        self.seek(0)

    def _row_at(self, position: int) -> Row | None:
        if 0 <= position < self._num_rows:
            return self._rows[position]
        return None

    def _current_or_empty(self) -> Row:
        row = self._row_at(self._position)
        return row if row is not None else Row()

    def __iter__(self) -> Iterator[Row]:
        yield from self._rows

    # ------------------------------------------------------------------
    # Indexed access
    # ------------------------------------------------------------------

    def __getitem__(self, offset: int) -> Row | None:
        return self._row_at(offset)

    def __setitem__(self, offset: int, value: Row) -> None:
        if isinstance(value, Row) and 0 <= offset < self._num_rows:
            self._rows[offset] = value

    def __contains__(self, offset: object) -> bool:
        return isinstance(offset, int) and self._row_at(offset) is not None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Result):
            return self._rows == other._rows and self._total_rows == other._total_rows
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_list(self) -> list[dict[str, Any]]:
        """Return a copy of every row as a raw ``column -> value`` dict."""
        return [row.to_dict() for row in self]

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_list(), indent=indent, default=str)

    def serialize(self) -> bytes:
        """Serialize rows and the total-row counter to an opaque byte form.

        Raw column values keep their Python types (``bytes``, ``Decimal``,
        ``datetime``, ...).  Only pass the output to :meth:`deserialize` from
        a trusted source.

        Raises:
            SerializationError: If a column value cannot be pickled.
        """
        payload = {"rows": self.to_list(), "total_rows": self._total_rows}
        try:
            return pickle.dumps(payload, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise SerializationError(f"Result holds an unserializable value: {exc}") from exc

    @classmethod
    def deserialize(cls, data: bytes) -> Result:
        """Restore a result produced by :meth:`serialize`.

        Raises:
            SerializationError: If ``data`` is not a serialized result.
        """
        try:
            payload = pickle.loads(data)
        except (pickle.UnpicklingError, EOFError, ValueError, AttributeError, ImportError, IndexError) as exc:
            raise SerializationError(f"Invalid serialized result: {exc}") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("rows"), list):
            raise SerializationError("Serialized payload carries no rows.")

        result = cls(payload["rows"])
        result.set_total_rows(payload.get("total_rows", result.count()))
        return result

    def __repr__(self) -> str:
        return f"Result(count={self.count()}, count_all={self.count_all()})"

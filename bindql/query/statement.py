"""Statement compiler: bind substitution and execution bookkeeping.

``Query`` owns a raw statement template and its bind values and produces
the final, escaped statement on demand.  Two marker syntaxes are
supported:

Positional
    A single configurable marker character (``?`` by default), substituted
    left to right.  Markers inside single-quoted literals are never
    counted or replaced.  When the number of markers differs from the
    number of binds the template is returned **unchanged**; the resulting
    SQL error surfaces at execution time through :meth:`Query.set_error`.

Named
    ``:identifier`` tokens, substituted by key, matched only when not
    immediately followed by a word character.  Named mode is selected
    whenever the template contains a ``:`` anywhere.

All escaping is delegated to the driver (``escape(value)`` and its
``escape_character``).  Compilation never raises.

Besides compilation, a ``Query`` records its execution duration, the
number of affected rows and the errors reported by the driver.  When more
than one error is recorded, the first one is authoritative.
"""
from __future__ import annotations

import re
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bindql.driver.base import Driver

_WRITE_SYNTAX_RE = re.compile(
    r'^\s*"?(SET|INSERT|UPDATE|DELETE|REPLACE|CREATE|DROP|TRUNCATE|LOAD|COPY|'
    r"ALTER|RENAME|GRANT|REVOKE|LOCK|UNLOCK|REINDEX)\s",
    re.IGNORECASE,
)

_QUOTED_LITERAL_RE = re.compile(r"'[^']*'")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_numeric_key(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, (int, float)):
        return True
    return isinstance(key, str) and key.strip().lstrip("+-").replace(".", "", 1).isdigit()


class Query:
    """A raw SQL statement plus bind values, compiled lazily.

    Args:
        driver: Escaping collaborator; anything exposing ``escape(value)``
            and ``escape_character``.
        bind_marker: Positional marker character.  An empty marker disables
            bind compilation altogether.

    Example::

        query = Query(driver).set_statement(
            "SELECT * FROM t WHERE id = ? AND name = ?", [5, "O'Brien"]
        )
        query.get_final_statement()
        # "SELECT * FROM t WHERE id = 5 AND name = 'O''Brien'"
    """

    def __init__(self, driver: Driver, bind_marker: str = "?") -> None:
        self._driver = driver
        self._bind_marker = bind_marker
        self._sql_statement = ""
        self._sql_binds: list[Any] | dict[Any, Any] = []
        self._final_statement: str | None = None
        self._binds_compiled = False
        self._start_time: float | None = None
        self._end_time: float | None = None
        self._affected_rows = 0
        self._errors: dict[Any, str] = {}

    # ------------------------------------------------------------------
    # Statement and binds
    # ------------------------------------------------------------------

    def set_statement(self, sql_statement: str, binds: Any = None) -> Query:
        """Set the raw statement template and (optionally) its binds."""
        self._sql_statement = sql_statement
        return self.set_binds([] if binds is None else binds)

    def set_binds(self, binds: Any) -> Query:
        """Store the values to bind into the statement.

        A mapping selects named binds, a list or tuple positional binds; any
        other value is treated as a single positional bind.  Re-binding
        invalidates a previously computed final statement.
        """
        if isinstance(binds, Mapping):
            self._sql_binds = dict(binds)
        elif _is_sequence(binds):
            self._sql_binds = list(binds)
        else:
            self._sql_binds = [binds]
        self._final_statement = None
        self._binds_compiled = False
        return self

    def get_statement(self) -> str:
        """Return the original, uncompiled statement template."""
        return self._sql_statement

    def get_binds(self) -> list[Any] | dict[Any, Any]:
        return self._sql_binds

    def get_final_statement(self) -> str:
        """Return the escaped, fully substituted statement.

        The statement is compiled once per bind set; later calls return the
        cached result until :meth:`set_binds` or :meth:`set_statement` is
        called again.
        """
        if self._final_statement is None:
            self._final_statement = self._sql_statement
        if not self._binds_compiled:
            self._final_statement = self._compile_binds(self._final_statement)
            self._binds_compiled = True
        return self._final_statement

    def __str__(self) -> str:
        return self.get_final_statement()

    def __repr__(self) -> str:
        return f"Query({self._sql_statement!r}, binds={self._sql_binds!r})"

    def is_write_syntax(self) -> bool:
        """Return ``True`` when the statement starts with a mutating keyword."""
        return _WRITE_SYNTAX_RE.match(self._sql_statement) is not None

    def swap_table_prefix(self, search: str, replace: str) -> Query:
        """Rename a table-name prefix wherever it follows a non-word character.

        Works on the compiled statement when one exists, otherwise on the
        raw template (binds are still substituted afterwards).
        """
        sql = self._final_statement or self._sql_statement
        pattern = re.compile(r"(\W)" + re.escape(search) + r"(\S+?)")
        self._final_statement = pattern.sub(
            lambda m: f"{m.group(1)}{replace}{m.group(2)}", sql
        )
        return self

    # ------------------------------------------------------------------
    # Bind compilation
    # ------------------------------------------------------------------

    def _compile_binds(self, sql_statement: str) -> str:
        has_named_binds = ":" in sql_statement

        if (
            not self._sql_binds
            or not self._bind_marker
            or (self._bind_marker not in sql_statement and not has_named_binds)
        ):
            return sql_statement

        if has_named_binds:
            return self._replace_named_binds(sql_statement)
        return self._replace_positional_binds(sql_statement)

    def _named_items(self) -> list[tuple[Any, Any]]:
        if isinstance(self._sql_binds, dict):
            items = list(self._sql_binds.items())
        else:
            items = list(enumerate(self._sql_binds))

        # Longer names sharing a prefix must be substituted first.
        if items and not _is_numeric_key(items[0][0]):
            items.reverse()
        return items

    def _replace_named_binds(self, sql_statement: str) -> str:
        quote = self._driver.escape_character

        for bind_name, bind_value in self._named_items():
            if _is_sequence(bind_value):
                escaped = self._render_list(bind_value)
            else:
                escaped = str(self._driver.escape(bind_value))
                if quote and len(escaped) >= 2 and escaped[0] == quote and escaped[-1] == quote:
                    escaped = escaped[1:-1]

            pattern = re.compile(":" + re.escape(str(bind_name)) + r"(?!\w)")
            sql_statement = pattern.sub(lambda _m, text=escaped: text, sql_statement)

        return sql_statement

    def _replace_positional_binds(self, sql_statement: str) -> str:
        marker = self._bind_marker
        blank = " " * len(marker)

        masked = _QUOTED_LITERAL_RE.sub(
            lambda m: m.group(0).replace(marker, blank), sql_statement
        )
        offsets = [m.start() for m in re.finditer(re.escape(marker), masked)]

        binds = self._sql_binds
        if len(offsets) != len(binds):
            return sql_statement

        for index in range(len(offsets) - 1, -1, -1):
            value = binds[index]
            if _is_sequence(value):
                escaped = self._render_list(value)
            else:
                escaped = str(self._driver.escape(value))
            start = offsets[index]
            sql_statement = sql_statement[:start] + escaped + sql_statement[start + len(marker):]

        return sql_statement

    def _render_list(self, values: Any) -> str:
        return "(" + ",".join(str(self._driver.escape(item)) for item in values) + ")"

    # ------------------------------------------------------------------
    # Execution bookkeeping
    # ------------------------------------------------------------------

    def set_duration(self, start: float, end: float | None = None) -> Query:
        """Record the execution window; ``end`` defaults to now."""
        self._start_time = start
        self._end_time = time.time() if end is None else end
        return self

    def get_start_execution_time(
        self, number_format: bool = False, decimals: int = 6
    ) -> float | str | None:
        if not number_format:
            return self._start_time
        return f"{self._start_time or 0.0:.{decimals}f}"

    def get_execution_duration(self, decimals: int = 6) -> str:
        """Return the elapsed execution time formatted with ``decimals`` places."""
        elapsed = (self._end_time or 0.0) - (self._start_time or 0.0)
        return f"{elapsed:.{decimals}f}"

    def set_affected_rows(self, affected_rows: int) -> Query:
        self._affected_rows += int(affected_rows)
        return self

    def get_affected_rows(self) -> int:
        return self._affected_rows

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def set_error(self, code: Any, message: str) -> Query:
        """Record a driver error.  Earlier entries keep their precedence."""
        self._errors[code] = message
        return self

    def has_error(self) -> bool:
        return bool(self._errors)

    def get_error_code(self) -> Any:
        """Return the first recorded error code, or ``None``."""
        if self.has_error():
            return next(iter(self._errors))
        return None

    def get_error_message(self) -> str | None:
        """Return the first recorded error message, or ``None``."""
        if self.has_error():
            return str(next(iter(self._errors.values())))
        return None

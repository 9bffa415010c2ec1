"""Clause fragments stored in the builder cache, and the compiled output.

Fragments are small immutable value objects; the builder appends them to
the relevant cache clause and renders them at compile time.  Values are
never rendered inline: :class:`BindContext` swaps each one for the
positional marker and collects it as a bind, leaving all escaping to
:class:`~bindql.query.statement.Query`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bindql.query.statement import Query

if TYPE_CHECKING:
    from bindql.driver.base import Driver

#: Comparison operators accepted by ``where`` / ``having``.
COMPARISON_OPERATORS: frozenset[str] = frozenset({
    "=", "!=", "<>", "<", "<=", ">", ">=",
    "LIKE", "NOT LIKE", "IN", "NOT IN", "IS", "IS NOT",
})

#: Sort directions accepted by ``order_by``.
SORT_DIRECTIONS: frozenset[str] = frozenset({"ASC", "DESC", "RANDOM"})

#: Join types accepted by ``join``.
JOIN_TYPES: frozenset[str] = frozenset({"", "LEFT", "RIGHT", "INNER", "OUTER", "LEFT OUTER", "CROSS"})


@dataclass(frozen=True)
class Condition:
    """One ``<column> <operator> <value>`` predicate.

    ``value`` is a list for ``IN`` / ``NOT IN``; ``None`` with ``=`` or
    ``!=`` renders as ``IS NULL`` / ``IS NOT NULL``.
    """

    column: str
    operator: str = "="
    value: Any = None


@dataclass(frozen=True)
class Between:
    column: str
    low: Any
    high: Any
    negate: bool = False


@dataclass(frozen=True)
class JoinClause:
    table: str
    condition: str
    type: str = ""


@dataclass(frozen=True)
class OrderByItem:
    column: str
    direction: str = "ASC"


@dataclass
class BindContext:
    """Accumulates bind values during a single compilation run."""

    marker: str = "?"
    binds: list[Any] = field(default_factory=list)

    def add(self, value: Any) -> str:
        """Store ``value`` and return the marker that stands for it."""
        self.binds.append(value)
        return self.marker


@dataclass
class CompiledStatement:
    """The output of a builder compilation.

    Attributes:
        sql: Statement template with positional markers.
        binds: Values for the markers, in textual order.
    """

    sql: str
    binds: list[Any] = field(default_factory=list)

    def render(self, driver: Driver, bind_marker: str = "?") -> str:
        """Return the final statement with every bind escaped by ``driver``."""
        return Query(driver, bind_marker).set_statement(self.sql, self.binds).get_final_statement()

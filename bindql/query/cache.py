"""Builder cache: the mutable clause state of a query under construction.

``QueryBuilderCache`` maps a fixed set of clause names to clause values.
Every clause declares a default value and a :class:`MergePolicy`; a single
:meth:`QueryBuilderCache.store` dispatcher applies the policy when new data
arrives.  The order of APPEND clauses is meaningful: it is the order in
which the builder emits the fragments into SQL.

Lifecycle
---------
One cache per :class:`~bindql.query.builder.QueryBuilder`.
``reset_getter()`` restores the read-path clauses after ``get()``;
``reset_modifier()`` restores the write-path clauses after ``insert()``,
``update()`` and ``delete()``; ``reset()`` does both.
"""
from __future__ import annotations

import copy
from enum import Enum
from typing import Any


class MergePolicy(str, Enum):
    """How :meth:`QueryBuilderCache.store` merges a new value into a clause."""

    APPEND = "append"
    REPLACE = "replace"
    BOOLEAN = "boolean"


#: Clause name -> (merge policy, default value).
CLAUSES: dict[str, tuple[MergePolicy, Any]] = {
    "select": (MergePolicy.APPEND, []),
    "union": (MergePolicy.APPEND, []),
    "union_all": (MergePolicy.APPEND, []),
    "into": (MergePolicy.BOOLEAN, False),
    "distinct": (MergePolicy.BOOLEAN, False),
    "from": (MergePolicy.APPEND, []),
    "join": (MergePolicy.APPEND, []),
    "where": (MergePolicy.APPEND, []),
    "or_where": (MergePolicy.APPEND, []),
    "where_in": (MergePolicy.APPEND, []),
    "or_where_in": (MergePolicy.APPEND, []),
    "having": (MergePolicy.APPEND, []),
    "between": (MergePolicy.APPEND, []),
    "not_between": (MergePolicy.APPEND, []),
    "limit": (MergePolicy.REPLACE, None),
    "offset": (MergePolicy.REPLACE, None),
    "group_by": (MergePolicy.APPEND, []),
    "order_by": (MergePolicy.APPEND, []),
    "keys": (MergePolicy.APPEND, []),
    "sets": (MergePolicy.APPEND, []),
    "binds": (MergePolicy.APPEND, []),
    "aliased_tables": (MergePolicy.APPEND, []),
    "no_escape": (MergePolicy.APPEND, []),
    "bracket_open": (MergePolicy.BOOLEAN, False),
    "bracket_count": (MergePolicy.REPLACE, 0),
}

# Clauses restored after a read (``get``).
GETTER_CLAUSES: tuple[str, ...] = (
    "select", "union", "union_all", "into", "distinct", "from", "join",
    "where", "or_where", "where_in", "or_where_in", "having", "between",
    "not_between", "limit", "offset", "group_by", "order_by", "keys",
    "binds", "aliased_tables", "no_escape", "bracket_open", "bracket_count",
)

# Clauses restored after a write (``insert`` / ``update`` / ``delete``).
MODIFIER_CLAUSES: tuple[str, ...] = (
    "from", "binds", "sets", "join", "where", "or_where", "where_in",
    "or_where_in", "having", "between", "not_between", "keys", "limit",
    "aliased_tables", "no_escape", "bracket_open", "bracket_count",
)


class QueryBuilderCache:
    """Accumulates query-clause fragments.

    Example::

        cache = QueryBuilderCache()
        cache.store("select", ["id", "name"]).store("select", "email")
        cache.get("select")      # ['id', 'name', 'email']
        cache.store("distinct", 1)
        cache.get("distinct")    # True
        cache.store("nonsense", 1)   # ignored
    """

    def __init__(self) -> None:
        self._storage: dict[str, Any] = {}
        self._statement: str | None = None
        self._reset_run(CLAUSES)

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def store(self, name: str, value: Any) -> QueryBuilderCache:
        """Merge ``value`` into clause ``name`` according to its policy.

        Unknown clause names are ignored; do not rely on this method to
        validate clause names.

        Args:
            name: Clause name (e.g. ``"where"``).
            value: Fragment to merge.  For APPEND clauses a ``list`` or
                ``tuple`` is appended element-wise; anything else is one
                element.

        Returns:
            The cache itself, for chaining.
        """
        clause = CLAUSES.get(name)
        if clause is None:
            return self

        policy = clause[0]
        if policy is MergePolicy.APPEND:
            if isinstance(value, (list, tuple)):
                self._storage[name].extend(value)
            else:
                self._storage[name].append(value)
        elif policy is MergePolicy.BOOLEAN:
            self._storage[name] = bool(value)
        else:
            self._storage[name] = value

        return self

    def get(self, name: str) -> Any:
        """Return the current value of clause ``name`` (``None`` if unknown)."""
        return self._storage.get(name)

    def __getitem__(self, name: str) -> Any:
        return self._storage[name]

    def __contains__(self, name: object) -> bool:
        return name in self._storage

    def set_statement(self, statement: str) -> None:
        self._statement = statement.strip()

    def get_statement(self) -> str | None:
        return self._statement

    # ------------------------------------------------------------------
    # Resets
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Restore both the read-path and the write-path clauses."""
        self.reset_getter()
        self.reset_modifier()

    def reset_getter(self) -> None:
        """Restore the read-path clauses.  Called after ``get()``."""
        self._reset_run(GETTER_CLAUSES)

    def reset_modifier(self) -> None:
        """Restore the write-path clauses.

        Called after ``insert()``, ``insert_batch()``, ``update()`` and
        ``delete()``.
        """
        self._reset_run(MODIFIER_CLAUSES)

    def _reset_run(self, names) -> None:
        for name in names:
            self._storage[name] = copy.copy(CLAUSES[name][1])
        self._statement = None

    def __repr__(self) -> str:
        populated = {
            name: value
            for name, value in self._storage.items()
            if value != CLAUSES[name][1]
        }
        return f"QueryBuilderCache({populated!r})"

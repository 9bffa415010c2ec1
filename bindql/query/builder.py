"""Fluent query builder over a :class:`QueryBuilderCache`.

Build methods only store fragments in the cache; nothing touches the
database until an execution method runs::

    result = (
        conn.table("users")
        .select("id", "name")
        .where("active", True)
        .where_in("role", ["admin", "editor"])
        .order_by("name")
        .get(limit=10)
    )
    result.count()      # rows on this page
    result.count_all()  # rows without the LIMIT

Compilation turns the cache into a :class:`CompiledStatement`: a template
whose values sit behind the connection's positional marker, plus the bind
list.  Escaping happens later, in :class:`~bindql.query.statement.Query`.

WHERE emission
--------------
``where``, ``where_in``, ``where_between`` and ``where_not_between`` entries
are joined with ``AND``; ``or_where`` and ``or_where_in`` entries follow,
each joined with ``OR``.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from bindql.errors import CompilationError
from bindql.query.cache import QueryBuilderCache
from bindql.query.clauses import (
    COMPARISON_OPERATORS,
    JOIN_TYPES,
    SORT_DIRECTIONS,
    Between,
    BindContext,
    CompiledStatement,
    Condition,
    JoinClause,
    OrderByItem,
)

if TYPE_CHECKING:
    from bindql.connection import Connection
    from bindql.result.result import Result

_JOIN_CONDITION_SPLIT_RE = re.compile(r"(\s+(?:AND|OR)\s+)", re.IGNORECASE)
_JOIN_OPERAND_SPLIT_RE = re.compile(r"(\s*(?:<=|>=|<>|!=|=|<|>)\s*)")

COUNT_ALIAS = "numrows"


class QueryBuilder:
    """Accumulates clauses for one statement at a time.

    Args:
        connection: Connection used for identifier quoting and execution.
    """

    def __init__(self, connection: Connection) -> None:
        self._conn = connection
        self._cache = QueryBuilderCache()

    @property
    def cache(self) -> QueryBuilderCache:
        return self._cache

    # ------------------------------------------------------------------
    # Read-path clauses
    # ------------------------------------------------------------------

    def select(self, *fields: str) -> QueryBuilder:
        """Add columns to the SELECT list (comma-separated strings allowed)."""
        for item in fields:
            if "(" in item:
                self._cache.store("select", item.strip())
            else:
                self._cache.store("select", [f.strip() for f in item.split(",") if f.strip()])
        return self

    def distinct(self, flag: bool = True) -> QueryBuilder:
        self._cache.store("distinct", flag)
        return self

    def from_(self, *tables: str) -> QueryBuilder:
        for table in tables:
            self._track_alias(table)
            self._cache.store("from", table.strip())
        return self

    def join(self, table: str, condition: str, type: str = "") -> QueryBuilder:
        """Add a ``[type] JOIN table ON condition`` clause.

        Raises:
            CompilationError: If ``type`` is not a known join type.
        """
        join_type = type.strip().upper()
        if join_type not in JOIN_TYPES:
            raise CompilationError(f"Unsupported join type: '{type}'.", clause="join")
        self._track_alias(table)
        self._cache.store("join", JoinClause(table.strip(), condition.strip(), join_type))
        return self

    def where(self, column: str | Mapping[str, Any], value: Any = None, operator: str = "=") -> QueryBuilder:
        """Add ``AND`` predicates; a mapping adds one equality per item."""
        return self._store_conditions("where", column, value, operator)

    def or_where(self, column: str | Mapping[str, Any], value: Any = None, operator: str = "=") -> QueryBuilder:
        return self._store_conditions("or_where", column, value, operator)

    def where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        self._cache.store("where_in", Condition(column, "IN", list(values)))
        return self

    def where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        self._cache.store("where_in", Condition(column, "NOT IN", list(values)))
        return self

    def or_where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        self._cache.store("or_where_in", Condition(column, "IN", list(values)))
        return self

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        self._cache.store("or_where_in", Condition(column, "NOT IN", list(values)))
        return self

    def where_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        self._cache.store("between", Between(column, low, high))
        return self

    def where_not_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        self._cache.store("not_between", Between(column, low, high, negate=True))
        return self

    def group_by(self, *columns: str) -> QueryBuilder:
        self._cache.store("group_by", [c.strip() for c in columns])
        return self

    def having(self, column: str | Mapping[str, Any], value: Any = None, operator: str = "=") -> QueryBuilder:
        return self._store_conditions("having", column, value, operator)

    def order_by(self, column: str, direction: str = "ASC") -> QueryBuilder:
        """Add an ORDER BY item; ``RANDOM`` ignores ``column``.

        Raises:
            CompilationError: If ``direction`` is not ASC, DESC or RANDOM.
        """
        direction = direction.strip().upper()
        if direction not in SORT_DIRECTIONS:
            raise CompilationError(f"Unsupported sort direction: '{direction}'.", clause="order_by")
        self._cache.store("order_by", OrderByItem(column.strip(), direction))
        return self

    def limit(self, limit: int, offset: int | None = None) -> QueryBuilder:
        self._cache.store("limit", int(limit))
        if offset is not None:
            self.offset(offset)
        return self

    def offset(self, offset: int) -> QueryBuilder:
        self._cache.store("offset", int(offset))
        return self

    # ------------------------------------------------------------------
    # Write-path clauses
    # ------------------------------------------------------------------

    def set(self, column: str | Mapping[str, Any], value: Any = None) -> QueryBuilder:
        """Add column values for INSERT / UPDATE."""
        sets = dict(column) if isinstance(column, Mapping) else {column: value}
        self._cache.store("sets", sets)
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def get(self, limit: int | None = None, offset: int | None = None) -> Result | None:
        """Run the SELECT and reset the read-path clauses.

        When a LIMIT applies, a second ``COUNT(*)`` query over the
        unpaginated statement sets the result's ``count_all()``.
        """
        if limit is not None:
            self.limit(limit, offset)

        compiled = self.compile_select()
        count_statement = self.compile_count() if self._cache["limit"] is not None else None
        self._cache.reset_getter()

        result = self._conn.query(compiled.sql, compiled.binds)
        if result is None or count_statement is None:
            return result

        total = self._conn.query(count_statement.sql, count_statement.binds)
        if total is not None and not total.is_empty():
            result.set_total_rows(total.first().get(COUNT_ALIAS))
        return result

    def get_where(
        self,
        conditions: Mapping[str, Any],
        limit: int | None = None,
        offset: int | None = None,
    ) -> Result | None:
        return self.where(conditions).get(limit, offset)

    def count_all_results(self, reset: bool = True) -> int:
        """Return the number of rows the current SELECT would produce."""
        compiled = self.compile_count()
        if reset:
            self._cache.reset_getter()
        total = self._conn.query(compiled.sql, compiled.binds)
        if total is None or total.is_empty():
            return 0
        return int(total.first().get(COUNT_ALIAS) or 0)

    def insert(self, sets: Mapping[str, Any] | None = None) -> int | None:
        """Run an INSERT built from ``sets`` and the cached ``set()`` calls."""
        if sets:
            self.set(sets)
        compiled = self.compile_insert()
        self._cache.reset_modifier()
        return self._conn.query(compiled.sql, compiled.binds)

    def insert_batch(self, rows: Iterable[Mapping[str, Any]]) -> int | None:
        """Run a multi-row INSERT; columns are taken from the first row."""
        compiled = self.compile_insert_batch(list(rows))
        self._cache.reset_modifier()
        return self._conn.query(compiled.sql, compiled.binds)

    def update(self, sets: Mapping[str, Any] | None = None) -> int | None:
        if sets:
            self.set(sets)
        compiled = self.compile_update()
        self._cache.reset_modifier()
        return self._conn.query(compiled.sql, compiled.binds)

    def delete(self) -> int | None:
        compiled = self.compile_delete()
        self._cache.reset_modifier()
        return self._conn.query(compiled.sql, compiled.binds)

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def compile_select(self, paginate: bool = True) -> CompiledStatement:
        """Compile the cached read-path clauses into a SELECT statement."""
        ctx = self._context()
        parts: list[str] = []

        prefix = "SELECT DISTINCT" if self._cache["distinct"] else "SELECT"
        fields = [self._protect(item) for item in self._cache["select"]]
        parts.append(f"{prefix} {', '.join(fields) if fields else '*'}")

        if self._cache["from"]:
            tables = ", ".join(self._protect(t, prefix_single=True) for t in self._cache["from"])
            parts.append(f"FROM {tables}")

        for join in self._cache["join"]:
            parts.append(self._build_join(join))

        where_sql = self._build_where(ctx)
        if where_sql:
            parts.append(f"WHERE {where_sql}")

        if self._cache["group_by"]:
            parts.append("GROUP BY " + ", ".join(self._protect(c) for c in self._cache["group_by"]))

        if self._cache["having"]:
            having = " AND ".join(self._build_condition(c, ctx) for c in self._cache["having"])
            parts.append(f"HAVING {having}")

        if paginate:
            if self._cache["order_by"]:
                parts.append("ORDER BY " + ", ".join(self._build_order(o) for o in self._cache["order_by"]))
            if self._cache["limit"] is not None:
                parts.append(f"LIMIT {self._cache['limit']}")
                if self._cache["offset"]:
                    parts.append(f"OFFSET {self._cache['offset']}")

        sql = "\n".join(parts)
        self._cache.set_statement(sql)
        return CompiledStatement(sql=sql, binds=ctx.binds)

    def compile_count(self) -> CompiledStatement:
        """Compile ``SELECT COUNT(*)`` over the unpaginated SELECT."""
        inner = self.compile_select(paginate=False)
        quote = self._conn.driver.quote_identifier
        sql = (
            f"SELECT COUNT(*) AS {quote(COUNT_ALIAS)} FROM (\n{inner.sql}\n) AS "
            f"{quote('bindql_count')}"
        )
        return CompiledStatement(sql=sql, binds=inner.binds)

    def compile_insert(self) -> CompiledStatement:
        """Compile ``INSERT INTO <table> (...) VALUES (...)``.

        Raises:
            CompilationError: If no table or no values are set.
        """
        sets = self._merged_sets()
        if not sets:
            raise CompilationError("No values to insert.", clause="sets")
        return self.compile_insert_batch([sets])

    def compile_insert_batch(self, rows: list[Mapping[str, Any]]) -> CompiledStatement:
        if not rows or not rows[0]:
            raise CompilationError("No values to insert.", clause="sets")

        ctx = self._context()
        table = self._target_table("insert")
        columns = list(rows[0])
        values_sql = []
        for row in rows:
            markers = [ctx.add(row.get(column)) for column in columns]
            values_sql.append(f"({', '.join(markers)})")

        column_sql = ", ".join(self._protect(c) for c in columns)
        sql = f"INSERT INTO {table} ({column_sql}) VALUES {', '.join(values_sql)}"
        self._cache.set_statement(sql)
        return CompiledStatement(sql=sql, binds=ctx.binds)

    def compile_update(self) -> CompiledStatement:
        """Compile ``UPDATE <table> SET ... [WHERE ...]``.

        Raises:
            CompilationError: If no table or no values are set.
        """
        sets = self._merged_sets()
        if not sets:
            raise CompilationError("No values to update.", clause="sets")

        ctx = self._context()
        table = self._target_table("update")
        assignments = ", ".join(f"{self._protect(c)} = {ctx.add(v)}" for c, v in sets.items())
        sql = f"UPDATE {table} SET {assignments}"

        where_sql = self._build_where(ctx)
        if where_sql:
            sql += f" WHERE {where_sql}"
        self._cache.set_statement(sql)
        return CompiledStatement(sql=sql, binds=ctx.binds)

    def compile_delete(self) -> CompiledStatement:
        """Compile ``DELETE FROM <table> WHERE ...``.

        Raises:
            CompilationError: If no table is set or no predicate is given.
        """
        ctx = self._context()
        table = self._target_table("delete")
        where_sql = self._build_where(ctx)
        if not where_sql:
            raise CompilationError("Refusing to delete without a WHERE clause.", clause="where")

        sql = f"DELETE FROM {table} WHERE {where_sql}"
        self._cache.set_statement(sql)
        return CompiledStatement(sql=sql, binds=ctx.binds)

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------

    def _context(self) -> BindContext:
        return BindContext(marker=self._conn.config.bind_marker or "?")

    def _protect(self, item: str, prefix_single: bool = False) -> str:
        return self._conn.protect_identifiers(
            item, prefix_single=prefix_single, aliased_tables=self._cache["aliased_tables"]
        )

    def _track_alias(self, table: str) -> None:
        parts = re.split(r"\s+(?:AS\s+)?", table.strip(), flags=re.IGNORECASE)
        if len(parts) > 1:
            self._cache.store("aliased_tables", parts[-1])

    def _target_table(self, clause: str) -> str:
        if not self._cache["from"]:
            raise CompilationError(f"No table set for {clause}.", clause="from")
        return self._protect(self._cache["from"][0], prefix_single=True)

    def _merged_sets(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for sets in self._cache["sets"]:
            merged.update(sets)
        return merged

    def _store_conditions(
        self, clause: str, column: str | Mapping[str, Any], value: Any, operator: str
    ) -> QueryBuilder:
        items = column.items() if isinstance(column, Mapping) else [(column, value)]
        for name, item_value in items:
            op = operator.strip().upper()
            if op not in COMPARISON_OPERATORS:
                raise CompilationError(f"Unsupported operator: '{operator}'.", clause=clause)
            self._cache.store(clause, Condition(name.strip(), op, item_value))
        return self

    def _build_condition(self, condition: Condition, ctx: BindContext) -> str:
        column = self._protect(condition.column)
        op = condition.operator

        if condition.value is None:
            if op in ("=", "IS"):
                return f"{column} IS NULL"
            if op in ("!=", "<>", "IS NOT"):
                return f"{column} IS NOT NULL"

        if op in ("IN", "NOT IN"):
            values = list(condition.value or [])
            if not values:
                raise CompilationError(
                    f"{op} on '{condition.column}' requires at least one value.", clause="where_in"
                )
            return f"{column} {op} {ctx.add(values)}"

        return f"{column} {op} {ctx.add(condition.value)}"

    def _build_between(self, between: Between, ctx: BindContext) -> str:
        keyword = "NOT BETWEEN" if between.negate else "BETWEEN"
        return f"{self._protect(between.column)} {keyword} {ctx.add(between.low)} AND {ctx.add(between.high)}"

    def _build_where(self, ctx: BindContext) -> str:
        conjunctive = [self._build_condition(c, ctx) for c in self._cache["where"]]
        conjunctive += [self._build_condition(c, ctx) for c in self._cache["where_in"]]
        conjunctive += [self._build_between(b, ctx) for b in self._cache["between"]]
        conjunctive += [self._build_between(b, ctx) for b in self._cache["not_between"]]

        disjunctive = [self._build_condition(c, ctx) for c in self._cache["or_where"]]
        disjunctive += [self._build_condition(c, ctx) for c in self._cache["or_where_in"]]

        sql = " AND ".join(conjunctive)
        for predicate in disjunctive:
            sql = f"{sql} OR {predicate}" if sql else predicate
        return sql

    def _build_join(self, join: JoinClause) -> str:
        table = self._protect(join.table, prefix_single=True)
        condition = "".join(
            self._protect_join_chunk(chunk) for chunk in _JOIN_CONDITION_SPLIT_RE.split(join.condition)
        )
        keyword = f"{join.type} JOIN" if join.type else "JOIN"
        return f"{keyword} {table} ON {condition}"

    def _protect_join_chunk(self, chunk: str) -> str:
        if _JOIN_CONDITION_SPLIT_RE.fullmatch(chunk):
            return f" {chunk.strip().upper()} "
        pieces = _JOIN_OPERAND_SPLIT_RE.split(chunk)
        return "".join(
            f" {piece.strip()} " if index % 2 else self._protect(piece)
            for index, piece in enumerate(pieces)
        )

    def _build_order(self, item: OrderByItem) -> str:
        if item.direction == "RANDOM":
            return "RANDOM()"
        return f"{self._protect(item.column)} {item.direction}"

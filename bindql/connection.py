"""Query pipeline: compiler -> driver -> result.

``Connection`` binds a :class:`~bindql.driver.base.Driver` to a
:class:`~bindql.schema.config.ConnectionConfig` and runs statements through
the full pipeline::

    conn = Connection(SQLiteDriver("app.db"))
    result = conn.query("SELECT * FROM users WHERE id = ?", [5])
    if result is None:
        print(conn.latest_query.get_error_message())

Failures are soft: a rejected statement returns ``None`` and its error is
recorded on the :class:`~bindql.query.statement.Query` kept in the query
log.  With ``debug=True`` the connection raises
:class:`~bindql.errors.QueryExecutionError` instead.

The connection does not own the driver's lifecycle and has no
transaction semantics.
"""
from __future__ import annotations

import logging
import re
import time
from typing import Any

from bindql.driver.base import Driver
from bindql.driver.registry import DriverFactory
from bindql.errors import DriverError, QueryExecutionError
from bindql.query.builder import QueryBuilder
from bindql.query.statement import Query
from bindql.result.result import Result
from bindql.schema.config import ConnectionConfig

logger = logging.getLogger(__name__)

_ALIAS_AS_RE = re.compile(r"\s+AS\s+", re.IGNORECASE)


class Connection:
    """Runs statements for one driver.

    Args:
        driver: The driver that escapes and executes statements.
        config: Pipeline settings; defaults to ``ConnectionConfig()``.
    """

    def __init__(self, driver: Driver, config: ConnectionConfig | None = None) -> None:
        self._driver = driver
        self._config = config or ConnectionConfig()
        self._driver.like_escape_character = self._config.like_escape_character
        self._queries: list[Query] = []
        self._last_insert_id: Any = None

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Connection:
        """Create the configured driver via ``DriverFactory`` and wrap it."""
        driver = DriverFactory.create(
            config.driver,
            config.database,
            like_escape_character=config.like_escape_character,
        )
        return cls(driver, config)

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def query(self, sql_statement: str, binds: Any = None) -> Result | int | None:
        """Compile and run ``sql_statement``.

        Args:
            sql_statement: Template with positional or named markers.
            binds: Values for the markers (list/tuple, mapping or scalar).

        Returns:
            A :class:`Result` for read statements, the affected-row count for
            write statements, or ``None`` when the statement failed or query
            execution is disabled.

        Raises:
            QueryExecutionError: If the statement failed and ``debug`` is on.
        """
        query = Query(self._driver, self._config.bind_marker)
        query.set_statement(sql_statement, binds)

        if self._config.swap_table_prefix and self._config.table_prefix:
            query.swap_table_prefix(self._config.table_prefix, self._config.swap_table_prefix)

        result: Result | int | None = None
        start_time = time.time()

        if not self._config.disable_query_execution:
            final_statement = query.get_final_statement()
            try:
                response = self._driver.execute(final_statement)
            except DriverError as exc:
                query.set_error(exc.code, exc.message)
            else:
                if query.is_write_syntax():
                    query.set_affected_rows(response.affected_rows)
                    self._last_insert_id = response.last_insert_id
                    result = query.get_affected_rows()
                else:
                    result = Result(response.rows)

        query.set_duration(start_time)
        self._queries.append(query)

        if query.has_error():
            logger.warning(
                "Query failed [%s] %s: %s",
                query.get_error_code(),
                query.get_error_message(),
                query.get_final_statement(),
            )
            if self._config.debug:
                raise QueryExecutionError(
                    query.get_error_message() or "Query failed",
                    code=query.get_error_code(),
                    statement=query.get_final_statement(),
                )
            return None

        logger.debug(
            "Executed in %ss: %s", query.get_execution_duration(), query.get_final_statement()
        )
        return result

    def execute(self, sql_statement: str) -> int | None:
        """Run a write statement without binds and return affected rows."""
        result = self.query(sql_statement)
        if isinstance(result, Result):
            return result.count()
        return result

    @property
    def queries(self) -> list[Query]:
        return list(self._queries)

    @property
    def queries_count(self) -> int:
        return len(self._queries)

    @property
    def latest_query(self) -> Query | None:
        return self._queries[-1] if self._queries else None

    @property
    def last_insert_id(self) -> Any:
        return self._last_insert_id

    # ------------------------------------------------------------------
    # Escaping and identifiers
    # ------------------------------------------------------------------

    def escape(self, value: Any) -> str | list[str]:
        return self._driver.escape(value)

    def escape_string(self, value: str, like: bool = False) -> str:
        return self._driver.escape_string(value, like)

    def escape_like_string(self, value: str) -> str:
        return self._driver.escape_like_string(value)

    def prefix_table(self, table_name: str) -> str:
        """Prepend the configured table prefix unless already present."""
        prefix = self._config.table_prefix
        if prefix and not table_name.startswith(prefix):
            return prefix + table_name
        return table_name

    def protect_identifiers(
        self,
        item: str,
        prefix_single: bool = False,
        aliased_tables: list[str] | None = None,
    ) -> str:
        """Quote a column or table reference, keeping its alias.

        Items containing ``(``, ``)`` or ``'`` (function calls, literals) are
        returned untouched.  In a dotted ``table.column`` reference the table
        segment receives the table prefix unless it names an alias.

        Args:
            item: e.g. ``"users.name AS n"``, ``"orders o"``, ``"*"``.
            prefix_single: Prefix an undotted item (used for table names).
            aliased_tables: Aliases declared in the FROM / JOIN clauses.
        """
        if any(char in item for char in "()'"):
            return item

        item = " ".join(item.split())
        quote = self._driver.quote_identifier

        alias = ""
        parts = _ALIAS_AS_RE.split(item)
        if len(parts) > 1:
            item, alias = " AS ".join(parts[:-1]), f" AS {quote(parts[-1])}"
        elif " " in item:
            item, _, name = item.rpartition(" ")
            alias = f" {quote(name)}"

        segments = item.split(".")
        if len(segments) > 1:
            table_index = len(segments) - 2
            if segments[table_index] not in (aliased_tables or []):
                segments[table_index] = self.prefix_table(segments[table_index])
        elif prefix_single:
            segments[0] = self.prefix_table(segments[0])

        return ".".join(quote(segment) for segment in segments) + alias

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def builder(self) -> QueryBuilder:
        """Return an empty query builder bound to this connection."""
        return QueryBuilder(self)

    def table(self, table_name: str) -> QueryBuilder:
        """Return a query builder reading from / writing to ``table_name``."""
        return QueryBuilder(self).from_(table_name)

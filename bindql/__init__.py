"""bindQL – client-side SQL statement compilation and result decoding.

Bind, escape, execute, decode.

Public API
----------
``compile_statement``
    Substitute bind values into a SQL template through a driver's escaping
    primitives and return the final statement.

``connect``
    Build a :class:`Connection` from a ``ConnectionConfig`` or a plain dict.

Re-exported types
-----------------
``Query``, ``QueryBuilder``, ``QueryBuilderCache``, ``Row``, ``Result``,
``Connection``, ``ConnectionConfig``, the drivers, and all error classes.

Extensibility
-------------
New drivers can be registered via::

    from bindql.driver.registry import DriverFactory

    @DriverFactory.register("duckdb")
    class DuckDBDriver(Driver):
        ...

After registration, ``Connection.from_config`` picks it up for any
``ConnectionConfig`` naming that target.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bindql.connection import Connection
from bindql.driver.base import Driver, DriverResponse
from bindql.driver.registry import DriverFactory
from bindql.driver.sqlalchemy import SQLAlchemyDriver
from bindql.driver.sqlite import SQLiteDriver
from bindql.errors import (
    BindQLError,
    CompilationError,
    DriverConfigError,
    DriverError,
    QueryExecutionError,
    SerializationError,
)
from bindql.query.builder import QueryBuilder
from bindql.query.cache import MergePolicy, QueryBuilderCache
from bindql.query.clauses import CompiledStatement
from bindql.query.statement import Query
from bindql.result.fields import DataJSON, DataSerialize
from bindql.result.result import Result, ResultInfo
from bindql.result.row import FieldSettable, Row
from bindql.schema.config import ConnectionConfig

# ---------------------------------------------------------------------------
# Register built-in drivers with DriverFactory
# ---------------------------------------------------------------------------

DriverFactory.register_class("sqlite", SQLiteDriver)
DriverFactory.register_class("sqlalchemy", SQLAlchemyDriver)

__all__ = [
    # Core pipeline
    "compile_statement",
    "connect",
    "Connection",
    "ConnectionConfig",
    # Query layer
    "Query",
    "QueryBuilder",
    "QueryBuilderCache",
    "MergePolicy",
    "CompiledStatement",
    # Result layer
    "Row",
    "Result",
    "ResultInfo",
    "DataJSON",
    "DataSerialize",
    "FieldSettable",
    # Drivers
    "Driver",
    "DriverResponse",
    "DriverFactory",
    "SQLiteDriver",
    "SQLAlchemyDriver",
    # Errors
    "BindQLError",
    "CompilationError",
    "DriverConfigError",
    "DriverError",
    "QueryExecutionError",
    "SerializationError",
]


def compile_statement(
    sql_statement: str,
    binds: Any,
    driver: Driver,
    bind_marker: str = "?",
) -> str:
    """Return ``sql_statement`` with ``binds`` escaped and substituted.

    Example::

        bindql.compile_statement(
            "SELECT * FROM t WHERE id = ? AND name = ?",
            [5, "O'Brien"],
            SQLiteDriver(),
        )
        # "SELECT * FROM t WHERE id = 5 AND name = 'O''Brien'"

    A positional template whose marker count differs from the number of
    binds is returned unchanged.

    Args:
        sql_statement: Template with positional or ``:named`` markers.
        binds: List/tuple (positional), mapping (named) or single value.
        driver: Provides ``escape`` and the literal quote character.
        bind_marker: Positional marker character.

    Returns:
        The final statement.
    """
    return Query(driver, bind_marker).set_statement(sql_statement, binds).get_final_statement()


def connect(config: ConnectionConfig | Mapping[str, Any] | None = None) -> Connection:
    """Build a :class:`Connection` from configuration.

    Args:
        config: A ``ConnectionConfig``, a mapping validated into one, or
            ``None`` for an in-memory SQLite connection.

    Raises:
        pydantic.ValidationError: If a mapping does not describe a valid
            configuration.
        DriverConfigError: If the configured driver cannot be created.
    """
    if config is None:
        config = ConnectionConfig()
    elif not isinstance(config, ConnectionConfig):
        config = ConnectionConfig.model_validate(config)
    return Connection.from_config(config)

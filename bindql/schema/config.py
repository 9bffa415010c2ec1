"""Pydantic model for connection configuration.

``ConnectionConfig`` is the single configuration object of a
:class:`~bindql.connection.Connection`.  Load it from any mapping (a parsed
TOML/YAML/JSON file, environment-derived dict, ...) with
``ConnectionConfig.model_validate(data)``::

    config = ConnectionConfig.model_validate({
        "driver": "sqlite",
        "database": "app.db",
        "table_prefix": "app_",
        "debug": True,
    })
    conn = Connection.from_config(config)
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

#: Built-in driver targets (see :class:`~bindql.driver.registry.DriverFactory`).
DriverTarget = Literal["sqlite", "sqlalchemy"]


class ConnectionConfig(BaseModel):
    """Settings shared by the query pipeline of one connection.

    Attributes:
        driver: Registered driver target used by ``Connection.from_config``.
        database: Database path (SQLite) or URL (SQLAlchemy).
        table_prefix: Prefix prepended to table names by the query builder.
        swap_table_prefix: When set together with ``table_prefix``, raw
            statements have ``table_prefix`` swapped for this value before
            execution.
        bind_marker: Positional bind marker character.
        like_escape_character: Escape character for LIKE wildcards.
        debug: Raise :class:`~bindql.errors.QueryExecutionError` instead of
            returning ``None`` when a query fails.
        disable_query_execution: Compile and log statements without sending
            them to the driver (dry run).
    """

    model_config = ConfigDict(extra="forbid")

    driver: DriverTarget = "sqlite"
    database: str = ":memory:"
    table_prefix: str = ""
    swap_table_prefix: str = ""
    bind_marker: str = Field(default="?", max_length=1)
    like_escape_character: str = Field(default="!", min_length=1, max_length=1)
    debug: bool = False
    disable_query_execution: bool = False

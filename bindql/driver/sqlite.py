"""SQLite driver over the standard library ``sqlite3`` module."""
from __future__ import annotations

import logging
import sqlite3

from bindql.driver.base import Driver, DriverResponse
from bindql.errors import DriverError

logger = logging.getLogger(__name__)


class SQLiteDriver(Driver):
    """Executes final statements on a ``sqlite3`` connection.

    Args:
        database: A database path (``":memory:"`` by default) or an open
            :class:`sqlite3.Connection`.  Paths are opened in autocommit
            mode; an open connection is used as-is.
        like_escape_character: See :class:`~bindql.driver.base.Driver`.

    String literals are escaped by doubling single quotes, the only
    escaping SQLite performs inside ``'...'``.
    """

    def __init__(
        self,
        database: str | sqlite3.Connection = ":memory:",
        like_escape_character: str = "!",
    ) -> None:
        super().__init__(like_escape_character)
        if isinstance(database, sqlite3.Connection):
            self._conn = database
        else:
            self._conn = sqlite3.connect(database, isolation_level=None)

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def _escape_string_handler(self, value: str) -> str:
        return value.replace("'", "''")

    def execute(self, statement: str) -> DriverResponse:
        try:
            cursor = self._conn.execute(statement)
        except sqlite3.Error as exc:
            code = getattr(exc, "sqlite_errorcode", None) or type(exc).__name__
            raise DriverError(str(exc), code=code) from exc

        rows = []
        if cursor.description is not None:
            columns = [col[0] for col in cursor.description]
            rows = [dict(zip(columns, values)) for values in cursor.fetchall()]

        logger.debug("sqlite returned %d row(s)", len(rows))
        return DriverResponse(
            rows=rows,
            affected_rows=max(cursor.rowcount, 0),
            last_insert_id=cursor.lastrowid,
        )

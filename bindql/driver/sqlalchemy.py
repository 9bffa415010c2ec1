"""Driver over a SQLAlchemy engine.

Requires the optional ``sqlalchemy`` dependency::

    pip install "bindql[sqlalchemy]"

Usage::

    from sqlalchemy import create_engine
    from bindql.driver.sqlalchemy import SQLAlchemyDriver

    driver = SQLAlchemyDriver(create_engine("postgresql+psycopg://..."))

String literals are escaped with the dialect's own ``String`` literal
processor, so backslash handling follows the target backend.  Statements
are sent with ``exec_driver_sql`` (no further parameter processing) inside
``engine.begin()``, which commits writes on success.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bindql.driver.base import Driver, DriverResponse
from bindql.errors import DriverConfigError, DriverError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _import_sqlalchemy():
    try:
        import sqlalchemy
    except ImportError as exc:
        raise DriverConfigError(
            "SQLAlchemy is required for SQLAlchemyDriver. "
            'Install it with: pip install "bindql[sqlalchemy]"',
            missing="sqlalchemy",
        ) from exc
    return sqlalchemy


class SQLAlchemyDriver(Driver):
    """Executes final statements through a SQLAlchemy :class:`Engine`.

    Args:
        engine: An engine instance or a database URL string.
        like_escape_character: See :class:`~bindql.driver.base.Driver`.
    """

    def __init__(self, engine: Engine | str, like_escape_character: str = "!") -> None:
        super().__init__(like_escape_character)
        sqlalchemy = _import_sqlalchemy()
        if isinstance(engine, str):
            engine = sqlalchemy.create_engine(engine)
        self._engine = engine
        self._literal = sqlalchemy.String().literal_processor(dialect=engine.dialect)
        preparer = engine.dialect.identifier_preparer
        self.identifier_character = preparer.initial_quote

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    @property
    def engine(self) -> Engine:
        return self._engine

    def _escape_string_handler(self, value: str) -> str:
        literal = self._literal(value)
        quote = self.escape_character
        if literal.startswith(quote) and literal.endswith(quote):
            return literal[1:-1]
        return literal

    def execute(self, statement: str) -> DriverResponse:
        sqlalchemy = _import_sqlalchemy()
        try:
            with self._engine.begin() as conn:
                result = conn.exec_driver_sql(statement)
                rows: list[dict[str, Any]] = []
                if result.returns_rows:
                    rows = [dict(row._mapping) for row in result]
                last_insert_id = getattr(result.context.cursor, "lastrowid", None)
                affected = max(result.rowcount, 0) if not result.returns_rows else 0
        except sqlalchemy.exc.DBAPIError as exc:
            orig = exc.orig
            code = (
                getattr(orig, "sqlite_errorcode", None)
                or getattr(orig, "sqlstate", None)
                or getattr(orig, "pgcode", None)
            )
            if code is None and orig is not None and orig.args and isinstance(orig.args[0], int):
                code = orig.args[0]
            raise DriverError(str(orig or exc), code=code or type(orig).__name__) from exc

        logger.debug("%s returned %d row(s)", self.dialect_name, len(rows))
        return DriverResponse(rows=rows, affected_rows=affected, last_insert_id=last_insert_id)

"""Test fixtures: a scripted driver double and the sample DDL."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from bindql.driver.base import Driver, DriverResponse
from bindql.errors import DriverError

_FIXTURES_DIR = Path(__file__).parent


class FakeDriver(Driver):
    """In-memory driver that records statements and replays responses.

    Escaping follows the SQL standard (single quotes doubled).  Queue
    responses with :meth:`respond` and failures with :meth:`fail`; with an
    empty queue every statement succeeds with no rows.
    """

    def __init__(self) -> None:
        super().__init__()
        self.statements: list[str] = []
        self._responses: list[DriverResponse | DriverError] = []

    @property
    def dialect_name(self) -> str:
        return "fake"

    def _escape_string_handler(self, value: str) -> str:
        return value.replace("'", "''")

    def respond(self, rows: list[dict[str, Any]] | None = None, affected_rows: int = 0) -> FakeDriver:
        self._responses.append(DriverResponse(rows=rows or [], affected_rows=affected_rows))
        return self

    def fail(self, code: int | str, message: str) -> FakeDriver:
        self._responses.append(DriverError(message, code=code))
        return self

    def execute(self, statement: str) -> DriverResponse:
        self.statements.append(statement)
        if not self._responses:
            return DriverResponse()
        response = self._responses.pop(0)
        if isinstance(response, DriverError):
            raise response
        return response


def load_ddl() -> str:
    """Return the sample SQLite DDL used by the integration tests."""
    return (_FIXTURES_DIR / "ddl_sqlite.sql").read_text()

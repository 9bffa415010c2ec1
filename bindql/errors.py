"""Custom exception hierarchy for bindQL.

All public errors inherit from BindQLError so callers can catch the base
class for any bindQL-specific failure.

Most failures in the query pipeline are *soft*: a bind/marker mismatch
leaves the statement untouched and an execution error is recorded on the
:class:`~bindql.query.statement.Query`.  The exceptions below are raised
only at API misuse points, at the driver boundary, or when the connection
runs in debug mode.
"""
from __future__ import annotations


class BindQLError(Exception):
    """Base exception for all bindQL errors."""


class DriverError(BindQLError):
    """Raised by a driver when the database rejects a statement.

    :class:`~bindql.connection.Connection` catches it and records the
    ``(code, message)`` pair on the executed query.

    Args:
        message: Human-readable description reported by the database.
        code: Driver-specific error code (numeric or symbolic).
    """

    def __init__(self, message: str, code: int | str = 0) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class QueryExecutionError(BindQLError):
    """Raised by a connection in debug mode when a query fails.

    Args:
        message: The first error message recorded on the query.
        code: The first error code recorded on the query.
        statement: The final statement sent to the driver.
    """

    def __init__(
        self,
        message: str,
        code: int | str | None = None,
        statement: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.statement = statement


class CompilationError(BindQLError):
    """Raised when the query builder cannot compile its cached clauses.

    Args:
        message: Human-readable description.
        clause: The builder clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class SerializationError(BindQLError):
    """Raised when a result cannot be serialized or restored."""


class DriverConfigError(BindQLError):
    """Raised when a driver is unknown or cannot be set up.

    Args:
        message: Human-readable description.
        missing: Optional distribution name that must be installed.
    """

    def __init__(self, message: str, missing: str | None = None) -> None:
        super().__init__(message)
        self.missing = missing or ""

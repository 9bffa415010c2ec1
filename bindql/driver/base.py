"""Driver abstractions: DriverResponse and the Driver ABC.

The Template Method pattern (GoF) is used:

- ``Driver`` defines the escaping algorithm (``escape`` ->
  ``escape_string`` -> dialect handler, optional LIKE wildcard escaping).
- ``SQLiteDriver`` and ``SQLAlchemyDriver`` override the dialect-specific
  steps (string escaping, statement execution).

A driver is the only collaborator of the core that touches a database.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass
class DriverResponse:
    """The output of a successful :meth:`Driver.execute` call.

    Attributes:
        rows: Raw tuples as ordered ``column -> value`` dicts (empty for
            statements that return no rows).
        affected_rows: Rows changed by a write statement (``0`` for reads
            or when the backend does not report it).
        last_insert_id: Identifier generated by the last INSERT, if any.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    affected_rows: int = 0
    last_insert_id: Any = None


class Driver(ABC):
    """Abstract base for database drivers.

    Args:
        like_escape_character: Character used to escape ``%`` and ``_`` in
            LIKE patterns produced by :meth:`escape_like_string`.
    """

    #: Quote character wrapping string literals produced by :meth:`escape`.
    escape_character: str = "'"

    #: Quote character wrapping identifiers.
    identifier_character: str = '"'

    def __init__(self, like_escape_character: str = "!") -> None:
        self.like_escape_character = like_escape_character

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (e.g. ``'sqlite'``)."""

    # ------------------------------------------------------------------
    # Escaping
    # ------------------------------------------------------------------

    def escape(self, value: Any) -> str | list[str]:
        """Render ``value`` as a SQL literal.

        Args:
            value: A scalar, or a list / tuple of scalars.

        Returns:
            The literal text, or a list of literals for sequence input.
        """
        if isinstance(value, (list, tuple)):
            return [self.escape(item) for item in value]
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        quote = self.escape_character
        return f"{quote}{self.escape_string(str(value))}{quote}"

    def escape_string(self, value: str, like: bool = False) -> str:
        """Escape ``value`` for use inside a quoted literal.

        Args:
            value: The raw text.
            like: Also escape LIKE wildcards with
                :attr:`like_escape_character`.
        """
        escaped = self._escape_string_handler(value)
        if like:
            char = self.like_escape_character
            escaped = (
                escaped.replace(char, char + char)
                .replace("%", char + "%")
                .replace("_", char + "_")
            )
        return escaped

    def escape_like_string(self, value: str) -> str:
        return self.escape_string(value, like=True)

    def quote_identifier(self, name: str) -> str:
        """Return a quoted identifier (``*`` is left bare)."""
        if name == "*":
            return name
        char = self.identifier_character
        escaped = name.strip(char).replace(char, char + char)
        return f"{char}{escaped}{char}"

    @abstractmethod
    def _escape_string_handler(self, value: str) -> str:
        """Dialect-specific escaping of a string literal body."""

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @abstractmethod
    def execute(self, statement: str) -> DriverResponse:
        """Run a final (already compiled) statement.

        Args:
            statement: SQL text with every bind already substituted.

        Returns:
            :class:`DriverResponse` with raw rows and counters.

        Raises:
            DriverError: If the database rejects the statement.
        """

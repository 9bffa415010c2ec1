"""Shared pytest fixtures for bindQL unit and integration tests."""
from __future__ import annotations

import pytest

from bindql.connection import Connection
from bindql.driver.sqlite import SQLiteDriver
from bindql.schema.config import ConnectionConfig
from tests.fixtures import FakeDriver, load_ddl


@pytest.fixture()
def driver() -> FakeDriver:
    """Scripted driver double with standard single-quote escaping."""
    return FakeDriver()


@pytest.fixture()
def fake_conn(driver: FakeDriver) -> Connection:
    return Connection(driver)


@pytest.fixture()
def sqlite_conn() -> Connection:
    """In-memory SQLite connection seeded with the sample schema."""
    sqlite_driver = SQLiteDriver(":memory:")
    sqlite_driver.connection.executescript(load_ddl())
    return Connection(sqlite_driver, ConnectionConfig())

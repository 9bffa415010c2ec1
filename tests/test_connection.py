"""Unit tests for Connection, ConnectionConfig and DriverFactory."""

from __future__ import annotations

import logging

import pydantic
import pytest

import bindql
from bindql.connection import Connection
from bindql.driver.registry import DriverFactory
from bindql.driver.sqlite import SQLiteDriver
from bindql.errors import DriverConfigError, QueryExecutionError
from bindql.result.result import Result
from bindql.schema.config import ConnectionConfig
from tests.fixtures import FakeDriver

# ---------------------------------------------------------------------------
# Query pipeline
# ---------------------------------------------------------------------------


def test_read_returns_result(fake_conn, driver):
    driver.respond(rows=[{"id": 5, "name": "O'Brien"}])
    result = fake_conn.query("SELECT * FROM t WHERE id = ? AND name = ?", [5, "O'Brien"])
    assert isinstance(result, Result)
    assert result.first().get("name") == "O'Brien"
    assert driver.statements == ["SELECT * FROM t WHERE id = 5 AND name = 'O''Brien'"]


def test_write_returns_affected_rows(fake_conn, driver):
    driver.respond(affected_rows=2)
    assert fake_conn.query("UPDATE t SET a = ?", [1]) == 2
    assert fake_conn.latest_query.get_affected_rows() == 2


def test_last_insert_id_is_tracked(driver):
    class _InsertingDriver(FakeDriver):
        def execute(self, statement):
            response = super().execute(statement)
            response.last_insert_id = 17
            return response

    conn = Connection(_InsertingDriver())
    conn.query("INSERT INTO t (a) VALUES (?)", [1])
    assert conn.last_insert_id == 17


def test_failure_is_soft_and_recorded(fake_conn, driver):
    driver.fail(1, "no such table: nope")
    assert fake_conn.query("SELECT * FROM nope") is None

    query = fake_conn.latest_query
    assert query.has_error()
    assert query.get_error_code() == 1
    assert query.get_error_message() == "no such table: nope"
    assert fake_conn.queries_count == 1


def test_failure_is_logged(fake_conn, driver, caplog):
    driver.fail(1, "boom")
    with caplog.at_level(logging.WARNING, logger="bindql.connection"):
        fake_conn.query("SELECT 1")
    assert "boom" in caplog.text


def test_debug_mode_raises(driver):
    conn = Connection(driver, ConnectionConfig(debug=True))
    driver.fail(1054, "unknown column")
    with pytest.raises(QueryExecutionError) as info:
        conn.query("SELECT missing FROM t WHERE id = ?", [1])
    assert info.value.code == 1054
    assert info.value.statement == "SELECT missing FROM t WHERE id = 1"
    assert conn.queries_count == 1


def test_disabled_execution_compiles_without_running(driver):
    conn = Connection(driver, ConnectionConfig(disable_query_execution=True))
    assert conn.query("DELETE FROM t WHERE id = ?", [3]) is None
    assert driver.statements == []
    assert conn.latest_query.get_final_statement() == "DELETE FROM t WHERE id = 3"


def test_table_prefix_swap(driver):
    conn = Connection(driver, ConnectionConfig(table_prefix="app_", swap_table_prefix="tmp_"))
    conn.query("SELECT * FROM app_users WHERE id = ?", [1])
    assert driver.statements == ["SELECT * FROM tmp_users WHERE id = 1"]


def test_query_log_keeps_every_query(fake_conn):
    fake_conn.query("SELECT 1")
    fake_conn.query("SELECT 2")
    assert [q.get_final_statement() for q in fake_conn.queries] == ["SELECT 1", "SELECT 2"]
    assert float(fake_conn.latest_query.get_execution_duration()) >= 0


def test_empty_log(fake_conn):
    assert fake_conn.latest_query is None
    assert fake_conn.queries == []


# ---------------------------------------------------------------------------
# Escaping and identifiers
# ---------------------------------------------------------------------------


def test_escape_delegates_to_driver(fake_conn):
    assert fake_conn.escape("it's") == "'it''s'"
    assert fake_conn.escape([1, None, False]) == ["1", "NULL", "0"]


def test_escape_like_string_uses_configured_character(driver):
    conn = Connection(driver, ConnectionConfig(like_escape_character="\\"))
    assert conn.escape_like_string("50%_off") == "50\\%\\_off"
    assert Connection(FakeDriver()).escape_like_string("a!b%") == "a!!b!%"


@pytest.mark.parametrize(
    "item, expected",
    [
        ("name", '"name"'),
        ("users.name", '"app_users"."name"'),
        ("users.name AS n", '"app_users"."name" AS "n"'),
        ("u.name", '"u"."name"'),
        ("COUNT(*) AS total", "COUNT(*) AS total"),
        ("*", "*"),
        ("users.*", '"app_users".*'),
    ],
)
def test_protect_identifiers(driver, item, expected):
    conn = Connection(driver, ConnectionConfig(table_prefix="app_"))
    assert conn.protect_identifiers(item, aliased_tables=["u"]) == expected


def test_prefix_table_is_idempotent(driver):
    conn = Connection(driver, ConnectionConfig(table_prefix="app_"))
    assert conn.prefix_table("users") == "app_users"
    assert conn.prefix_table("app_users") == "app_users"


# ---------------------------------------------------------------------------
# Configuration and driver registry
# ---------------------------------------------------------------------------


def test_config_defaults():
    config = ConnectionConfig()
    assert config.driver == "sqlite"
    assert config.database == ":memory:"
    assert config.bind_marker == "?"
    assert not config.debug


@pytest.mark.parametrize(
    "data",
    [
        {"bind_marker": "??"},
        {"like_escape_character": ""},
        {"driver": "oracle"},
        {"unknown_key": True},
    ],
)
def test_config_rejects_invalid_values(data):
    with pytest.raises(pydantic.ValidationError):
        ConnectionConfig.model_validate(data)


def test_from_config_builds_registered_driver():
    conn = Connection.from_config(ConnectionConfig(like_escape_character="#"))
    assert isinstance(conn.driver, SQLiteDriver)
    assert conn.driver.like_escape_character == "#"


def test_connect_accepts_a_mapping():
    conn = bindql.connect({"driver": "sqlite", "debug": True})
    assert isinstance(conn.driver, SQLiteDriver)
    assert conn.config.debug


def test_registry_lists_builtin_targets():
    assert {"sqlite", "sqlalchemy"} <= set(DriverFactory.registered_targets())


def test_registry_rejects_unknown_target():
    with pytest.raises(DriverConfigError, match="Unsupported driver target"):
        DriverFactory.create("nope")


def test_registry_decorator():
    @DriverFactory.register("fake-test")
    class _Registered(FakeDriver):
        pass

    try:
        assert isinstance(DriverFactory.create("fake-test"), _Registered)
    finally:
        DriverFactory._drivers.pop("fake-test", None)


def test_registry_reregistration_replaces_and_forwards_arguments():
    class _Recording(FakeDriver):
        def __init__(self, database, **options):
            super().__init__()
            self.database = database
            self.options = options

    DriverFactory.register_class("fake-test", FakeDriver)
    DriverFactory.register_class("fake-test", _Recording)
    try:
        driver = DriverFactory.create("fake-test", "app.db", like_escape_character="!")
        assert isinstance(driver, _Recording)
        assert driver.database == "app.db"
        assert driver.options == {"like_escape_character": "!"}
    finally:
        DriverFactory._drivers.pop("fake-test", None)


def test_compile_statement_helper(driver):
    sql = bindql.compile_statement("SELECT * FROM t WHERE id = :id", {"id": 7}, driver)
    assert sql == "SELECT * FROM t WHERE id = 7"

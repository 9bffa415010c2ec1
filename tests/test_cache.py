"""Unit tests for QueryBuilderCache."""

from __future__ import annotations

import pytest

from bindql.query.cache import CLAUSES, GETTER_CLAUSES, MODIFIER_CLAUSES, MergePolicy, QueryBuilderCache
from bindql.query.clauses import Condition

APPEND_CLAUSES = [name for name, (policy, _) in CLAUSES.items() if policy is MergePolicy.APPEND]


@pytest.mark.parametrize("name", APPEND_CLAUSES)
def test_append_clauses_preserve_insertion_order(name):
    cache = QueryBuilderCache()
    cache.store(name, "a").store(name, ["b", "c"]).store(name, "d")
    assert cache.get(name) == ["a", "b", "c", "d"]


def test_append_stores_non_sequence_value_as_single_element():
    cache = QueryBuilderCache()
    condition = Condition("id", "=", 1)
    cache.store("where", condition).store("where", {"x": "y"})
    assert cache.get("where") == [condition, {"x": "y"}]


@pytest.mark.parametrize("name", APPEND_CLAUSES)
def test_append_spreads_tuples_like_lists(name):
    cache = QueryBuilderCache()
    cache.store(name, ("a", "b")).store(name, ["c"])
    assert cache.get(name) == ["a", "b", "c"]


def test_boolean_clause_coerces_and_replaces():
    cache = QueryBuilderCache()
    cache.store("distinct", 1)
    assert cache.get("distinct") is True
    cache.store("distinct", "")
    assert cache.get("distinct") is False


def test_replace_clause_overwrites():
    cache = QueryBuilderCache()
    cache.store("limit", 10).store("limit", 20)
    assert cache.get("limit") == 20
    cache.store("bracket_count", 3)
    assert cache["bracket_count"] == 3


def test_unknown_clause_is_a_noop():
    cache = QueryBuilderCache()
    assert cache.store("nonsense", 42) is cache
    assert cache.get("nonsense") is None
    assert "nonsense" not in cache


def test_statement_is_trimmed():
    cache = QueryBuilderCache()
    cache.set_statement("  SELECT 1 \n")
    assert cache.get_statement() == "SELECT 1"


def test_reset_getter_keeps_sets():
    cache = QueryBuilderCache()
    cache.store("select", "id").store("order_by", "id").store("sets", {"a": 1})
    cache.set_statement("SELECT id")
    cache.reset_getter()
    assert cache.get("select") == []
    assert cache.get("order_by") == []
    assert cache.get("sets") == [{"a": 1}]
    assert cache.get_statement() is None


def test_reset_modifier_keeps_select_and_order():
    cache = QueryBuilderCache()
    cache.store("select", "id").store("order_by", "id")
    cache.store("sets", {"a": 1}).store("where", "x").store("limit", 5)
    cache.reset_modifier()
    assert cache.get("sets") == []
    assert cache.get("where") == []
    assert cache.get("limit") is None
    assert cache.get("select") == ["id"]
    assert cache.get("order_by") == ["id"]


def test_reset_restores_every_default():
    cache = QueryBuilderCache()
    for name in CLAUSES:
        cache.store(name, 1)
    cache.reset()
    for name, (_, default) in CLAUSES.items():
        assert cache.get(name) == default


def test_defaults_are_not_shared_between_instances():
    first = QueryBuilderCache()
    second = QueryBuilderCache()
    first.store("select", "id")
    assert second.get("select") == []
    first.reset()
    first.store("select", "name")
    assert CLAUSES["select"][1] == []


def test_reset_sets_cover_every_clause():
    assert set(GETTER_CLAUSES) | set(MODIFIER_CLAUSES) == set(CLAUSES)

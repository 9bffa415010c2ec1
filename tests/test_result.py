"""Unit tests for Result and ResultInfo."""

from __future__ import annotations

import pickle
from datetime import datetime
from decimal import Decimal

import pydantic
import pytest

from bindql.errors import SerializationError
from bindql.result.result import Result, ResultInfo
from bindql.result.row import Row

ROWS = [
    {"id": 1, "name": "Ann"},
    {"id": 2, "name": "Bo"},
    {"id": 3, "name": "Cy"},
]


@pytest.fixture()
def result() -> Result:
    return Result(ROWS)


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


def test_counters_default_to_row_count(result):
    assert result.count() == 3
    assert len(result) == 3
    assert result.count_all() == 3
    assert not result.is_empty()


def test_set_total_rows_overrides_count_all(result):
    result.set_total_rows(42)
    assert result.count_all() == 42
    assert result.count() == 3


def test_info_paginates(result):
    result.set_total_rows(42)
    info = result.get_info(entries=5)
    assert info.rows == 42
    assert info.founds == 3
    assert info.pages == 9
    assert info.numbering(1) == (1, 5)
    assert info.numbering(9) == (41, 42)


def test_info_rejects_non_positive_page_size():
    with pytest.raises(pydantic.ValidationError):
        ResultInfo(rows=10, entries=0)


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


def test_cursor_walks_forward(result):
    assert result.key() == 0
    assert result.current().get("id") == 1
    result.next()
    assert result.current().get("id") == 2
    result.next()
    assert result.current().get("id") == 3
    assert result.valid()


def test_next_past_the_end_invalidates(result):
    result.seek(2)
    result.next()
    assert not result.valid()
    assert result.key() == 3
    assert len(result.current()) == 0


def test_previous_from_the_start_clamps(result):
    result.previous()
    assert result.key() == 0
    assert result.valid()


def test_seek_clamps(result):
    result.seek(1)
    result.seek(-1)
    assert result.key() == 0

    result.seek(1)
    result.seek(result.count())
    assert result.key() == 1

    result.seek(100)
    assert result.key() == 1


def test_first_last_rewind(result):
    assert result.last().get("id") == 3
    assert result.key() == 2
    assert result.first().get("id") == 1
    result.seek(2)
    result.rewind()
    assert result.key() == 0


def test_empty_result_returns_empty_row_sentinel():
    empty = Result()
    assert empty.is_empty()
    assert empty.count() == 0
    assert not empty.valid()
    for row in (empty.current(), empty.first(), empty.last()):
        assert isinstance(row, Row)
        assert len(row) == 0


# ---------------------------------------------------------------------------
# Iteration and indexing
# ---------------------------------------------------------------------------


def test_iteration_does_not_move_the_cursor(result):
    result.seek(1)
    assert [row.get("id") for row in result] == [1, 2, 3]
    assert result.key() == 1


def test_iterations_are_independent(result):
    outer = []
    for a in result:
        for b in result:
            outer.append((a.get("id"), b.get("id")))
    assert len(outer) == 9


def test_indexing(result):
    assert result[0].get("name") == "Ann"
    assert result[3] is None
    assert result[-1] is None
    assert 2 in result
    assert 3 not in result


def test_setitem_replaces_existing_rows_only(result):
    result[1] = Row({"id": 20})
    assert result[1].get("id") == 20
    result[5] = Row({"id": 50})
    assert result.count() == 3
    assert result[5] is None


def test_rows_are_wrapped(result):
    assert all(isinstance(row, Row) for row in result)
    wrapped = Result([Row({"id": 1})])
    assert wrapped[0] == Row({"id": 1})


def test_to_list_and_json(result):
    assert result.to_list() == ROWS
    assert result.to_json().startswith('[{"id": 1, "name": "Ann"}')


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:
    def test_round_trip_keeps_rows_and_total(self, result):
        result.set_total_rows(10)
        restored = Result.deserialize(result.serialize())
        assert restored == result
        assert restored.count() == 3
        assert restored.count_all() == 10
        assert restored[2].get("name") == "Cy"

    def test_round_trip_keeps_column_types(self):
        raw = {
            "id": 1,
            "data": b"\xff\x00\x01",
            "price": Decimal("9.99"),
            "paid_at": datetime(2024, 5, 1, 12, 30),
            "tags": [1, 2],
            "note": None,
        }
        restored = Result.deserialize(Result([raw]).serialize())
        assert restored[0].to_dict() == raw
        assert isinstance(restored[0].get("price"), Decimal)
        assert restored[0].get("data") == b"\xff\x00\x01"

    def test_round_trip_of_empty_result(self):
        restored = Result.deserialize(Result().serialize())
        assert restored.is_empty()
        assert restored.count_all() == 0

    def test_unpicklable_value_raises(self):
        with pytest.raises(SerializationError):
            Result([{"handle": lambda: None}]).serialize()

    @pytest.mark.parametrize("data", [b"", pickle.dumps({"rows": [{"id": 1}]})[:-4]])
    def test_rejects_truncated_data(self, data):
        with pytest.raises(SerializationError):
            Result.deserialize(data)

    @pytest.mark.parametrize("payload", [5, {"total_rows": 3}, {"rows": "nope"}])
    def test_rejects_payload_without_rows(self, payload):
        with pytest.raises(SerializationError):
            Result.deserialize(pickle.dumps(payload))

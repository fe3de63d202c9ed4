"""Tests for the normalized roads table."""

import sqlite3

import pytest

from switrs_db.roads.normalized_store import NORMALIZED_COLUMNS, NormalizedRoadStore
from switrs_db.store.models import NormalizedRoad


@pytest.fixture
def store(road_tables):
    return NormalizedRoadStore(road_tables)


def test_populate(store, add_collisions):
    add_collisions(
        ("8100002", "EUCLID AVE (600 BLOCK)", "W COLUSA AV"),
        ("8100001", "1201 2ND ST", None),
    )

    assert store.populate() == 2
    assert store.count() == 2

    record = store.get("8100002")
    assert record.primary == NormalizedRoad(road="EUCLID AVE", block="600")
    assert record.secondary == NormalizedRoad(road="COLUSA AV", direction="W")

    empty = store.get("8100001").secondary
    assert empty == NormalizedRoad(road="")


def test_columns(store, road_tables):
    columns = tuple(r["name"] for r in road_tables.execute("PRAGMA table_info(normalized_roads)"))
    assert columns == NORMALIZED_COLUMNS


def test_iter_records_ordered(store, add_collisions):
    add_collisions(("3", "A", "B"), ("1", "C", "D"), ("2", "E", "F"))
    store.populate()
    assert [r.case_id for r in store.iter_records()] == ["1", "2", "3"]


def test_get_missing(store):
    assert store.get("nope") is None


def test_insert_failure_is_fatal(store, add_collisions, caplog):
    add_collisions(("1", "GRANT", "DWIGHT WAY"))
    store.populate()

    with pytest.raises(sqlite3.IntegrityError):
        store.populate()

    assert "error on insert into normalized_roads case_id=1" in caplog.text
    assert store.count() == 1

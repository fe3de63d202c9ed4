"""
Shared fixtures for switrs_db tests.
"""

import shutil
from pathlib import Path

import pytest

from switrs_db.store.database import Database
from switrs_db.store.templates import SCHEMA_DIR, create_table

REPO_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = REPO_ROOT / "config"
RAW_DATA_DIR = Path(__file__).resolve().parent / "data" / "raw"


@pytest.fixture
def database():
    """In-memory database, closed after the test."""
    with Database() as db:
        yield db


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""
    def _write(name, text):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def road_tables(database):
    """Database with empty collisions, normalized, corrected and typo tables."""
    create_table(database, "collisions", "", SCHEMA_DIR / "collisions.sql")
    create_table(database, "normalized_roads", "", SCHEMA_DIR / "normalized_roads.sql")
    create_table(database, "corrected_roads", "", SCHEMA_DIR / "corrected_roads.sql")
    create_table(database, "berkeley_road_typos", "", SCHEMA_DIR / "road_typos.sql")
    return database


@pytest.fixture
def add_collisions(road_tables):
    """Insert (case_id, primary_rd, secondary_rd) rows into collisions."""
    def _add(*rows):
        with road_tables.transaction() as conn:
            conn.executemany(
                "INSERT INTO collisions (CASE_ID, PRIMARY_RD, SECONDARY_RD) VALUES (?, ?, ?)",
                rows,
            )
    return _add


@pytest.fixture
def add_typos(road_tables):
    """Insert (normalized_rd, correct_rd) rows into the typo table."""
    def _add(*rows):
        with road_tables.transaction() as conn:
            conn.executemany(
                "INSERT INTO berkeley_road_typos (normalized_rd, correct_rd) VALUES (?, ?)",
                rows,
            )
    return _add


@pytest.fixture
def add_corrections(road_tables):
    """Insert (case_id, primary_rd, secondary_rd) rows into corrected_roads."""
    def _add(*rows):
        with road_tables.transaction() as conn:
            conn.executemany(
                "INSERT INTO corrected_roads (case_id, primary_rd, secondary_rd) VALUES (?, ?, ?)",
                rows,
            )
    return _add


@pytest.fixture
def project_config(tmp_path, monkeypatch):
    """Copy of the shipped config directory, safe to rewrite."""
    monkeypatch.delenv("CORRECTED_ROADS", raising=False)
    target = tmp_path / "config"
    shutil.copytree(CONFIG_DIR, target)
    return target


@pytest.fixture
def raw_data_dir():
    return RAW_DATA_DIR

"""Tests for templated table creation."""

import pytest

from switrs_db.store.templates import SCHEMA_DIR, create_table, render_ddl, resolve_schema_path


class TestRenderDdl:

    def test_fills_placeholders(self):
        ddl = render_ddl('CREATE TABLE "{table}" ([key] {pk_type} PRIMARY KEY)', "weather", "CHAR(1)")
        assert ddl == 'CREATE TABLE "weather" ([key] CHAR(1) PRIMARY KEY)'

    def test_unknown_placeholder(self):
        with pytest.raises(ValueError, match="Unknown placeholder"):
            render_ddl('CREATE TABLE "{name}" (x)', "weather")

    def test_bundled_templates_render(self):
        for template in SCHEMA_DIR.glob("*.sql"):
            ddl = render_ddl(template.read_text(encoding="utf-8"), "t", "INTEGER")
            assert "{" not in ddl


class TestResolveSchemaPath:

    def test_local_file_first(self, tmp_path):
        local = tmp_path / "pk_table.sql"
        local.write_text("-- local", encoding="utf-8")
        assert resolve_schema_path("pk_table.sql", tmp_path) == local

    def test_bundled_fallback(self, tmp_path):
        assert resolve_schema_path("collisions.sql", tmp_path) == SCHEMA_DIR / "collisions.sql"

    def test_bundled_fallback_by_name(self, tmp_path):
        assert resolve_schema_path("schema/victims.sql", tmp_path) == SCHEMA_DIR / "victims.sql"

    def test_missing(self, tmp_path):
        assert resolve_schema_path("nope.sql", tmp_path) == tmp_path / "nope.sql"


class TestCreateTable:

    def test_lookup_table(self, database):
        create_table(database, "day_of_week", "INTEGER", SCHEMA_DIR / "pk_table.sql")
        database.execute("INSERT INTO day_of_week VALUES (1, 'Monday')")

        columns = [r["name"] for r in database.execute("PRAGMA table_info(day_of_week)")]
        assert columns == ["key", "description"]

    def test_normalized_roads_indexes(self, database):
        create_table(database, "normalized_roads", "", SCHEMA_DIR / "normalized_roads.sql")
        indexes = {r["name"] for r in database.execute("PRAGMA index_list(normalized_roads)")}
        assert {"normalized_roads_primary_rd", "normalized_roads_secondary_rd"} <= indexes

    def test_create_is_repeatable(self, database):
        create_table(database, "corrected_roads", "", SCHEMA_DIR / "corrected_roads.sql")
        create_table(database, "corrected_roads", "", SCHEMA_DIR / "corrected_roads.sql")
        assert database.table_exists("corrected_roads")

    def test_missing_schema(self, database, tmp_path):
        with pytest.raises(FileNotFoundError, match="failed to read"):
            create_table(database, "x", "", tmp_path / "missing.sql")

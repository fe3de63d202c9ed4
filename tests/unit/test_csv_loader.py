"""
Unit tests for CSV bulk loading.
"""

import logging
import sqlite3

import pytest

from switrs_db.store.csv_loader import is_duplicate_error, load_csv, read_csv_table

CORRECTIONS = (
    "case_id,primary_rd,secondary_rd\n"
    '1,"GRANT ST","DWIGHT WAY"\n'
    '2,"ASHBY AVE",""\n'
)


def rows(database, table):
    return [tuple(r) for r in database.execute(f'SELECT * FROM "{table}" ORDER BY 1')]


class TestReadCsvTable:

    def test_values_are_trimmed_strings(self, write_csv):
        path = write_csv("t.csv", "key, description\n 01 ,  Monday  \n")
        df = read_csv_table(path)
        assert list(df.columns) == ["key", "description"]
        assert df.iloc[0].tolist() == ["01", "Monday"]

    def test_na_strings_stay_text(self, write_csv):
        path = write_csv("t.csv", "key,description\nNA,N/A\n")
        assert read_csv_table(path).iloc[0].tolist() == ["NA", "N/A"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_csv_table(tmp_path / "missing.csv")


class TestLoadCsv:

    def test_loads_rows(self, road_tables, write_csv):
        result = load_csv(road_tables, "corrected_roads", write_csv("c.csv", CORRECTIONS))

        assert result.rows_read == 2
        assert result.inserted == 2
        assert rows(road_tables, "corrected_roads") == [
            ("1", "GRANT ST", "DWIGHT WAY"),
            ("2", "ASHBY AVE", None),
        ]

    def test_header_only(self, road_tables, write_csv):
        result = load_csv(road_tables, "corrected_roads", write_csv("c.csv", "case_id,primary_rd,secondary_rd\n"))
        assert result.inserted == 0
        assert rows(road_tables, "corrected_roads") == []

    def test_empty_file(self, road_tables, write_csv):
        result = load_csv(road_tables, "corrected_roads", write_csv("c.csv", ""))
        assert result.rows_read == 0

    def test_missing_file(self, road_tables, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_csv(road_tables, "corrected_roads", tmp_path / "missing.csv")

    def test_duplicate_is_fatal_by_default(self, road_tables, write_csv, caplog):
        path = write_csv("c.csv", CORRECTIONS + '1,"OTHER ST",""\n')

        with pytest.raises(sqlite3.IntegrityError):
            load_csv(road_tables, "corrected_roads", path)

        assert rows(road_tables, "corrected_roads") == []
        assert "error on insert into corrected_roads" in caplog.text
        assert "case_id=1,primary_rd=OTHER ST," in caplog.text

    def test_duplicates_skipped_when_allowed(self, road_tables, write_csv, add_corrections):
        add_corrections(("1", "GRANT ST", "DWIGHT WAY"))

        result = load_csv(road_tables, "corrected_roads", write_csv("c.csv", CORRECTIONS), allow_duplicates=True)

        assert result.rows_read == 2
        assert result.inserted == 1
        assert result.duplicates_skipped == 1
        assert len(rows(road_tables, "corrected_roads")) == 2

    def test_new_rows_reported(self, road_tables, write_csv, add_corrections, caplog):
        add_corrections(("1", "GRANT ST", "DWIGHT WAY"))

        with caplog.at_level(logging.INFO, logger="switrs_db.store.csv_loader"):
            result = load_csv(
                road_tables,
                "corrected_roads",
                write_csv("c.csv", CORRECTIONS),
                allow_duplicates=True,
                report_new_entries=True,
            )

        assert result.new_rows == [{"case_id": "2", "primary_rd": "ASHBY AVE", "secondary_rd": ""}]
        inserted = [r.getMessage() for r in caplog.records if "INSERTED" in r.getMessage()]
        assert inserted == ["    INSERTED case_id=2,primary_rd=ASHBY AVE,secondary_rd=,"]

    def test_other_constraint_is_fatal_even_with_duplicates_allowed(self, road_tables, write_csv):
        path = write_csv("t.csv", "normalized_rd,correct_rd\nGRANT,\n")

        with pytest.raises(sqlite3.IntegrityError):
            load_csv(road_tables, "berkeley_road_typos", path, allow_duplicates=True)

    def test_unknown_column_is_fatal(self, road_tables, write_csv):
        path = write_csv("c.csv", "case_id,primary_road\n1,GRANT\n")

        with pytest.raises(sqlite3.OperationalError):
            load_csv(road_tables, "corrected_roads", path, allow_duplicates=True)

    def test_progress_bar(self, road_tables, write_csv):
        result = load_csv(road_tables, "corrected_roads", write_csv("c.csv", CORRECTIONS), show_progress=True)
        assert result.inserted == 2


class TestIsDuplicateError:

    def test_primary_key(self, road_tables, add_corrections):
        add_corrections(("1", "A", "B"))
        with pytest.raises(sqlite3.IntegrityError) as excinfo:
            road_tables.execute("INSERT INTO corrected_roads VALUES ('1', 'C', 'D')")
        assert is_duplicate_error(excinfo.value)

    def test_not_null(self, road_tables):
        with pytest.raises(sqlite3.IntegrityError) as excinfo:
            road_tables.execute("INSERT INTO berkeley_road_typos VALUES ('A', NULL)")
        assert not is_duplicate_error(excinfo.value)

    def test_operational_error(self):
        assert not is_duplicate_error(sqlite3.OperationalError("no such table: x"))

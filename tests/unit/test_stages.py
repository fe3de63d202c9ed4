"""
Unit tests for the road fix-up stages.
"""

import sqlite3

import pytest

from switrs_db.config_manager import RoadFixupConfig
from switrs_db.stages import (
    BaseStage,
    NormalizeRoadsStage,
    ReconcileRoadsStage,
    ReloadCorrectionsStage,
    StageResult,
)


@pytest.fixture
def fixup_config(tmp_path):
    return RoadFixupConfig(corrections_path=tmp_path / "CORRECTED_ROADS.csv")


class CountingStage(BaseStage):

    def execute(self):
        return StageResult(stage_name=self.stage_name, rows_processed=3, rows_written=2, warnings=1)


def test_statistics(database):
    stage = CountingStage("counting", database, {})
    stage.run()
    stage.run()

    stats = stage.get_statistics().to_dict()
    assert stats["runs"] == 2
    assert stats["rows_processed"] == 6
    assert stats["rows_written"] == 4
    assert stats["warnings"] == 2

    stage.reset_statistics()
    assert stage.get_statistics().runs == 0


def test_road_stages_in_order(road_tables, fixup_config, add_collisions, add_typos):
    add_collisions(("1", "W COLUSA AV", "XYZ ST"), ("2", "ASHBY AVE", "GRANT"))
    add_typos(("COLUSA AV", "COLUSA AVE"), ("ASHBY AVE", "ASHBY AVE"))

    normalized = NormalizeRoadsStage(road_tables, fixup_config).run()
    assert normalized.rows_written == 2

    reconcile = ReconcileRoadsStage(road_tables, fixup_config)
    reconciled = reconcile.run()
    assert reconciled.rows_processed == 2
    assert reconciled.warnings == 2
    assert reconcile.last_result.unresolved[0].normalized_rd == "XYZ ST"
    assert fixup_config.corrections_path.exists()

    reloaded = ReloadCorrectionsStage(road_tables, fixup_config).run()
    assert reloaded.rows_written == 2
    rows = road_tables.execute("SELECT * FROM corrected_roads ORDER BY case_id").fetchall()
    assert [tuple(r) for r in rows] == [("1", "COLUSA AVE", None), ("2", "ASHBY AVE", None)]


def test_stage_failure_propagates(database, fixup_config):
    # no tables created
    with pytest.raises(sqlite3.OperationalError):
        NormalizeRoadsStage(database, fixup_config).run()

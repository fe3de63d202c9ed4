"""
Road fix-up stages: normalize, reconcile, reload.
"""

from switrs_db.config_manager import RoadFixupConfig
from switrs_db.roads.correction_loader import CorrectionLoader
from switrs_db.roads.normalized_store import NormalizedRoadStore
from switrs_db.roads.reconciliation import ReconciliationEngine
from switrs_db.stages.base_stage import BaseStage, StageResult
from switrs_db.store.database import Database


class NormalizeRoadsStage(BaseStage):
    """Fill the normalized roads table from the raw collisions."""

    def __init__(self, database: Database, config: RoadFixupConfig):
        super().__init__("normalize_roads", database, config)
        self.store = NormalizedRoadStore(
            database,
            table=config.normalized_table,
            collisions_table=config.collisions_table,
        )

    def execute(self) -> StageResult:
        count = self.store.populate()
        return StageResult(
            stage_name=self.stage_name,
            rows_processed=count,
            rows_written=count,
        )


class ReconcileRoadsStage(BaseStage):
    """Resolve canonical road names and rewrite the correction file."""

    def __init__(self, database: Database, config: RoadFixupConfig):
        super().__init__("reconcile_roads", database, config)
        self.engine = ReconciliationEngine(
            database,
            corrections_path=config.corrections_path,
            normalized_table=config.normalized_table,
            collisions_table=config.collisions_table,
            corrected_table=config.corrected_table,
            typo_table=config.typo_table,
            known_good_table=config.known_good_table,
            known_good_column=config.known_good_column,
            typo_source=config.typo_source,
        )
        self.last_result = None

    def execute(self) -> StageResult:
        result = self.engine.run()
        self.last_result = result
        return StageResult(
            stage_name=self.stage_name,
            rows_processed=result.total_cases,
            rows_written=result.total_cases,
            warnings=len(result.unresolved),
            details=result.to_dict(),
        )


class ReloadCorrectionsStage(BaseStage):
    """Load newly resolved cases into the corrected roads table."""

    def __init__(self, database: Database, config: RoadFixupConfig):
        super().__init__("reload_corrections", database, config)
        self.loader = CorrectionLoader(
            database,
            corrections_path=config.corrections_path,
            corrected_table=config.corrected_table,
        )

    def execute(self) -> StageResult:
        result = self.loader.reload()
        return StageResult(
            stage_name=self.stage_name,
            rows_processed=result.rows_read,
            rows_written=result.inserted,
            details=result.to_dict(),
        )

"""
Pipeline orchestrator for building the collision database.

The Pipeline creates and loads the lookup tables, then the primary tables in
configured order, then runs the fix-up stages (road normalization,
reconciliation, correction reload) against the loaded data.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any

from switrs_db.config_manager import SchemaConfig
from switrs_db.stages.base_stage import BaseStage, StageResult, StageStatistics
from switrs_db.stages.road_stages import (
    NormalizeRoadsStage,
    ReconcileRoadsStage,
    ReloadCorrectionsStage,
)
from switrs_db.store.csv_loader import LoadResult, load_csv
from switrs_db.store.database import Database
from switrs_db.store.templates import create_table

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of building the database."""
    name: str
    table_counts: Dict[str, int] = field(default_factory=dict)
    loads: List[LoadResult] = field(default_factory=list)
    stage_statistics: List[StageStatistics] = field(default_factory=list)
    unresolved_roads: int = 0
    new_corrections: int = 0
    total_time_ms: int = 0
    start_time: str = ""
    end_time: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "table_counts": dict(self.table_counts),
            "loads": [load.to_dict() for load in self.loads],
            "stages": [stage.to_dict() for stage in self.stage_statistics],
            "unresolved_roads": self.unresolved_roads,
            "new_corrections": self.new_corrections,
            "total_time_ms": self.total_time_ms,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


class Pipeline:
    """Orchestrates table loading and fix-up stages."""

    def __init__(
        self,
        database: Database,
        config: SchemaConfig,
        data_path: Path,
        show_progress: bool = False,
    ):
        """Initialize pipeline.

        Args:
            database: Database handle to build into
            config: Schema configuration
            data_path: Directory the raw SWITRS dump was extracted to
            show_progress: Show progress bars while loading large tables
        """
        self.database = database
        self.config = config
        self.data_path = Path(data_path)
        self.show_progress = show_progress
        self.stages: List[BaseStage] = []
        self.loads: List[LoadResult] = []

        if config.road_fixups.enabled:
            fixups = config.road_fixups
            self.add_stage(NormalizeRoadsStage(database, fixups))
            self.add_stage(ReconcileRoadsStage(database, fixups))
            self.add_stage(ReloadCorrectionsStage(database, fixups))

    def add_stage(self, stage: BaseStage) -> None:
        """Add a fix-up stage to the pipeline.

        Args:
            stage: Stage instance to add
        """
        self.stages.append(stage)

    def _load(self, table: str, data: Path) -> LoadResult:
        result = load_csv(self.database, table, data, show_progress=self.show_progress)
        self.loads.append(result)
        return result

    def init_lookup_tables(self) -> None:
        """Create and load every lookup table, in name order."""
        for name in sorted(self.config.lookup_tables):
            table = self.config.lookup_tables[name]
            logger.info(f"LOADING {name}")
            create_table(self.database, name, table.pk_type, table.schema or self.config.lookup_schema)
            self._load(name, table.data)

    def load_tables(self) -> None:
        """Create the primary tables in configured order and load their data."""
        for table_name in self.config.table_order:
            table = self.config.tables[table_name]
            logger.info(f"LOADING {table_name}")
            create_table(self.database, table_name, "", table.schema)

            data = table.resolve_data(self.data_path)
            if data is not None:
                self._load(table_name, data)

    def run_fixups(self) -> List[StageResult]:
        """Run each fix-up stage once, in order.

        Returns:
            StageResult per stage
        """
        results = []
        for stage in self.stages:
            stage.reset_statistics()
            results.append(stage.run())
        return results

    def run(self) -> PipelineResult:
        """Build the whole database.

        Returns:
            PipelineResult with table counts and stage statistics
        """
        start_time = time.time()
        result = PipelineResult(name=self.config.name, start_time=datetime.now().isoformat())

        logger.info(f"Building {self.config.name} from {self.data_path}")

        self.init_lookup_tables()
        self.load_tables()
        stage_results = self.run_fixups()

        for stage_result in stage_results:
            if stage_result.stage_name == "reconcile_roads":
                result.unresolved_roads = stage_result.warnings
            elif stage_result.stage_name == "reload_corrections":
                result.new_corrections = stage_result.rows_written

        result.loads = list(self.loads)
        result.stage_statistics = [stage.get_statistics() for stage in self.stages]
        result.table_counts = self.database.table_counts()
        result.total_time_ms = int((time.time() - start_time) * 1000)
        result.end_time = datetime.now().isoformat()

        logger.info(f"Successfully imported data in {result.total_time_ms}ms")
        return result


def build_database(
    config: SchemaConfig,
    data_path: Path,
    sqlite_file: Path,
    show_progress: bool = False,
) -> PipelineResult:
    """Build the database in memory and write it to ``sqlite_file``.

    Args:
        config: Schema configuration
        data_path: Directory of the raw SWITRS dump
        sqlite_file: Destination SQLite file (replaced if present)
        show_progress: Show progress bars while loading

    Returns:
        PipelineResult
    """
    with Database() as database:
        result = Pipeline(database, config, data_path, show_progress=show_progress).run()
        logger.info(f"Writing DB to {sqlite_file}")
        database.backup(sqlite_file)
    return result

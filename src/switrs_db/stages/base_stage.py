"""
Base class for all fix-up stages.

A stage runs once against the whole database after the tables are loaded,
e.g. normalizing road names or rebuilding the corrected roads file.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any

from switrs_db.store.database import Database

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Counts reported by one stage run."""
    stage_name: str
    rows_processed: int = 0
    rows_written: int = 0
    warnings: int = 0
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StageStatistics:
    """Statistics for a stage run."""
    stage_name: str
    runs: int = 0
    rows_processed: int = 0
    rows_written: int = 0
    warnings: int = 0
    total_time_ms: int = 0

    def add_result(self, result: StageResult, elapsed_ms: int) -> None:
        """Add a result to statistics."""
        self.runs += 1
        self.rows_processed += result.rows_processed
        self.rows_written += result.rows_written
        self.warnings += result.warnings
        self.total_time_ms += elapsed_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "stage_name": self.stage_name,
            "runs": self.runs,
            "rows_processed": self.rows_processed,
            "rows_written": self.rows_written,
            "warnings": self.warnings,
            "total_time_ms": self.total_time_ms,
        }


class BaseStage(ABC):
    """Abstract base class for fix-up stages."""

    def __init__(
        self,
        stage_name: str,
        database: Database,
        config: Any,
    ):
        """Initialize stage.

        Args:
            stage_name: Unique name for this stage
            database: Database handle
            config: Stage configuration
        """
        self.stage_name = stage_name
        self.database = database
        self.config = config
        self.stats = StageStatistics(stage_name=stage_name)

    @abstractmethod
    def execute(self) -> StageResult:
        """Do the stage's work.

        Returns:
            StageResult with row counts

        Raises:
            Exception: Any failure aborts the pipeline
        """
        pass

    def run(self) -> StageResult:
        """Run the stage, timing it and recording statistics."""
        logger.info(f"Running stage: {self.stage_name}")
        start_time = time.time()

        result = self.execute()

        elapsed_ms = int((time.time() - start_time) * 1000)
        self.stats.add_result(result, elapsed_ms)
        logger.info(
            f"  {self.stage_name}: processed {result.rows_processed}, "
            f"wrote {result.rows_written}, warnings {result.warnings} ({elapsed_ms}ms)"
        )
        return result

    def get_statistics(self) -> StageStatistics:
        return self.stats

    def reset_statistics(self) -> None:
        self.stats = StageStatistics(stage_name=self.stage_name)

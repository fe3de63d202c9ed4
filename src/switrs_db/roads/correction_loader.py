"""
Reload of the correction file into the corrected roads table.
"""

import logging
from pathlib import Path
from typing import Union

from switrs_db.store.csv_loader import LoadResult, load_csv
from switrs_db.store.database import Database

logger = logging.getLogger(__name__)


class CorrectionLoader:
    """Loads a freshly written correction file, keeping rows already present."""

    def __init__(
        self,
        database: Database,
        corrections_path: Union[str, Path],
        corrected_table: str = "corrected_roads",
    ):
        self.database = database
        self.corrections_path = Path(corrections_path)
        self.corrected_table = corrected_table

    def reload(self) -> LoadResult:
        """Insert rows for cases not yet in the table and report them.

        Rows for cases already present are skipped; any other insert
        failure aborts the reload.

        Returns:
            LoadResult whose ``new_rows`` lists the inserted rows
        """
        logger.info(f"RELOADING {self.corrected_table} with any new roads")
        result = load_csv(
            self.database,
            self.corrected_table,
            self.corrections_path,
            allow_duplicates=True,
            report_new_entries=True,
        )
        logger.info(
            f"{result.inserted} new, {result.duplicates_skipped} already present "
            f"in {self.corrected_table}"
        )
        return result

"""
Per-case table of parsed primary and secondary roads.

Rows are derived once from the raw collision text and never updated;
corrections live in their own table.
"""

import logging
import sqlite3
from typing import Iterator, Optional

from switrs_db.roads.parser import parse_road
from switrs_db.store.database import Database
from switrs_db.store.models import NormalizedRoadRecord

logger = logging.getLogger(__name__)

NORMALIZED_COLUMNS = (
    "case_id",
    "primary_rd",
    "primary_rd_address",
    "primary_rd_block",
    "primary_rd_direction",
    "secondary_rd",
    "secondary_rd_address",
    "secondary_rd_block",
    "secondary_rd_direction",
)


class NormalizedRoadStore:
    """Reads and writes the normalized_roads table."""

    def __init__(
        self,
        database: Database,
        table: str = "normalized_roads",
        collisions_table: str = "collisions",
    ):
        """Initialize store.

        Args:
            database: Database handle
            table: Normalized roads table
            collisions_table: Raw collisions table to derive rows from
        """
        self.database = database
        self.table = table
        self.collisions_table = collisions_table

    def populate(self) -> int:
        """Parse every collision's roads and insert one row per case.

        Returns:
            Number of rows inserted

        Raises:
            sqlite3.Error: If a row fails to insert (logged with its values)
        """
        columns = ", ".join(NORMALIZED_COLUMNS)
        placeholders = ", ".join("?" for _ in NORMALIZED_COLUMNS)
        insert_sql = f'INSERT INTO "{self.table}" ({columns}) VALUES ({placeholders})'

        rows = self.database.execute(
            f'SELECT case_id, primary_rd, secondary_rd FROM "{self.collisions_table}" ORDER BY case_id'
        ).fetchall()

        count = 0
        with self.database.transaction() as conn:
            for row in rows:
                record = NormalizedRoadRecord(
                    case_id=str(row["case_id"]),
                    primary=parse_road(row["primary_rd"]),
                    secondary=parse_road(row["secondary_rd"]),
                )
                try:
                    conn.execute(insert_sql, record.to_db_params())
                except sqlite3.Error as e:
                    logger.error(
                        f"error on insert into {self.table} case_id={record.case_id},"
                        f"primary={record.primary!r},secondary={record.secondary!r}: {e}"
                    )
                    raise
                count += 1

        logger.info(f"Normalized roads for {count} cases")
        return count

    def get(self, case_id: str) -> Optional[NormalizedRoadRecord]:
        """Get the normalized roads for one case."""
        row = self.database.execute(
            f'SELECT * FROM "{self.table}" WHERE case_id = ?',
            (case_id,)
        ).fetchone()
        return NormalizedRoadRecord.from_db_row(row) if row else None

    def iter_records(self) -> Iterator[NormalizedRoadRecord]:
        """Yield every record ordered by case id."""
        for row in self.database.execute(f'SELECT * FROM "{self.table}" ORDER BY case_id'):
            yield NormalizedRoadRecord.from_db_row(row)

    def count(self) -> int:
        return self.database.execute(f'SELECT COUNT(*) FROM "{self.table}"').fetchone()[0]

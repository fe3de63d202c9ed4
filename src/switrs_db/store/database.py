"""
SQLite database handle shared by every loading and fix-up step.

The handle owns exactly one connection. It is created by the caller and
passed explicitly to the loaders, stages and road components.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Any, Iterator, List, Optional, Union

from switrs_db.store.models import Collision

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class Database:
    """Single exclusive SQLite connection."""

    def __init__(self, db_path: Union[str, Path] = MEMORY, read_only: bool = False):
        """Open database.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
            read_only: Open an existing file without write access
        """
        self.db_path = db_path if db_path == MEMORY else Path(db_path)

        if read_only:
            if self.db_path == MEMORY:
                raise ValueError("An in-memory database cannot be opened read-only")
            if not self.db_path.exists():
                raise FileNotFoundError(f"Database file not found: {self.db_path}")
            self.conn = sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
        else:
            if self.db_path != MEMORY:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.db_path)

        self.conn.row_factory = sqlite3.Row
        self.read_only = read_only

    @classmethod
    def open_read_only(cls, db_path: Union[str, Path]) -> "Database":
        """Open an existing database file for inspection."""
        return cls(db_path, read_only=True)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection, committing on success and rolling back on error."""
        try:
            yield self.conn
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    def execute(self, sql: str, params: Any = ()) -> sqlite3.Cursor:
        return self.conn.execute(sql, params)

    def executescript(self, sql: str) -> None:
        self.conn.executescript(sql)

    def table_exists(self, name: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
            (name,)
        ).fetchone()
        return row is not None

    def table_names(self) -> List[str]:
        rows = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ).fetchall()
        return [row[0] for row in rows]

    def backup(self, target: Union[str, Path]) -> Path:
        """Copy the whole database into a file, replacing it if present.

        Args:
            target: Destination SQLite file

        Returns:
            Path of the written file
        """
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.unlink(missing_ok=True)

        dest = sqlite3.connect(target)
        try:
            self.conn.backup(dest)
        finally:
            dest.close()

        logger.info(f"Wrote database to {target}")
        return target

    def table_counts(self) -> Dict[str, int]:
        """Row count of every table, keyed by table name."""
        return {
            name: self.conn.execute(f'SELECT COUNT(*) FROM "{name}"').fetchone()[0]
            for name in self.table_names()
        }

    def get_statistics(self, corrected_table: str = "corrected_roads") -> Dict[str, Any]:
        """Get database statistics.

        Returns:
            Dict with table row counts and corrected road coverage
        """
        stats: Dict[str, Any] = {"tables": self.table_counts()}

        if self.table_exists(corrected_table):
            row = self.conn.execute(
                f"""SELECT
                       COUNT(*) AS total,
                       SUM(CASE WHEN primary_rd IS NULL OR primary_rd = '' THEN 1 ELSE 0 END) AS primary_missing,
                       SUM(CASE WHEN secondary_rd IS NULL OR secondary_rd = '' THEN 1 ELSE 0 END) AS secondary_missing
                    FROM "{corrected_table}" """
            ).fetchone()
            stats["corrected_roads"] = {
                "total": row["total"],
                "unresolved_primary": row["primary_missing"] or 0,
                "unresolved_secondary": row["secondary_missing"] or 0,
            }

        return stats

    def iter_collisions(
        self,
        limit: Optional[int] = None,
        collisions_table: str = "collisions",
        corrected_table: str = "corrected_roads",
    ) -> Iterator[Collision]:
        """Yield collisions ordered by case id, with corrected roads when available.

        Args:
            limit: Maximum number of collisions to return
            collisions_table: Raw collisions table
            corrected_table: Table of canonical road names

        Returns:
            Iterator of Collision records
        """
        if self.table_exists(corrected_table):
            sql = f"""SELECT c.*,
                             cr.primary_rd AS corrected_primary_rd,
                             cr.secondary_rd AS corrected_secondary_rd
                      FROM "{collisions_table}" AS c
                      LEFT JOIN "{corrected_table}" AS cr ON cr.case_id = c.case_id
                      ORDER BY c.case_id"""
        else:
            sql = f'SELECT * FROM "{collisions_table}" ORDER BY case_id'

        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)

        for row in self.conn.execute(sql, params):
            yield Collision.from_db_row(row)

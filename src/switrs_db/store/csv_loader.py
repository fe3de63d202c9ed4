"""
CSV bulk loading into database tables.

The CSV header names the target columns; every row becomes one INSERT.
Values are trimmed and empty strings are stored as NULL.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Union

import pandas as pd
from tqdm import tqdm

from switrs_db.store.database import Database

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of loading one CSV file into a table."""
    table: str
    source: Path
    rows_read: int = 0
    inserted: int = 0
    duplicates_skipped: int = 0
    new_rows: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        return {
            "table": self.table,
            "source": str(self.source),
            "rows_read": self.rows_read,
            "inserted": self.inserted,
            "duplicates_skipped": self.duplicates_skipped,
        }


def is_duplicate_error(error: sqlite3.Error) -> bool:
    """True for primary key / unique constraint violations."""
    if not isinstance(error, sqlite3.IntegrityError):
        return False
    if "UNIQUE constraint failed" in str(error):
        return True
    return getattr(error, "sqlite_errorname", None) in (
        "SQLITE_CONSTRAINT_PRIMARYKEY",
        "SQLITE_CONSTRAINT_UNIQUE",
    )


def read_csv_table(path: Path) -> pd.DataFrame:
    """Read a headed CSV as trimmed strings.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"failed to read csv {path}: file not found")

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        return pd.DataFrame()

    df.columns = [str(c).strip() for c in df.columns]
    for column in df.columns:
        df[column] = df[column].str.strip()
    return df


def _describe_row(headers: List[str], values: List[str]) -> str:
    return "".join(f"{h}={v}," for h, v in zip(headers, values))


def load_csv(
    database: Database,
    table: str,
    path: Union[str, Path],
    allow_duplicates: bool = False,
    report_new_entries: bool = False,
    show_progress: bool = False,
) -> LoadResult:
    """Load data into the named table from the CSV file at the given path.

    Args:
        database: Target database
        table: Table name
        path: CSV file with a header row naming the columns
        allow_duplicates: Skip rows that violate a unique/primary key
        report_new_entries: Log each row that was actually inserted
        show_progress: Show a tqdm progress bar

    Returns:
        LoadResult with counts and the newly inserted rows

    Raises:
        FileNotFoundError: If the CSV does not exist
        sqlite3.Error: If a row fails to insert (other than a tolerated duplicate)
    """
    path = Path(path)
    result = LoadResult(table=table, source=path)

    df = read_csv_table(path)
    headers = list(df.columns)
    if not headers:
        logger.debug(f"{path} has no header, nothing loaded into {table}")
        return result

    fields = ", ".join(f'"{h}"' for h in headers)
    values = ", ".join("?" for _ in headers)
    insert_sql = f'INSERT INTO "{table}" ({fields}) VALUES({values})'

    rows = df.itertuples(index=False, name=None)
    if show_progress:
        rows = tqdm(rows, total=len(df), desc=f"Loading {table}")

    with database.transaction() as conn:
        for row_number, record in enumerate(rows):
            record = list(record)
            params = [value if value != "" else None for value in record]
            result.rows_read += 1

            try:
                cursor = conn.execute(insert_sql, params)
            except sqlite3.Error as e:
                if allow_duplicates and is_duplicate_error(e):
                    result.duplicates_skipped += 1
                    continue
                logger.error(
                    f"error on insert into {table}: {e}, row {row_number}: "
                    f"{_describe_row(headers, record)}"
                )
                raise

            if cursor.rowcount > 0:
                result.inserted += 1
                if report_new_entries:
                    result.new_rows.append(dict(zip(headers, record)))
                    logger.info(f"    INSERTED {_describe_row(headers, record)}")

    logger.debug(f"Loaded {result.inserted} of {result.rows_read} rows into {table}")
    return result

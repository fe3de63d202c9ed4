"""
Relational store: database handle, table templates, CSV loading and records.
"""

from .database import Database
from .csv_loader import LoadResult, load_csv
from .templates import create_table, render_ddl, resolve_schema_path
from .models import (
    Collision,
    CorrectionRecord,
    NormalizedRoad,
    NormalizedRoadRecord,
    RoadSlot,
)

__all__ = [
    "Database",
    "LoadResult",
    "load_csv",
    "create_table",
    "render_ddl",
    "resolve_schema_path",
    "Collision",
    "CorrectionRecord",
    "NormalizedRoad",
    "NormalizedRoadRecord",
    "RoadSlot",
]

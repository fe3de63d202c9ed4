"""
Fix-up stages run after the tables are loaded.

Each stage implements the BaseStage abstract class:
- NormalizeRoadsStage: parse road fields into the normalized roads table
- ReconcileRoadsStage: resolve canonical names, rewrite the correction file
- ReloadCorrectionsStage: load new corrections into the corrected roads table
"""

from .base_stage import BaseStage, StageResult, StageStatistics
from .road_stages import NormalizeRoadsStage, ReconcileRoadsStage, ReloadCorrectionsStage

__all__ = [
    "BaseStage",
    "StageResult",
    "StageStatistics",
    "NormalizeRoadsStage",
    "ReconcileRoadsStage",
    "ReloadCorrectionsStage",
]

"""
Road name normalization and reconciliation.

- parse_road: split raw road text into street, address, block and direction
- NormalizedRoadStore: per-case parsed roads table
- ReconciliationEngine: resolve canonical names and write the correction file
- CorrectionLoader: reload the correction file into the corrected roads table
"""

from .parser import parse_road, DIRECTIONS
from .normalized_store import NormalizedRoadStore
from .reconciliation import (
    ReconciliationEngine,
    ReconciliationResult,
    SlotCandidates,
    UnresolvedRoad,
    coalesce,
)
from .correction_loader import CorrectionLoader

__all__ = [
    "parse_road",
    "DIRECTIONS",
    "NormalizedRoadStore",
    "ReconciliationEngine",
    "ReconciliationResult",
    "SlotCandidates",
    "UnresolvedRoad",
    "coalesce",
    "CorrectionLoader",
]

"""
Road name reconciliation.

Resolves one canonical road name per case and road slot from the authority
sources, in priority order:

1. manual corrections (the corrected roads table),
2. the raw road text itself, when it is exactly a name on the known-good list,
3. the typo table suggestion for the normalized road name.

The first non-empty candidate wins. Cases with no candidate are written with
an empty name and reported so the typo table can be extended.

The correction file is regenerated from scratch on every run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Dict, List, Optional, Set, Tuple, Union

from switrs_db.store.database import Database
from switrs_db.store.models import CorrectionRecord, RoadSlot

logger = logging.getLogger(__name__)

CORRECTIONS_HEADER = "case_id,primary_rd,secondary_rd\n"


def coalesce(*values: Optional[str]) -> str:
    """Return the first non-empty value, or an empty string."""
    for value in values:
        if value:
            return value
    return ""


@dataclass(frozen=True)
class SlotCandidates:
    """Candidate canonical names for one road slot of one case."""
    manual: Optional[str] = None
    verified: Optional[str] = None
    suggested: Optional[str] = None

    PRIORITY: ClassVar[Tuple[str, ...]] = ("manual", "verified", "suggested")

    def ordered(self) -> List[Tuple[str, Optional[str]]]:
        """(source, value) pairs, highest priority first."""
        return [(source, getattr(self, source)) for source in self.PRIORITY]

    def resolve(self) -> str:
        return coalesce(*(value for _, value in self.ordered()))

    def source(self) -> Optional[str]:
        """Name of the winning source, None when unresolved."""
        for name, value in self.ordered():
            if value:
                return name
        return None


@dataclass(frozen=True)
class UnresolvedRoad:
    """A road slot no authority source could name."""
    case_id: str
    slot: RoadSlot
    normalized_rd: str
    original_rd: str
    typo_source: str = "the road typo table"

    @property
    def message(self) -> str:
        return (
            f"{self.case_id} has unknown {self.slot.column}: '{self.original_rd}'; "
            f"to get rid of this warning add '{self.normalized_rd}' as 'normalized_rd' "
            f"to {self.typo_source} with the 'correct_rd' entry, "
            f"or add the original name '{self.original_rd}' as 'normalized_rd'"
        )


@dataclass
class ReconciliationResult:
    """Result of one reconciliation run."""
    output_path: Path
    corrections: List[CorrectionRecord] = field(default_factory=list)
    unresolved: List[UnresolvedRoad] = field(default_factory=list)
    resolved_by: Dict[str, int] = field(default_factory=dict)

    @property
    def total_cases(self) -> int:
        return len(self.corrections)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        return {
            "output_path": str(self.output_path),
            "total_cases": self.total_cases,
            "unresolved": len(self.unresolved),
            "resolved_by": dict(self.resolved_by),
        }


@dataclass(frozen=True)
class _CaseRoads:
    case_id: str
    normalized: Dict[RoadSlot, str]
    original: Dict[RoadSlot, str]


class ReconciliationEngine:
    """Builds the corrected roads file from normalized roads and authority sources."""

    def __init__(
        self,
        database: Database,
        corrections_path: Union[str, Path],
        normalized_table: str = "normalized_roads",
        collisions_table: str = "collisions",
        corrected_table: str = "corrected_roads",
        typo_table: str = "berkeley_road_typos",
        known_good_table: Optional[str] = None,
        known_good_column: str = "correct_rd",
        typo_source: Optional[str] = None,
    ):
        """Initialize engine.

        Args:
            database: Database handle
            corrections_path: Correction CSV to (re)write
            normalized_table: Table of parsed roads, one row per case
            collisions_table: Raw collisions table (original road text)
            corrected_table: Manually corrected roads
            typo_table: normalized_rd -> correct_rd lookup
            known_good_table: Table holding known-good road names (default: typo_table)
            known_good_column: Column of known_good_table with the names
            typo_source: How to name the typo table in warnings (e.g. its CSV path)
        """
        self.database = database
        self.corrections_path = Path(corrections_path)
        self.normalized_table = normalized_table
        self.collisions_table = collisions_table
        self.corrected_table = corrected_table
        self.typo_table = typo_table
        self.known_good_table = known_good_table or typo_table
        self.known_good_column = known_good_column
        self.typo_source = typo_source or typo_table

    # ------------------------------------------------------------------
    # Candidate sources, each fetched on its own
    # ------------------------------------------------------------------

    def fetch_case_roads(self) -> List[_CaseRoads]:
        """Normalized and original road text for every normalized case."""
        rows = self.database.execute(
            f"""SELECT n.case_id AS case_id,
                       n.primary_rd AS normal_primary_rd,
                       n.secondary_rd AS normal_secondary_rd,
                       c.primary_rd AS original_primary_rd,
                       c.secondary_rd AS original_secondary_rd
                FROM "{self.normalized_table}" AS n
                LEFT JOIN "{self.collisions_table}" AS c ON c.case_id = n.case_id
                ORDER BY n.case_id"""
        ).fetchall()

        return [
            _CaseRoads(
                case_id=str(row["case_id"]),
                normalized={
                    RoadSlot.PRIMARY: row["normal_primary_rd"] or "",
                    RoadSlot.SECONDARY: row["normal_secondary_rd"] or "",
                },
                original={
                    RoadSlot.PRIMARY: row["original_primary_rd"] or "",
                    RoadSlot.SECONDARY: row["original_secondary_rd"] or "",
                },
            )
            for row in rows
        ]

    def fetch_manual_corrections(self) -> Dict[str, Dict[RoadSlot, Optional[str]]]:
        """case_id -> slot -> manually corrected name."""
        rows = self.database.execute(
            f'SELECT case_id, primary_rd, secondary_rd FROM "{self.corrected_table}" ORDER BY case_id'
        ).fetchall()
        return {
            str(row["case_id"]): {
                RoadSlot.PRIMARY: row["primary_rd"],
                RoadSlot.SECONDARY: row["secondary_rd"],
            }
            for row in rows
        }

    def fetch_known_good_roads(self) -> Set[str]:
        """Road names listed in the known-good column, matched against raw road text as is."""
        rows = self.database.execute(
            f"""SELECT DISTINCT "{self.known_good_column}" AS rd FROM "{self.known_good_table}"
                WHERE "{self.known_good_column}" IS NOT NULL"""
        ).fetchall()
        return {row["rd"] for row in rows if row["rd"]}

    def fetch_typo_suggestions(self) -> Dict[str, str]:
        """normalized_rd -> correct_rd; the first entry per key wins."""
        rows = self.database.execute(
            f"""SELECT normalized_rd, correct_rd FROM "{self.typo_table}"
                WHERE correct_rd IS NOT NULL AND correct_rd != ''
                ORDER BY normalized_rd, correct_rd"""
        ).fetchall()

        suggestions: Dict[str, str] = {}
        for row in rows:
            suggestions.setdefault(row["normalized_rd"], row["correct_rd"])
        return suggestions

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def reconcile(self) -> ReconciliationResult:
        """Resolve canonical names for every case without writing anything."""
        manual = self.fetch_manual_corrections()
        known_good = self.fetch_known_good_roads()
        suggestions = self.fetch_typo_suggestions()

        result = ReconciliationResult(output_path=self.corrections_path)
        resolved_by = {source: 0 for source in SlotCandidates.PRIORITY}

        for case in self.fetch_case_roads():
            names: Dict[RoadSlot, str] = {}
            for slot in RoadSlot:
                normalized = case.normalized[slot]
                original = case.original[slot]

                candidates = SlotCandidates(
                    manual=manual.get(case.case_id, {}).get(slot),
                    verified=original if original in known_good else None,
                    suggested=suggestions.get(normalized),
                )
                names[slot] = candidates.resolve()

                source = candidates.source()
                if source is None:
                    unresolved = UnresolvedRoad(
                        case_id=case.case_id,
                        slot=slot,
                        normalized_rd=normalized,
                        original_rd=original,
                        typo_source=self.typo_source,
                    )
                    result.unresolved.append(unresolved)
                    logger.warning(unresolved.message)
                else:
                    resolved_by[source] += 1

            result.corrections.append(CorrectionRecord(
                case_id=case.case_id,
                primary_rd=names[RoadSlot.PRIMARY],
                secondary_rd=names[RoadSlot.SECONDARY],
            ))

        result.resolved_by = resolved_by
        return result

    def write_corrections(self, corrections: List[CorrectionRecord]) -> Path:
        """Truncate and rewrite the correction file."""
        self.corrections_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.corrections_path, "w", encoding="utf-8", newline="") as f:
            f.write(CORRECTIONS_HEADER)
            for record in corrections:
                f.write(record.to_csv_line())
        return self.corrections_path

    def run(self) -> ReconciliationResult:
        """Resolve every case and write the correction file.

        Returns:
            ReconciliationResult
        """
        result = self.reconcile()
        self.write_corrections(result.corrections)

        logger.info(
            f"Wrote {result.total_cases} corrected roads to {self.corrections_path} "
            f"({len(result.unresolved)} unresolved road names)"
        )
        return result

"""
Pydantic models for road and collision records.
"""

from typing import Optional, Tuple, Any
from pydantic import BaseModel
from enum import Enum


class RoadSlot(str, Enum):
    """Road field on a collision case."""
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def column(self) -> str:
        """Column name holding this slot's road, e.g. ``primary_rd``."""
        return f"{self.value}_rd"


class NormalizedRoad(BaseModel):
    """A road name with address, block and direction split off."""

    road: str
    address: Optional[str] = None
    block: Optional[str] = None
    direction: Optional[str] = None

    class Config:
        """Pydantic config."""
        frozen = True


class NormalizedRoadRecord(BaseModel):
    """Parsed primary and secondary road for one collision case."""

    case_id: str
    primary: NormalizedRoad
    secondary: NormalizedRoad

    class Config:
        """Pydantic config."""
        frozen = True

    def to_db_params(self) -> Tuple[Optional[str], ...]:
        """Values in ``normalized_roads`` column order."""
        return (
            self.case_id,
            self.primary.road,
            self.primary.address,
            self.primary.block,
            self.primary.direction,
            self.secondary.road,
            self.secondary.address,
            self.secondary.block,
            self.secondary.direction,
        )

    @classmethod
    def from_db_row(cls, row: Any) -> "NormalizedRoadRecord":
        """Create NormalizedRoadRecord from database row.

        Args:
            row: sqlite3.Row object from the normalized_roads table

        Returns:
            NormalizedRoadRecord instance
        """
        return cls(
            case_id=str(row["case_id"]),
            primary=NormalizedRoad(
                road=row["primary_rd"] or "",
                address=row["primary_rd_address"],
                block=row["primary_rd_block"],
                direction=row["primary_rd_direction"],
            ),
            secondary=NormalizedRoad(
                road=row["secondary_rd"] or "",
                address=row["secondary_rd_address"],
                block=row["secondary_rd_block"],
                direction=row["secondary_rd_direction"],
            ),
        )


class CorrectionRecord(BaseModel):
    """Canonical road names resolved for one case."""

    case_id: str
    primary_rd: str = ""
    secondary_rd: str = ""

    def to_csv_line(self) -> str:
        """Render as a correction file row, road values always quoted."""
        return f"{self.case_id},{_quote(self.primary_rd)},{_quote(self.secondary_rd)}\n"


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


class Collision(BaseModel):
    """Read-back view of a collision case.

    Only the columns needed for inspecting road data are carried; the raw
    collisions table holds the full SWITRS record.
    """

    case_id: str
    collision_date: Optional[str] = None
    collision_time: Optional[str] = None
    primary_rd: Optional[str] = None
    secondary_rd: Optional[str] = None
    intersection: Optional[str] = None
    collision_severity: Optional[str] = None
    corrected_primary_rd: Optional[str] = None
    corrected_secondary_rd: Optional[str] = None

    @classmethod
    def from_db_row(cls, row: Any) -> "Collision":
        """Create Collision from database row.

        Args:
            row: sqlite3.Row object

        Returns:
            Collision instance
        """
        # sqlite3.Row lookups ignore case, SWITRS headers are uppercase
        keys = {key.lower() for key in row.keys()}

        def text(name: str) -> Optional[str]:
            if name not in keys or row[name] is None:
                return None
            return str(row[name])

        return cls(
            case_id=str(row["case_id"]),
            collision_date=text("collision_date"),
            collision_time=text("collision_time"),
            primary_rd=text("primary_rd"),
            secondary_rd=text("secondary_rd"),
            intersection=text("intersection"),
            collision_severity=text("collision_severity"),
            corrected_primary_rd=text("corrected_primary_rd"),
            corrected_secondary_rd=text("corrected_secondary_rd"),
        )

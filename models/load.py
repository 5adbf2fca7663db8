"""
Load schemas.

A load is a named shipment batch. Packages reference it by name through
their destination field.
"""

from pydantic import Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from models.base import BaseSchema


class LoadStatus(str, Enum):
    """Load lifecycle."""
    ACTIVE = "active"            # Being packed
    DISPATCHED = "dispatched"    # Shipped, moved to history


class LoadCreate(BaseSchema):
    """
    Create a new load.

    Required: name
    Optional: number (ordinal "Nra Carga" generated when omitted)
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Load name (e.g., Carga 001-2026)"
    )
    number: Optional[str] = Field(
        None,
        max_length=50,
        description="Internal load number"
    )


class Load(BaseSchema):
    """Load as stored in the cargas table."""

    id: int = Field(..., description="Storage id")
    name: str = Field(..., description="Load name")
    number: Optional[str] = Field(None, description="Internal load number")
    status: LoadStatus = LoadStatus.ACTIVE
    created_at: Optional[datetime] = None


class LoadIndex(BaseSchema):
    """Load names split by lifecycle, used to partition packages."""

    active_load_names: List[str] = Field(default_factory=list)
    history_load_names: List[str] = Field(default_factory=list)

    @classmethod
    def from_loads(cls, loads: List[Load]) -> "LoadIndex":
        return cls(
            active_load_names=[l.name for l in loads if l.status == LoadStatus.ACTIVE],
            history_load_names=[l.name for l in loads if l.status == LoadStatus.DISPATCHED],
        )

    def contains(self, name: str) -> bool:
        return name in self.active_load_names or name in self.history_load_names


class LoadListResponse(BaseSchema):
    """List of loads."""

    data: List[Load]
    total: int

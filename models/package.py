"""
Package schemas for validation and serialization.

A package is a bundle of 21x145 boards at one or more lengths. Board-feet
are never accepted from the client: every line derives them from its
length and piece count, and the package total derives from its lines.
"""

from pydantic import Field, computed_field
from typing import Optional, List
from datetime import date
from decimal import Decimal

from config.timber import STOCK_DESTINATION
from models.base import BaseSchema


# ===================
# CONTENT LINE
# ===================

class ContentLine(BaseSchema):
    """One length group within a package."""

    length: int = Field(
        ...,
        description="Board length in feet (product range 7-20)"
    )
    piece_count: int = Field(
        ...,
        ge=0,
        description="Number of boards at this length"
    )

    @computed_field
    @property
    def board_feet(self) -> Decimal:
        """Board-feet (PT) for this line, rounded to 3 decimals."""
        from services.calculations import calculate_board_feet
        return calculate_board_feet(self.length, self.piece_count)

    @property
    def is_valid(self) -> bool:
        """Lines with no length or no pieces are never persisted."""
        return self.length != 0 and self.piece_count != 0


# ===================
# PACKAGE SCHEMAS
# ===================

class Package(BaseSchema):
    """
    A lumber package.

    destination is either "Stock Libres" or the name of a load.
    """

    id: str = Field(..., description="Package code, format PT-<n>")
    destination: str = Field(
        default=STOCK_DESTINATION,
        description="Load name or Stock Libres"
    )
    species: str = Field(default="", description="Wood species (e.g., Pino)")
    finish: str = Field(default="", description="Surface finish (e.g., S4S)")
    certification: str = Field(default="", description="Certification (e.g., FSC)")
    content: List[ContentLine] = Field(default_factory=list)
    packed_date: Optional[date] = Field(None, description="Packing date")
    db_id: Optional[int] = Field(None, description="Storage row id")

    @computed_field
    @property
    def total_board_feet(self) -> Decimal:
        """Sum of content board-feet."""
        return sum((line.board_feet for line in self.content), Decimal("0"))

    @property
    def total_pieces(self) -> int:
        return sum(line.piece_count for line in self.content)

    @property
    def is_free_stock(self) -> bool:
        return self.destination == STOCK_DESTINATION


class PackageCreate(BaseSchema):
    """
    Create a new package.

    Required: content
    Optional: id (next sequential id is generated when omitted)
    """

    id: Optional[str] = Field(
        None,
        max_length=50,
        description="Package code (auto-generated if omitted)"
    )
    destination: str = Field(default=STOCK_DESTINATION, min_length=1)
    species: str = ""
    finish: str = ""
    certification: str = ""
    content: List[ContentLine] = Field(..., min_length=1)


class PackageUpdate(BaseSchema):
    """
    Replace a package.

    Full replace semantics: content is swapped as a whole, never patched
    line by line. The package id is immutable.
    """

    destination: str = Field(default=STOCK_DESTINATION, min_length=1)
    species: str = ""
    finish: str = ""
    certification: str = ""
    content: List[ContentLine] = Field(..., min_length=1)


class PackageBulkDelete(BaseSchema):
    """Delete several packages at once."""

    ids: List[str] = Field(..., min_length=1)


class PackageListResponse(BaseSchema):
    """List of packages."""

    data: List[Package]
    total: int
    total_board_feet: Decimal = Decimal("0")

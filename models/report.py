"""
Derived report schemas.

Everything here is computed on demand from a package snapshot by
services.calculations and never persisted.
"""

from pydantic import Field
from typing import Optional, List, Union
from datetime import date
from decimal import Decimal
from enum import Enum

from config.timber import SHORT_MAX_FT, MEDIUM_MAX_FT
from models.base import BaseSchema


class LengthCategory(str, Enum):
    """Length classification (Cortos / Medios / Largos)."""
    SHORT = "short"      # <= 9'
    MEDIUM = "medium"    # 10'-12'
    LONG = "long"        # >= 13'


class LoadStatusColor(str, Enum):
    """Traffic light for load fill."""
    OK = "ok"            # Ready to dispatch
    WARNING = "warning"  # In progress, below target
    INFO = "info"        # Just started


class GroupHealthStatus(str, Enum):
    """Traffic light for a production length group."""
    OK = "ok"
    ALERT = "alert"
    WARNING = "warning"
    INFO = "info"


# ===================
# BALANCE
# ===================

class LoadBalance(BaseSchema):
    """Board-feet split by length category."""

    total_board_feet: Decimal = Decimal("0")
    total_volume: Decimal = Field(Decimal("0"), description="m³ (board-feet / 424)")
    short_board_feet: Decimal = Decimal("0")
    medium_board_feet: Decimal = Decimal("0")
    long_board_feet: Decimal = Decimal("0")
    short_pct: Decimal = Decimal("0")
    medium_pct: Decimal = Decimal("0")
    long_pct: Decimal = Decimal("0")


# ===================
# LENGTH DISTRIBUTION
# ===================

class LengthSummaryRow(BaseSchema):
    """One row of the per-length table."""

    length: int
    piece_count: int = 0
    board_feet: Decimal = Decimal("0")
    pct: Decimal = Decimal("0")


class LengthSubtotal(BaseSchema):
    """Subtotal for one length category."""

    label: str
    category: LengthCategory
    piece_count: int = 0
    board_feet: Decimal = Decimal("0")
    pct: Decimal = Decimal("0")


class LengthDistribution(BaseSchema):
    """Per-length rows (7-20 ascending) plus category subtotals."""

    rows: List[LengthSummaryRow]
    subtotals: List[LengthSubtotal]

    def subtotal(self, category: LengthCategory) -> LengthSubtotal:
        return next(s for s in self.subtotals if s.category == category)

    def display_rows(self) -> List[Union[LengthSummaryRow, LengthSubtotal]]:
        """
        Rows in summary-table order.

        Short subtotal follows the last short length, medium subtotal
        follows the last medium length, long subtotal closes the table.
        """
        ordered: List[Union[LengthSummaryRow, LengthSubtotal]] = []
        for row in self.rows:
            ordered.append(row)
            if row.length == SHORT_MAX_FT:
                ordered.append(self.subtotal(LengthCategory.SHORT))
            elif row.length == MEDIUM_MAX_FT:
                ordered.append(self.subtotal(LengthCategory.MEDIUM))
        ordered.append(self.subtotal(LengthCategory.LONG))
        return ordered


# ===================
# REPORTS
# ===================

class ReportsData(BaseSchema):
    """Board-feet per destination group."""

    total_board_feet: Decimal = Decimal("0")
    active_board_feet: Decimal = Decimal("0")
    stock_board_feet: Decimal = Decimal("0")
    shipped_board_feet: Decimal = Decimal("0")


class GroupHealth(BaseSchema):
    """Health of a length group against its production target."""

    status: GroupHealthStatus
    target: Decimal
    target_label: str


class GroupBalance(BaseSchema):
    """Production volume for one length group."""

    group: str
    category: LengthCategory
    board_feet: Decimal
    pct: Decimal
    health: GroupHealth


class DailyProduction(BaseSchema):
    """Board-feet packed on one day."""

    packed_date: date
    board_feet: Decimal


class DashboardResponse(BaseSchema):
    """Reports dashboard payload."""

    reports: ReportsData
    package_count: int
    piece_count: int
    groups: List[GroupBalance]
    daily: List[DailyProduction]
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    load_names: List[str] = Field(default_factory=list)


# ===================
# LOAD DETAIL
# ===================

class LoadSummary(BaseSchema):
    """Everything the load detail view needs."""

    load_name: str
    is_history: bool
    package_count: int
    balance: LoadBalance
    progress: Decimal
    status_color: LoadStatusColor
    distribution: LengthDistribution


class EstimateRequest(BaseSchema):
    """Simulate adding identical packages to a load."""

    length: int = Field(..., ge=1, description="Board length in feet")
    piece_count: int = Field(..., ge=1, description="Pieces per package")
    package_count: int = Field(1, ge=1, le=500, description="Packages to add")


class LoadEstimate(BaseSchema):
    """Simulated balance after adding packages."""

    added_board_feet: Decimal
    balance: LoadBalance
    progress: Decimal
    status_color: LoadStatusColor
    exceeds_capacity: bool
    remaining_board_feet: Decimal

"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.package import (
    ContentLine,
    Package,
    PackageCreate,
    PackageUpdate,
    PackageBulkDelete,
    PackageListResponse,
)
from models.load import (
    LoadStatus,
    Load,
    LoadCreate,
    LoadIndex,
    LoadListResponse,
)
from models.report import (
    LengthCategory,
    LoadStatusColor,
    GroupHealthStatus,
    LoadBalance,
    LengthSummaryRow,
    LengthSubtotal,
    LengthDistribution,
    ReportsData,
    GroupHealth,
    GroupBalance,
    DailyProduction,
    DashboardResponse,
    LoadSummary,
    EstimateRequest,
    LoadEstimate,
)

__all__ = [
    # Base
    "BaseSchema",

    # Package
    "ContentLine",
    "Package",
    "PackageCreate",
    "PackageUpdate",
    "PackageBulkDelete",
    "PackageListResponse",

    # Load
    "LoadStatus",
    "Load",
    "LoadCreate",
    "LoadIndex",
    "LoadListResponse",

    # Reports
    "LengthCategory",
    "LoadStatusColor",
    "GroupHealthStatus",
    "LoadBalance",
    "LengthSummaryRow",
    "LengthSubtotal",
    "LengthDistribution",
    "ReportsData",
    "GroupHealth",
    "GroupBalance",
    "DailyProduction",
    "DashboardResponse",
    "LoadSummary",
    "EstimateRequest",
    "LoadEstimate",
]

"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.packages import router as packages_router
from routes.loads import router as loads_router
from routes.reports import router as reports_router

__all__ = [
    "packages_router",
    "loads_router",
    "reports_router",
]

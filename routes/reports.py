"""
Reports API routes.

Dashboard view over the whole package dataset.
"""

from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.report import DashboardResponse
from services.report_service import get_report_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    date_from: Optional[date] = Query(None, description="Packed on or after"),
    date_to: Optional[date] = Query(None, description="Packed on or before"),
    load: Optional[List[str]] = Query(None, description="Only these destinations"),
):
    """
    Production dashboard.

    Returns:
    - Board-feet in stock, active loads and dispatched loads
    - Cortos/Medios/Largos balance with target status
    - Board-feet packed per day
    """
    try:
        return get_report_service().get_dashboard(date_from, date_to, load)
    except Exception as e:
        return handle_error(e)

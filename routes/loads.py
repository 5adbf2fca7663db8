"""
Load API routes.

Load lifecycle (create, dispatch, reopen, delete) and per-load views:
summary, estimator and Excel report.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, StreamingResponse
import structlog

from models.load import Load, LoadCreate, LoadListResponse
from models.report import EstimateRequest, LoadEstimate, LoadSummary
from services.load_service import get_load_service
from services.report_service import get_report_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


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


# ===================
# LOAD ROUTES
# ===================

@router.get("", response_model=LoadListResponse)
def list_loads():
    """All loads, newest first."""
    try:
        loads = get_load_service().list_all()
        return LoadListResponse(data=loads, total=len(loads))
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=Load, status_code=status.HTTP_201_CREATED)
def create_load(data: LoadCreate):
    """Create an active load."""
    try:
        return get_load_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{load_name}")
def delete_load(load_name: str):
    """Delete a load; its packages go back to Stock Libres."""
    try:
        released = get_load_service().delete(load_name)
        return {"deleted": load_name, "packages_released": released}
    except Exception as e:
        return handle_error(e)


@router.post("/{load_name}/dispatch", response_model=Load)
def dispatch_load(load_name: str):
    """Mark a load as dispatched (moves it to history)."""
    try:
        return get_load_service().dispatch(load_name)
    except Exception as e:
        return handle_error(e)


@router.post("/{load_name}/reopen", response_model=Load)
def reopen_load(load_name: str):
    """Return a dispatched load to active."""
    try:
        return get_load_service().reopen(load_name)
    except Exception as e:
        return handle_error(e)


# ===================
# LOAD VIEWS
# ===================

@router.get("/{load_name}/summary", response_model=LoadSummary)
def get_load_summary(load_name: str):
    """
    Load detail figures.

    Returns total board-feet, Cortos/Medios/Largos split, fill progress
    against 10,600 PT, status light and the per-length table.
    """
    try:
        return get_report_service().get_load_summary(load_name)
    except Exception as e:
        return handle_error(e)


@router.post("/{load_name}/estimate", response_model=LoadEstimate)
def estimate_load(load_name: str, data: EstimateRequest):
    """Simulate adding packages of one length to the load."""
    try:
        return get_report_service().estimate(load_name, data)
    except Exception as e:
        return handle_error(e)


@router.get("/{load_name}/export")
def export_load(load_name: str):
    """Download the load report as .xlsx."""
    try:
        filename, content = get_report_service().export_load(load_name)
        return StreamingResponse(
            content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    except Exception as e:
        return handle_error(e)

"""
Package API routes.

CRUD for lumber packages plus next-id lookup.
"""

from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
import structlog

from models.package import (
    Package,
    PackageCreate,
    PackageUpdate,
    PackageBulkDelete,
    PackageListResponse,
)
from services.package_service import get_package_service
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


# ===================
# READ ROUTES
# ===================

@router.get("", response_model=PackageListResponse)
def list_packages(destination: Optional[str] = None):
    """
    List packages, optionally only those for one destination.

    destination may be a load name or "Stock Libres".
    """
    try:
        service = get_package_service()
        if destination:
            packages = service.list_by_destination(destination)
        else:
            packages = service.list_all()
        return PackageListResponse(
            data=packages,
            total=len(packages),
            total_board_feet=sum(p.total_board_feet for p in packages),
        )
    except Exception as e:
        return handle_error(e)


@router.get("/next-id")
def get_next_package_id():
    """Next sequential package id (PT-<n>)."""
    try:
        return {"id": get_package_service().next_id()}
    except Exception as e:
        return handle_error(e)


@router.get("/{package_id}", response_model=Package)
def get_package(package_id: str):
    """Get one package with its content lines."""
    try:
        return get_package_service().get_by_code(package_id)
    except Exception as e:
        return handle_error(e)


# ===================
# WRITE ROUTES
# ===================

@router.post("", response_model=Package, status_code=status.HTTP_201_CREATED)
def create_package(data: PackageCreate):
    """
    Create a package.

    Lines with zero length or zero pieces are dropped. A duplicate id is
    rejected with 409 and nothing is written.
    """
    try:
        return get_package_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.put("/{package_id}", response_model=Package)
def update_package(package_id: str, data: PackageUpdate):
    """Replace a package's destination, classification and content."""
    try:
        return get_package_service().update(package_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{package_id}")
def delete_package(package_id: str):
    """Delete a package."""
    try:
        get_package_service().delete(package_id)
        return {"deleted": 1}
    except Exception as e:
        return handle_error(e)


@router.post("/bulk-delete")
def delete_packages(data: PackageBulkDelete):
    """Delete several packages; all ids must exist."""
    try:
        return {"deleted": get_package_service().delete_many(data.ids)}
    except Exception as e:
        return handle_error(e)

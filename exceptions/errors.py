"""
Custom exception classes for the application.

Every error raised by the repository services carries a code, an HTTP
status and a details dict so routes can return a uniform envelope.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PACKAGE_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PACKAGE ERRORS
# ===================

class PackageNotFoundError(NotFoundError):
    """Package not found."""

    def __init__(self, package_id: str):
        super().__init__(
            resource="Package",
            identifier=package_id,
            code="PACKAGE_NOT_FOUND"
        )


class PackageIdExistsError(DuplicateError):
    """Package code already exists."""

    def __init__(self, package_id: str):
        super().__init__(
            resource="Package",
            field="id",
            value=package_id
        )


class EmptyPackageError(ValidationError):
    """Package has no valid content lines."""

    def __init__(self, package_id: str):
        super().__init__(
            code="PACKAGE_EMPTY",
            message="Package must contain at least one line with length and pieces",
            details={"id": package_id}
        )


# ===================
# LOAD ERRORS
# ===================

class LoadNotFoundError(NotFoundError):
    """Load not found."""

    def __init__(self, load_name: str):
        super().__init__(
            resource="Load",
            identifier=load_name,
            code="LOAD_NOT_FOUND"
        )


class LoadNameExistsError(DuplicateError):
    """Load name already exists."""

    def __init__(self, load_name: str):
        super().__init__(
            resource="Load",
            field="name",
            value=load_name
        )


class InvalidDestinationError(ValidationError):
    """Destination is neither free stock nor a known load."""

    def __init__(self, destination: str):
        super().__init__(
            code="INVALID_DESTINATION",
            message=f"Unknown destination: {destination}",
            details={"destination": destination}
        )

"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    DatabaseError,

    # Packages
    PackageNotFoundError,
    PackageIdExistsError,
    EmptyPackageError,

    # Loads
    LoadNotFoundError,
    LoadNameExistsError,
    InvalidDestinationError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "DatabaseError",

    # Packages
    "PackageNotFoundError",
    "PackageIdExistsError",
    "EmptyPackageError",

    # Loads
    "LoadNotFoundError",
    "LoadNameExistsError",
    "InvalidDestinationError",
]

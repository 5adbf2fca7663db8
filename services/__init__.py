"""
Business logic services.

Each service handles one domain area. services.calculations holds the
pure board-feet and balance functions the other services build on.
"""

from services.package_service import PackageService, get_package_service
from services.load_service import LoadService, get_load_service
from services.export_service import ExportService, get_export_service
from services.report_service import ReportService, get_report_service

__all__ = [
    "PackageService",
    "get_package_service",
    "LoadService",
    "get_load_service",
    "ExportService",
    "get_export_service",
    "ReportService",
    "get_report_service",
]

"""
Report service - Load detail, dashboard, estimator and export.

Fetches a fresh snapshot from the package and load services and runs it
through services.calculations. Nothing is cached between calls.
"""

from datetime import date
from io import BytesIO
from typing import Optional, List, Tuple
import structlog

from models.report import (
    DashboardResponse,
    EstimateRequest,
    LoadEstimate,
    LoadSummary,
)
from services.calculations import (
    calculate_load_balance,
    calculate_length_distribution,
    calculate_load_progress,
    get_load_status_color,
    calculate_reports,
    calculate_group_balance,
    calculate_daily_production,
    filter_packages,
    simulate_load_balance,
)
from services.package_service import get_package_service
from services.load_service import get_load_service
from services.export_service import get_export_service, load_report_filename
from models.load import LoadStatus

logger = structlog.get_logger(__name__)


class ReportService:
    """Derived views over the current package snapshot."""

    def __init__(self):
        self.package_service = get_package_service()
        self.load_service = get_load_service()

    def get_load_summary(self, load_name: str) -> LoadSummary:
        """
        Balance, fill progress and length distribution for one load.

        Raises:
            LoadNotFoundError: If load not found
        """
        load = self.load_service.get_by_name(load_name)
        packages = self.package_service.list_by_destination(load.name)

        balance = calculate_load_balance(packages)
        progress = calculate_load_progress(balance.total_board_feet)

        logger.info(
            "load_summary_calculated",
            load_name=load.name,
            packages=len(packages),
            board_feet=float(balance.total_board_feet),
            progress=float(progress),
        )

        return LoadSummary(
            load_name=load.name,
            is_history=load.status == LoadStatus.DISPATCHED,
            package_count=len(packages),
            balance=balance,
            progress=progress,
            status_color=get_load_status_color(progress),
            distribution=calculate_length_distribution(packages),
        )

    def get_dashboard(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        load_names: Optional[List[str]] = None,
    ) -> DashboardResponse:
        """
        Reports dashboard: destination totals, group balance, daily production.

        Filters apply to packing date (inclusive) and destination name.
        """
        packages = self.package_service.list_all()
        load_index = self.load_service.get_load_index()

        selected = filter_packages(packages, date_from, date_to, load_names)

        logger.info(
            "dashboard_calculated",
            total_packages=len(packages),
            selected_packages=len(selected),
        )

        return DashboardResponse(
            reports=calculate_reports(selected, load_index),
            package_count=len(selected),
            piece_count=sum(p.total_pieces for p in selected),
            groups=calculate_group_balance(selected),
            daily=calculate_daily_production(selected),
            date_from=date_from,
            date_to=date_to,
            load_names=load_names or [],
        )

    def estimate(self, load_name: str, request: EstimateRequest) -> LoadEstimate:
        """
        Simulate adding identical packages to a load.

        Raises:
            LoadNotFoundError: If load not found
        """
        load = self.load_service.get_by_name(load_name)
        packages = self.package_service.list_by_destination(load.name)

        estimate = simulate_load_balance(
            packages,
            length=request.length,
            piece_count=request.piece_count,
            package_count=request.package_count,
        )

        if estimate.exceeds_capacity:
            logger.warning(
                "estimate_exceeds_capacity",
                load_name=load.name,
                board_feet=float(estimate.balance.total_board_feet),
            )

        return estimate

    def export_load(self, load_name: str) -> Tuple[str, BytesIO]:
        """
        Excel report for a load.

        Returns:
            (filename, file contents)
        """
        load = self.load_service.get_by_name(load_name)
        packages = self.package_service.list_by_destination(load.name)

        content = get_export_service().generate_load_report_excel(
            load.name,
            packages,
            is_history=load.status == LoadStatus.DISPATCHED,
        )
        return load_report_filename(load.name), content


# Singleton instance
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get the singleton report service instance."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service

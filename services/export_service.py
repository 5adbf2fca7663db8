"""
Export service - Load report Excel files.

Builds the two-sheet load report (Resumen + Paquetes) shared with
customers and the yard office. All figures come from services.calculations
so the workbook matches what the load detail screen shows.
"""

import re
from decimal import Decimal
from io import BytesIO
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side
import structlog

from config.timber import (
    CROSS_SECTION_WIDTH_MM,
    CROSS_SECTION_HEIGHT_MM,
    PT_PER_M3,
)
from models.package import Package
from models.report import LengthSummaryRow
from services.calculations import (
    calculate_load_balance,
    calculate_length_distribution,
    round_decimal,
)

logger = structlog.get_logger(__name__)

STATUS_DISPATCHED = "Despachado"
STATUS_IN_PROGRESS = "En Proceso"

SUMMARY_SHEET = "Resumen"
PACKAGES_SHEET = "Paquetes"


def load_report_filename(load_name: str) -> str:
    """'Carga 001-2026' -> 'Carga_001-2026_Reporte.xlsx'"""
    stem = re.sub(r"\s+", "_", load_name.strip())
    return f"{stem}_Reporte.xlsx"


def board_label(length: int) -> str:
    """Product description for a length, e.g. 21x145x 12'"""
    return f"{int(CROSS_SECTION_WIDTH_MM)}x{int(CROSS_SECTION_HEIGHT_MM)}x {length}'"


def format_pct(value: Decimal) -> str:
    """45.678 -> '45.7%'"""
    return f"{round_decimal(value, 1)}%"


def _num(value: Decimal, places: int) -> float:
    return float(round_decimal(value, places))


class ExportService:
    """Service for generating load report files."""

    def generate_load_report_excel(
        self,
        load_name: str,
        packages: Sequence[Package],
        is_history: bool = False,
    ) -> BytesIO:
        """
        Generate the Excel report for one load.

        Args:
            load_name: Load name (e.g., "Carga 001-2026")
            packages: Packages assigned to the load
            is_history: Whether the load is already dispatched

        Returns:
            BytesIO containing the Excel file
        """
        logger.info(
            "generating_load_report",
            load_name=load_name,
            package_count=len(packages),
            is_history=is_history,
        )

        wb = Workbook()
        summary = wb.active
        summary.title = SUMMARY_SHEET
        self._build_summary_sheet(summary, load_name, packages, is_history)

        detail = wb.create_sheet(PACKAGES_SHEET)
        self._build_package_sheet(detail, packages)

        output = BytesIO()
        wb.save(output)
        output.seek(0)

        logger.info("load_report_generated", load_name=load_name)
        return output

    def _build_summary_sheet(self, ws, load_name: str, packages: Sequence[Package], is_history: bool) -> None:
        """Sheet 1: totals and distribution by length."""
        balance = calculate_load_balance(packages)
        distribution = calculate_length_distribution(packages)

        bold_font = Font(bold=True)
        header_font = Font(bold=True, size=14)
        thin_border = Border(bottom=Side(style="thin", color="000000"))

        ws.column_dimensions["A"].width = 20
        ws.column_dimensions["B"].width = 12
        ws.column_dimensions["C"].width = 14
        ws.column_dimensions["D"].width = 10

        ws.append(["REPORTE DE CARGA"])
        ws["A1"].font = header_font
        ws.append([])
        ws.append(["Carga:", load_name])
        ws.append(["Estado:", STATUS_DISPATCHED if is_history else STATUS_IN_PROGRESS])
        ws.append(["Total PT:", _num(balance.total_board_feet, 2)])
        ws.append(["Total M³:", _num(balance.total_volume, 3)])
        ws.append(["Paquetes:", len(packages)])
        ws.append([])
        ws.append(["DISTRIBUCIÓN POR LARGOS"])
        ws.cell(row=ws.max_row, column=1).font = bold_font
        ws.append(["Medida", "Piezas", "PT Neto", "%"])
        for cell in ws[ws.max_row]:
            cell.font = bold_font
            cell.border = thin_border

        for row in distribution.display_rows():
            if isinstance(row, LengthSummaryRow):
                if row.board_feet <= 0:
                    continue
                ws.append([board_label(row.length), row.piece_count, _num(row.board_feet, 2), format_pct(row.pct)])
            else:
                ws.append([row.label, row.piece_count, _num(row.board_feet, 2), format_pct(row.pct)])
                for cell in ws[ws.max_row]:
                    cell.font = bold_font

        total_pieces = sum(s.piece_count for s in distribution.subtotals)
        ws.append([])
        ws.append([
            "TOTAL",
            total_pieces,
            _num(balance.total_board_feet, 2),
            "100%" if balance.total_board_feet > 0 else "0%",
        ])
        for cell in ws[ws.max_row]:
            cell.font = bold_font

    def _build_package_sheet(self, ws, packages: Sequence[Package]) -> None:
        """Sheet 2: one row per content line, subtotal per package."""
        bold_font = Font(bold=True)
        header_font = Font(bold=True, size=14)

        for column, width in zip("ABCDEFGH", (18, 16, 14, 12, 12, 10, 14, 12)):
            ws.column_dimensions[column].width = width

        ws.append(["DETALLE DE PAQUETES"])
        ws["A1"].font = header_font
        ws.append([])
        ws.append(["Código", "Largo", "Especie", "Acabado", "Cert.", "Piezas", "PT", "M³"])
        for cell in ws[ws.max_row]:
            cell.font = bold_font
            cell.alignment = Alignment(horizontal="center")

        balance = calculate_load_balance(packages)
        total_pieces = 0

        for package in packages:
            total_pieces += package.total_pieces

            lines = sorted(package.content, key=lambda line: line.length)
            for idx, line in enumerate(lines):
                first = idx == 0
                ws.append([
                    package.id if first else "",
                    board_label(line.length),
                    package.species if first else "",
                    package.finish if first else "",
                    package.certification if first else "",
                    line.piece_count,
                    _num(line.board_feet, 2),
                    _num(line.board_feet / PT_PER_M3, 3),
                ])

            ws.append([
                f"  ▸ {package.id} Total",
                "", "", "", "",
                package.total_pieces,
                _num(package.total_board_feet, 2),
                _num(package.total_board_feet / PT_PER_M3, 3),
            ])
            ws.append([])

        ws.append([
            "TOTAL CARGA", "", "", "", "",
            total_pieces,
            _num(balance.total_board_feet, 2),
            _num(balance.total_volume, 3),
        ])
        for cell in ws[ws.max_row]:
            cell.font = bold_font


# Singleton instance
_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service

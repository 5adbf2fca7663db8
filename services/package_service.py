"""
Package Service - CRUD operations for lumber packages.

Packages live in `paquetes`, their content lines in `detalles_paquete`.
Destination is stored as `carga_id` (NULL = Stock Libres) and translated
back to the load name on read. Board-feet are never stored: they are
recomputed from length and piece count every time a package is loaded.
"""

import structlog
from typing import Optional, List, Dict
from datetime import date

from config import get_supabase_client, READ_PAGE_SIZE
from config.timber import (
    STOCK_DESTINATION,
    CROSS_SECTION_WIDTH_MM,
    CROSS_SECTION_HEIGHT_MM,
    DEFAULT_PRODUCT_TYPE,
    DEFAULT_QUALITY,
    DEFAULT_MOISTURE,
)
from models.package import (
    ContentLine,
    Package,
    PackageCreate,
    PackageUpdate,
)
from services.calculations import (
    build_package,
    generate_next_package_id,
    length_group_label,
)
from exceptions import (
    PackageNotFoundError,
    PackageIdExistsError,
    EmptyPackageError,
    InvalidDestinationError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)


class PackageService:
    """
    Package persistence.

    Enforces id uniqueness and all-or-nothing saves: when writing the
    content lines fails, the package row is rolled back to its prior
    state.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.package_table = "paquetes"
        self.line_table = "detalles_paquete"
        self.load_table = "cargas"

    # ===================
    # READ OPERATIONS
    # ===================

    def list_all(self) -> List[Package]:
        """
        Get every package with its content.

        Returns:
            List of Package
        """
        logger.info("listing_packages")

        try:
            rows = self._fetch_all(self.package_table)
            lines = self._fetch_all(self.line_table)
            loads = self._fetch_all(self.load_table, "id, nombre_carga")
        except Exception as e:
            logger.error("list_packages_failed", error=str(e))
            raise DatabaseError("select", str(e))

        load_names = {load["id"]: load["nombre_carga"] for load in loads}
        lines_by_package: Dict[int, List[dict]] = {}
        for line in lines:
            lines_by_package.setdefault(line["paquete_id"], []).append(line)

        packages = [
            self._row_to_package(row, lines_by_package.get(row["id"], []), load_names)
            for row in rows
        ]
        logger.info("packages_retrieved", count=len(packages))
        return packages

    def get_by_code(self, package_id: str) -> Package:
        """
        Get package by its PT code.

        Args:
            package_id: Package code (e.g., PT-1270)

        Returns:
            Package

        Raises:
            PackageNotFoundError: If package not found
        """
        logger.debug("getting_package", package_id=package_id)

        try:
            result = self.db.table(self.package_table).select("*").eq(
                "codigo_paquete", package_id
            ).execute()

            if not result.data:
                raise PackageNotFoundError(package_id)

            row = result.data[0]
            lines = self.db.table(self.line_table).select("*").eq(
                "paquete_id", row["id"]
            ).execute().data

            load_names = {}
            if row.get("carga_id") is not None:
                loads = self.db.table(self.load_table).select("id, nombre_carga").eq(
                    "id", row["carga_id"]
                ).execute().data
                load_names = {load["id"]: load["nombre_carga"] for load in loads}

            return self._row_to_package(row, lines, load_names)

        except PackageNotFoundError:
            raise
        except Exception as e:
            logger.error("get_package_failed", package_id=package_id, error=str(e))
            raise DatabaseError("select", str(e))

    def list_by_destination(self, destination: str) -> List[Package]:
        """All packages assigned to a load name (or Stock Libres)."""
        return [p for p in self.list_all() if p.destination == destination]

    def next_id(self) -> str:
        """Next sequential package id for the current dataset."""
        return generate_next_package_id(self.list_all())

    # ===================
    # CREATE/UPDATE/DELETE
    # ===================

    def create(self, data: PackageCreate) -> Package:
        """
        Create a package with its content lines.

        Args:
            data: PackageCreate schema

        Returns:
            The stored Package

        Raises:
            EmptyPackageError: If no line has both length and pieces
            PackageIdExistsError: If the code is already taken
            InvalidDestinationError: If destination is not stock or a load
            DatabaseError: If the insert fails
        """
        package_id = data.id or self.next_id()
        logger.info("creating_package", package_id=package_id, destination=data.destination)

        package = build_package(
            id=package_id,
            lines=data.content,
            destination=data.destination,
            species=data.species,
            finish=data.finish,
            certification=data.certification,
            packed_date=date.today(),
        )
        if not package.content:
            raise EmptyPackageError(package_id)

        if self._code_exists(package_id):
            logger.warning("duplicate_package_id", package_id=package_id)
            raise PackageIdExistsError(package_id)

        carga_id = self._resolve_load_id(package.destination)

        try:
            result = self.db.table(self.package_table).insert({
                "codigo_paquete": package.id,
                "carga_id": carga_id,
                "fecha_empaquetado": package.packed_date.isoformat(),
                "especie": package.species,
                "tipo_producto": DEFAULT_PRODUCT_TYPE,
                "certificacion": package.certification,
                "calidad": DEFAULT_QUALITY,
                "acabado": package.finish,
                "humedad": DEFAULT_MOISTURE,
                "espesor_mm": int(CROSS_SECTION_WIDTH_MM),
                "ancho_mm": int(CROSS_SECTION_HEIGHT_MM),
            }).execute()
            db_id = result.data[0]["id"]
        except Exception as e:
            logger.error("create_package_failed", package_id=package_id, error=str(e))
            raise DatabaseError("insert", str(e))

        try:
            self._insert_lines(db_id, package.content)
        except Exception as e:
            logger.error("create_package_lines_failed", package_id=package_id, error=str(e))
            details = {"package_id": package_id, "rolled_back": True}
            try:
                self.db.table(self.package_table).delete().eq("id", db_id).execute()
            except Exception as rollback_error:
                logger.error(
                    "package_rollback_failed",
                    package_id=package_id,
                    error=str(rollback_error)
                )
                details.update(rolled_back=False, rollback_error=str(rollback_error))
            raise DatabaseError("insert", str(e), details)

        logger.info(
            "package_created",
            package_id=package_id,
            lines=len(package.content),
            board_feet=float(package.total_board_feet)
        )
        return self.get_by_code(package_id)

    def update(self, package_id: str, data: PackageUpdate) -> Package:
        """
        Replace a package's fields and content.

        Args:
            package_id: Package code
            data: PackageUpdate schema

        Returns:
            Updated Package

        Raises:
            PackageNotFoundError: If package not found
            EmptyPackageError: If no line has both length and pieces
            InvalidDestinationError: If destination is not stock or a load
        """
        logger.info("updating_package", package_id=package_id)

        existing = self.get_by_code(package_id)

        package = build_package(
            id=package_id,
            lines=data.content,
            destination=data.destination,
            species=data.species,
            finish=data.finish,
            certification=data.certification,
        )
        if not package.content:
            raise EmptyPackageError(package_id)

        carga_id = self._resolve_load_id(package.destination)
        previous_carga_id = self._resolve_load_id(existing.destination, strict=False)

        try:
            self.db.table(self.package_table).update({
                "carga_id": carga_id,
                "especie": package.species,
                "certificacion": package.certification,
                "acabado": package.finish,
            }).eq("id", existing.db_id).execute()
        except Exception as e:
            logger.error("update_package_failed", package_id=package_id, error=str(e))
            raise DatabaseError("update", str(e))

        try:
            self.db.table(self.line_table).delete().eq("paquete_id", existing.db_id).execute()
            self._insert_lines(existing.db_id, package.content)
        except Exception as e:
            logger.error("update_package_lines_failed", package_id=package_id, error=str(e))
            details = {"package_id": package_id, "restored": True}
            try:
                self._restore(existing, previous_carga_id)
            except Exception as restore_error:
                logger.error(
                    "package_restore_failed",
                    package_id=package_id,
                    error=str(restore_error)
                )
                details.update(restored=False, restore_error=str(restore_error))
            raise DatabaseError("update", str(e), details)

        logger.info("package_updated", package_id=package_id)
        return self.get_by_code(package_id)

    def delete(self, package_id: str) -> bool:
        """
        Delete a package and its lines.

        Raises:
            PackageNotFoundError: If package not found
        """
        logger.info("deleting_package", package_id=package_id)

        existing = self.get_by_code(package_id)

        try:
            # Lines first (FK constraint)
            self.db.table(self.line_table).delete().eq("paquete_id", existing.db_id).execute()
            self.db.table(self.package_table).delete().eq("id", existing.db_id).execute()
        except Exception as e:
            logger.error("delete_package_failed", package_id=package_id, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("package_deleted", package_id=package_id)
        return True

    def delete_many(self, package_ids: List[str]) -> int:
        """
        Delete several packages.

        Every id must exist; nothing is deleted otherwise.

        Returns:
            Number of packages deleted
        """
        logger.info("deleting_packages", count=len(package_ids))

        by_code = {p.id: p for p in self.list_all()}
        missing = [pid for pid in package_ids if pid not in by_code]
        if missing:
            raise PackageNotFoundError(missing[0])

        db_ids = list({by_code[pid].db_id for pid in package_ids})

        try:
            self.db.table(self.line_table).delete().in_("paquete_id", db_ids).execute()
            self.db.table(self.package_table).delete().in_("id", db_ids).execute()
        except Exception as e:
            logger.error("bulk_delete_failed", error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("packages_deleted", count=len(db_ids))
        return len(db_ids)

    # ===================
    # HELPERS
    # ===================

    def _fetch_all(self, table: str, columns: str = "*") -> List[dict]:
        """Read a whole table page by page; the server caps each response."""
        rows: List[dict] = []
        offset = 0
        while True:
            page = self.db.table(table).select(columns).order("id").range(
                offset, offset + READ_PAGE_SIZE - 1
            ).execute().data
            rows.extend(page)
            if len(page) < READ_PAGE_SIZE:
                return rows
            offset += READ_PAGE_SIZE

    def _row_to_package(
        self,
        row: dict,
        lines: List[dict],
        load_names: Dict[int, str]
    ) -> Package:
        """Map paquetes + detalles_paquete rows to a Package."""
        carga_id = row.get("carga_id")
        destination = load_names.get(carga_id, STOCK_DESTINATION) if carga_id is not None else STOCK_DESTINATION
        packed = row.get("fecha_empaquetado")

        return Package(
            db_id=row["id"],
            id=row["codigo_paquete"],
            destination=destination,
            species=row.get("especie") or "",
            finish=row.get("acabado") or "",
            certification=row.get("certificacion") or "",
            packed_date=date.fromisoformat(packed[:10]) if packed else None,
            content=[
                ContentLine(length=line["largo_pies"], piece_count=line["cantidad_piezas"])
                for line in lines
            ],
        )

    def _insert_lines(self, db_id: int, content: List[ContentLine]) -> None:
        self.db.table(self.line_table).insert([
            {
                "paquete_id": db_id,
                "largo_pies": line.length,
                "cantidad_piezas": line.piece_count,
                "grupo_largos": length_group_label(line.length),
            }
            for line in content
        ]).execute()

    def _restore(self, previous: Package, carga_id: Optional[int]) -> None:
        """Put a package back the way it was before a failed update."""
        self.db.table(self.package_table).update({
            "carga_id": carga_id,
            "especie": previous.species,
            "certificacion": previous.certification,
            "acabado": previous.finish,
        }).eq("id", previous.db_id).execute()
        self.db.table(self.line_table).delete().eq("paquete_id", previous.db_id).execute()
        self._insert_lines(previous.db_id, previous.content)
        logger.info("package_restored", package_id=previous.id)

    def _resolve_load_id(self, destination: str, strict: bool = True) -> Optional[int]:
        """carga_id for a destination; None for free stock."""
        if destination == STOCK_DESTINATION:
            return None

        try:
            result = self.db.table(self.load_table).select("id").eq(
                "nombre_carga", destination
            ).execute()
        except Exception as e:
            logger.error("resolve_load_failed", destination=destination, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            if strict:
                raise InvalidDestinationError(destination)
            return None
        return result.data[0]["id"]

    def _code_exists(self, package_id: str) -> bool:
        """Check if a package code is taken."""
        try:
            result = self.db.table(self.package_table).select("id").eq(
                "codigo_paquete", package_id
            ).execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error("package_exists_check_failed", package_id=package_id, error=str(e))
            raise DatabaseError("select", str(e))


# Singleton instance
_package_service: Optional[PackageService] = None


def get_package_service() -> PackageService:
    """Get the singleton package service instance."""
    global _package_service
    if _package_service is None:
        _package_service = PackageService()
    return _package_service

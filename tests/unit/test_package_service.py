"""
Unit tests for PackageService.

Run: pytest tests/unit/test_package_service.py -v
"""

from datetime import date
from decimal import Decimal

import pytest

from services.package_service import PackageService, get_package_service
from models.package import ContentLine, PackageCreate, PackageUpdate
from services.calculations import calculate_board_feet
from exceptions import (
    PackageNotFoundError,
    PackageIdExistsError,
    EmptyPackageError,
    InvalidDestinationError,
    DatabaseError,
)
from tests.factories import LoadFactory, PackageFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def seeded_db(mock_db):
    """One active load, one package on it and one in stock."""
    mock_db.set_table_data("cargas", [LoadFactory.create(id=1, name="Carga A")])
    mock_db.set_table_data("paquetes", [
        PackageFactory.create_row(id=10, code="PT-1270", carga_id=1, packed="2026-01-05"),
        PackageFactory.create_row(id=11, code="PT-1271", carga_id=None, packed="2026-01-06T08:30:00"),
    ])
    mock_db.set_table_data(
        "detalles_paquete",
        PackageFactory.create_lines(10, [(8, 100), (14, 20)]) + PackageFactory.create_lines(11, [(10, 50)]),
    )
    return mock_db


def _create(**overrides) -> PackageCreate:
    data = {
        "content": [ContentLine(length=8, piece_count=100)],
    }
    data.update(overrides)
    return PackageCreate(**data)


# ===================
# READ TESTS
# ===================

class TestReadPackages:
    """Tests for list_all / get_by_code / list_by_destination."""

    def test_list_all_joins_lines_and_load_names(self, seeded_db):
        packages = {p.id: p for p in PackageService().list_all()}

        assert set(packages) == {"PT-1270", "PT-1271"}
        assert packages["PT-1270"].destination == "Carga A"
        assert packages["PT-1270"].total_pieces == 120
        assert packages["PT-1271"].destination == "Stock Libres"
        assert packages["PT-1271"].packed_date == date(2026, 1, 6)

    def test_board_feet_recomputed_from_lines(self, seeded_db):
        package = PackageService().get_by_code("PT-1271")
        assert package.total_board_feet == Decimal("196.761")

    def test_get_by_code_not_found(self, seeded_db):
        with pytest.raises(PackageNotFoundError):
            PackageService().get_by_code("PT-9999")

    def test_unknown_load_reads_as_stock(self, mock_db):
        mock_db.set_table_data("paquetes", [PackageFactory.create_row(id=1, code="PT-1270", carga_id=99)])
        mock_db.set_table_data("detalles_paquete", PackageFactory.create_lines(1, [(8, 10)]))

        assert PackageService().get_by_code("PT-1270").destination == "Stock Libres"

    def test_list_by_destination(self, seeded_db):
        packages = PackageService().list_by_destination("Carga A")
        assert [p.id for p in packages] == ["PT-1270"]

    def test_next_id(self, seeded_db):
        assert PackageService().next_id() == "PT-1272"

    def test_next_id_empty(self, mock_db):
        assert PackageService().next_id() == "PT-1270"

    def test_database_failure(self, seeded_db):
        seeded_db.fail_on("paquetes", "select")
        with pytest.raises(DatabaseError):
            PackageService().list_all()

    def test_singleton(self, mock_db):
        assert get_package_service() is get_package_service()


class TestPagedReads:
    """list_all reads past the server's per-request row cap."""

    def test_lines_beyond_first_page(self, mock_db):
        mock_db.max_rows = 1000
        mock_db.set_table_data("paquetes", [PackageFactory.create_row(id=1, code="PT-1270")])
        mock_db.set_table_data("detalles_paquete", PackageFactory.create_lines(1, [(8, 1)] * 1001))

        package = PackageService().list_all()[0]

        assert package.total_pieces == 1001
        assert package.total_board_feet == calculate_board_feet(8, 1) * 1001

    def test_next_id_sees_every_package(self, mock_db):
        mock_db.max_rows = 1000
        mock_db.set_table_data("paquetes", [
            PackageFactory.create_row(id=n, code=f"PT-{1269 + n}") for n in range(1, 1002)
        ])

        assert len(PackageService().list_all()) == 1001
        assert PackageService().next_id() == "PT-2271"


# ===================
# CREATE TESTS
# ===================

class TestCreatePackage:
    """Tests for create."""

    def test_create_on_load(self, seeded_db):
        package = PackageService().create(_create(
            id="PT-1300",
            destination="Carga A",
            species="Pino",
            content=[ContentLine(length=8, piece_count=100), ContentLine(length=0, piece_count=5)],
        ))

        assert package.id == "PT-1300"
        assert package.destination == "Carga A"
        assert package.species == "Pino"
        assert package.packed_date == date.today()
        assert package.total_board_feet == Decimal("314.817")

        row = next(r for r in seeded_db.rows("paquetes") if r["codigo_paquete"] == "PT-1300")
        assert row["carga_id"] == 1
        lines = [l for l in seeded_db.rows("detalles_paquete") if l["paquete_id"] == row["id"]]
        assert len(lines) == 1
        assert lines[0]["grupo_largos"] == "Cortos (≤9')"

    def test_create_generates_id(self, seeded_db):
        package = PackageService().create(_create())
        assert package.id == "PT-1272"
        assert package.destination == "Stock Libres"

    def test_duplicate_id_rejected_without_writes(self, seeded_db):
        before_rows = len(seeded_db.rows("paquetes"))
        before_lines = len(seeded_db.rows("detalles_paquete"))

        with pytest.raises(PackageIdExistsError) as exc_info:
            PackageService().create(_create(id="PT-1270"))

        assert exc_info.value.status_code == 409
        assert len(seeded_db.rows("paquetes")) == before_rows
        assert len(seeded_db.rows("detalles_paquete")) == before_lines

    def test_empty_content_rejected(self, seeded_db):
        with pytest.raises(EmptyPackageError):
            PackageService().create(_create(content=[ContentLine(length=8, piece_count=0)]))

    def test_unknown_destination_rejected(self, seeded_db):
        with pytest.raises(InvalidDestinationError):
            PackageService().create(_create(destination="Carga Z"))
        assert len(seeded_db.rows("paquetes")) == 2

    def test_line_failure_rolls_back_package(self, seeded_db):
        seeded_db.fail_on("detalles_paquete", "insert")

        with pytest.raises(DatabaseError):
            PackageService().create(_create(id="PT-1300"))

        codes = [r["codigo_paquete"] for r in seeded_db.rows("paquetes")]
        assert "PT-1300" not in codes

    def test_failed_rollback_still_reports_line_failure(self, seeded_db):
        seeded_db.fail_on("detalles_paquete", "insert")
        seeded_db.fail_on("paquetes", "delete")

        with pytest.raises(DatabaseError) as exc_info:
            PackageService().create(_create(id="PT-1300"))

        assert "detalles_paquete" in exc_info.value.message
        assert exc_info.value.details["rolled_back"] is False


# ===================
# UPDATE/DELETE TESTS
# ===================

class TestUpdatePackage:
    """Tests for update."""

    def test_replaces_content_and_destination(self, seeded_db):
        package = PackageService().update("PT-1270", PackageUpdate(
            destination="Stock Libres",
            finish="S2S",
            content=[ContentLine(length=12, piece_count=30)],
        ))

        assert package.destination == "Stock Libres"
        assert package.finish == "S2S"
        assert [(l.length, l.piece_count) for l in package.content] == [(12, 30)]

        row = next(r for r in seeded_db.rows("paquetes") if r["id"] == 10)
        assert row["carga_id"] is None

    def test_not_found(self, seeded_db):
        with pytest.raises(PackageNotFoundError):
            PackageService().update("PT-9999", PackageUpdate(content=[ContentLine(length=8, piece_count=1)]))

    def test_line_failure_restores_previous_state(self, seeded_db):
        seeded_db.fail_on("detalles_paquete", "insert")

        with pytest.raises(DatabaseError):
            PackageService().update("PT-1270", PackageUpdate(
                destination="Stock Libres",
                content=[ContentLine(length=12, piece_count=30)],
            ))

        package = PackageService().get_by_code("PT-1270")
        assert package.destination == "Carga A"
        assert sorted((l.length, l.piece_count) for l in package.content) == [(8, 100), (14, 20)]

    def test_failed_restore_still_reports_line_failure(self, seeded_db):
        seeded_db.fail_on("detalles_paquete", "insert", times=2)

        with pytest.raises(DatabaseError) as exc_info:
            PackageService().update("PT-1270", PackageUpdate(
                content=[ContentLine(length=12, piece_count=30)],
            ))

        assert exc_info.value.details["package_id"] == "PT-1270"
        assert exc_info.value.details["restored"] is False


class TestDeletePackage:
    """Tests for delete / delete_many."""

    def test_delete_removes_lines(self, seeded_db):
        assert PackageService().delete("PT-1270") is True

        assert [r["codigo_paquete"] for r in seeded_db.rows("paquetes")] == ["PT-1271"]
        assert all(l["paquete_id"] != 10 for l in seeded_db.rows("detalles_paquete"))

    def test_delete_not_found(self, seeded_db):
        with pytest.raises(PackageNotFoundError):
            PackageService().delete("PT-9999")

    def test_delete_many(self, seeded_db):
        assert PackageService().delete_many(["PT-1270", "PT-1271"]) == 2
        assert seeded_db.rows("paquetes") == []
        assert seeded_db.rows("detalles_paquete") == []

    def test_delete_many_missing_id_deletes_nothing(self, seeded_db):
        with pytest.raises(PackageNotFoundError):
            PackageService().delete_many(["PT-1270", "PT-9999"])
        assert len(seeded_db.rows("paquetes")) == 2

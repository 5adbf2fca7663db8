"""
Load Service - lifecycle of shipment loads.

Loads live in `cargas`. A load is active while being packed and moves to
history (estado = Despachado) when dispatched. Deleting a load sends its
packages back to free stock.
"""

import structlog
from typing import Optional, List
from datetime import datetime

from config import get_supabase_client, READ_PAGE_SIZE
from config.timber import LOAD_STATE_ACTIVE, LOAD_STATE_DISPATCHED
from models.load import Load, LoadCreate, LoadIndex, LoadStatus
from services.calculations import next_load_number
from exceptions import (
    LoadNotFoundError,
    LoadNameExistsError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)


class LoadService:
    """Load business logic."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "cargas"
        self.package_table = "paquetes"

    # ===================
    # READ OPERATIONS
    # ===================

    def list_all(self) -> List[Load]:
        """
        Get all loads, newest first.

        Returns:
            List of Load
        """
        logger.info("listing_loads")

        rows: List[dict] = []
        offset = 0
        try:
            while True:
                page = self.db.table(self.table).select("*").order(
                    "created_at", desc=True
                ).range(offset, offset + READ_PAGE_SIZE - 1).execute().data
                rows.extend(page)
                if len(page) < READ_PAGE_SIZE:
                    break
                offset += READ_PAGE_SIZE
        except Exception as e:
            logger.error("list_loads_failed", error=str(e))
            raise DatabaseError("select", str(e))

        loads = [self._row_to_load(row) for row in rows]
        logger.info("loads_retrieved", count=len(loads))
        return loads

    def get_by_name(self, name: str) -> Load:
        """
        Get load by name.

        Raises:
            LoadNotFoundError: If load not found
        """
        logger.debug("getting_load", name=name)

        try:
            result = self.db.table(self.table).select("*").eq(
                "nombre_carga", name
            ).execute()

            if not result.data:
                raise LoadNotFoundError(name)

            return self._row_to_load(result.data[0])

        except LoadNotFoundError:
            raise
        except Exception as e:
            logger.error("get_load_failed", name=name, error=str(e))
            raise DatabaseError("select", str(e))

    def get_load_index(self) -> LoadIndex:
        """Active and dispatched load names."""
        return LoadIndex.from_loads(self.list_all())

    # ===================
    # CREATE/DELETE
    # ===================

    def create(self, data: LoadCreate) -> Load:
        """
        Create a new active load.

        The internal number defaults to the next ordinal ("3ra Carga").

        Raises:
            LoadNameExistsError: If the name is already used
        """
        logger.info("creating_load", name=data.name)

        existing = self.list_all()
        if any(load.name == data.name for load in existing):
            raise LoadNameExistsError(data.name)

        number = data.number or next_load_number(len(existing))

        try:
            result = self.db.table(self.table).insert({
                "nombre_carga": data.name,
                "nro_interno": number,
                "estado": LOAD_STATE_ACTIVE,
            }).execute()
        except Exception as e:
            logger.error("create_load_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

        load = self._row_to_load(result.data[0])
        logger.info("load_created", name=load.name, number=load.number)
        return load

    def delete(self, name: str) -> int:
        """
        Delete a load, moving its packages to free stock first.

        Returns:
            Number of packages released to stock

        Raises:
            LoadNotFoundError: If load not found
        """
        logger.info("deleting_load", name=name)

        load = self.get_by_name(name)

        try:
            released = self.db.table(self.package_table).update(
                {"carga_id": None}
            ).eq("carga_id", load.id).execute().data or []
        except Exception as e:
            logger.error("release_load_packages_failed", name=name, error=str(e))
            raise DatabaseError("update", str(e))

        try:
            self.db.table(self.table).delete().eq("id", load.id).execute()
        except Exception as e:
            logger.error("delete_load_failed", name=name, error=str(e))
            reassigned = self._reassign(load, released)
            raise DatabaseError("delete", str(e), {"name": name, "packages_reassigned": reassigned})

        count = len(released)
        logger.info("load_deleted", name=name, packages_released=count)
        return count

    # ===================
    # LIFECYCLE
    # ===================

    def dispatch(self, name: str) -> Load:
        """Move a load to history."""
        return self._set_state(name, LOAD_STATE_DISPATCHED)

    def reopen(self, name: str) -> Load:
        """Bring a dispatched load back to active."""
        return self._set_state(name, LOAD_STATE_ACTIVE)

    def _set_state(self, name: str, state: str) -> Load:
        load = self.get_by_name(name)
        logger.info("changing_load_state", name=name, state=state)

        try:
            self.db.table(self.table).update({"estado": state}).eq(
                "id", load.id
            ).execute()
        except Exception as e:
            logger.error("load_state_change_failed", name=name, error=str(e))
            raise DatabaseError("update", str(e))

        return self.get_by_name(name)

    def _reassign(self, load: Load, released: List[dict]) -> bool:
        """Put released packages back on a load whose delete failed."""
        if not released:
            return True
        try:
            self.db.table(self.package_table).update({"carga_id": load.id}).in_(
                "id", [row["id"] for row in released]
            ).execute()
        except Exception as e:
            logger.error("load_packages_reassign_failed", name=load.name, error=str(e))
            return False
        logger.info("load_packages_reassigned", name=load.name, count=len(released))
        return True

    def _row_to_load(self, row: dict) -> Load:
        created = row.get("created_at")
        return Load(
            id=row["id"],
            name=row["nombre_carga"],
            number=row.get("nro_interno"),
            status=LoadStatus.DISPATCHED if row.get("estado") == LOAD_STATE_DISPATCHED else LoadStatus.ACTIVE,
            created_at=datetime.fromisoformat(created.replace("Z", "+00:00")) if created else None,
        )


# Singleton instance
_load_service: Optional[LoadService] = None


def get_load_service() -> LoadService:
    """Get the singleton load service instance."""
    global _load_service
    if _load_service is None:
        _load_service = LoadService()
    return _load_service

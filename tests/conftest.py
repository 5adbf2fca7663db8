"""
Shared test fixtures.

The mock Supabase client keeps table rows in memory and applies
eq / neq / in_ filters plus order / range paging, so service tests
can assert on what was actually written.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator

import services.package_service as package_service_module
import services.load_service as load_service_module
import services.report_service as report_service_module
import services.export_service as export_service_module


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        if count is not None:
            self.count = count
        elif isinstance(self.data, list):
            self.count = len(self.data)
        else:
            self.count = 1


class MockSupabaseQuery:
    """Chainable query builder that runs against the client's tables."""

    def __init__(self, client: "MockSupabaseClient", table: str, action: str, payload=None):
        self._client = client
        self._table = table
        self._action = action
        self._payload = payload
        self._filters = []
        self._order = None
        self._limit = None
        self._range = None
        self._is_single = False

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def single(self):
        self._is_single = True
        return self

    def _matches(self, row: dict) -> bool:
        return all(check(row) for check in self._filters)

    def execute(self) -> MockSupabaseResponse:
        self._client._maybe_fail(self._table, self._action)
        rows = self._client._tables.setdefault(self._table, [])

        if self._action == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in items:
                row = dict(item)
                row.setdefault("id", self._client._next_id(self._table))
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                inserted.append(dict(row))
            return MockSupabaseResponse(inserted)

        if self._action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return MockSupabaseResponse(updated)

        if self._action == "delete":
            removed = [dict(row) for row in rows if self._matches(row)]
            rows[:] = [row for row in rows if not self._matches(row)]
            return MockSupabaseResponse(removed)

        selected = [dict(row) for row in rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            selected.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self._range is not None:
            start, end = self._range
            selected = selected[start:end + 1]
        if self._limit is not None:
            selected = selected[:self._limit]
        if self._client.max_rows is not None:
            selected = selected[:self._client.max_rows]
        if self._is_single:
            return MockSupabaseResponse(selected[0] if selected else None)
        return MockSupabaseResponse(selected)


class MockSupabaseTable:
    """Entry point for queries on one table."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """
    In-memory Supabase client.

    max_rows caps every select the way PostgREST's max-rows setting does.
    """

    def __init__(self, max_rows: int = None):
        self.max_rows = max_rows
        self._tables = {}
        self._ids = {}
        self._failures = {}

    def set_table_data(self, table_name: str, data: list):
        """Replace a table's rows; rows without an id get the next serial one."""
        rows = [dict(row) for row in data]
        last_id = max((row["id"] for row in rows if isinstance(row.get("id"), int)), default=0)
        for row in rows:
            if row.get("id") is None:
                last_id += 1
                row["id"] = last_id
        self._tables[table_name] = rows
        self._ids[table_name] = last_id

    def rows(self, table_name: str) -> list:
        """Current rows of a table."""
        return [dict(row) for row in self._tables.get(table_name, [])]

    def fail_on(self, table_name: str, action: str, times: int = 1):
        """Make the next `times` executions of action on table raise."""
        self._failures[(table_name, action)] = times

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)

    def _next_id(self, table_name: str) -> int:
        self._ids[table_name] = self._ids.get(table_name, 0) + 1
        return self._ids[table_name]

    def _maybe_fail(self, table_name: str, action: str):
        remaining = self._failures.get((table_name, action), 0)
        if remaining > 0:
            self._failures[(table_name, action)] = remaining - 1
            raise Exception(f"simulated {action} failure on {table_name}")


# ===================
# FIXTURES
# ===================

@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the singleton services between tests."""
    package_service_module._package_service = None
    load_service_module._load_service = None
    report_service_module._report_service = None
    export_service_module._export_service = None
    yield
    package_service_module._package_service = None
    load_service_module._load_service = None
    report_service_module._report_service = None
    export_service_module._export_service = None


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create an empty mock Supabase client.

    Usage:
        def test_something(mock_db):
            mock_db.set_table_data("cargas", [LoadFactory.create(name="Carga A")])
    """
    client = MockSupabaseClient()
    client.set_table_data("cargas", [])
    client.set_table_data("paquetes", [])
    client.set_table_data("detalles_paquete", [])
    return client


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any service built while the fixture is active talks to mock_supabase.
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.package_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.load_service.get_supabase_client", return_value=mock_supabase):
                yield mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_db):
            mock_db.set_table_data("cargas", [...])
            response = test_client_with_mock_db.get("/api/loads")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)

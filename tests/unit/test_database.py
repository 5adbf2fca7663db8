"""
Unit tests for config.database.

Run: pytest tests/unit/test_database.py -v
"""

from unittest.mock import MagicMock, patch

import pytest

import config
from config.database import get_supabase_client, check_connection
from exceptions import DatabaseError
from tests.conftest import MockSupabaseClient
from tests.factories import LoadFactory


@pytest.fixture(autouse=True)
def fresh_client_cache():
    get_supabase_client.cache_clear()
    yield
    get_supabase_client.cache_clear()


class TestGetSupabaseClient:
    """Tests for get_supabase_client."""

    def test_missing_credentials(self):
        with patch("config.database.settings", MagicMock(supabase_configured=False)):
            with pytest.raises(DatabaseError) as exc_info:
                get_supabase_client()

        assert exc_info.value.code == "DATABASE_ERROR"
        assert exc_info.value.details["operation"] == "connect"

    def test_connection_failure_wrapped(self):
        settings = MagicMock(supabase_configured=True, supabase_url="https://example.supabase.co", supabase_key="key")
        with patch("config.database.settings", settings):
            with patch("config.database.create_client", side_effect=RuntimeError("refused")):
                with pytest.raises(DatabaseError) as exc_info:
                    get_supabase_client()

        assert "refused" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_client_cached(self):
        mock_client = MockSupabaseClient()
        settings = MagicMock(supabase_configured=True, supabase_url="https://example.supabase.co", supabase_key="key")
        with patch("config.database.settings", settings):
            with patch("config.database.create_client", return_value=mock_client) as create:
                assert get_supabase_client() is mock_client
                assert get_supabase_client() is mock_client

        assert create.call_count == 1


class TestCheckConnection:
    """Tests for check_connection."""

    def test_healthy_counts(self, mock_db):
        mock_db.set_table_data("cargas", [LoadFactory.create(id=1, name="Carga A")])

        status = check_connection()

        assert status["status"] == "healthy"
        assert status["loads_count"] == 1
        assert status["packages_count"] == 0

    def test_unhealthy_without_credentials(self):
        with patch("config.database.settings", MagicMock(supabase_configured=False)):
            status = check_connection()

        assert status["status"] == "unhealthy"
        assert "SUPABASE_URL" in status["error"]


class TestConfigExports:
    """config exposes settings and the client, not error types."""

    def test_database_error_comes_from_exceptions(self):
        assert not hasattr(config, "DatabaseError")
        assert "DatabaseError" not in config.__all__

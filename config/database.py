"""
Database connection management.

Provides the Supabase client singleton used by the repository services.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

# PostgREST default max-rows; full-table reads page at this size
READ_PAGE_SIZE = 1000


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        DatabaseError: If credentials are missing or connection fails
    """
    if not settings.supabase_configured:
        logger.error("supabase_not_configured")
        raise DatabaseError("connect", "SUPABASE_URL and SUPABASE_KEY must be set")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        # Test connection with simple query
        client.table("cargas").select("id").limit(1).execute()

        logger.info("supabase_connected")
        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseError("connect", str(e)) from e


def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with load and package counts
    """
    try:
        client = get_supabase_client()

        loads = client.table("cargas").select("id", count="exact").execute()
        packages = client.table("paquetes").select("id", count="exact").execute()

        return {
            "status": "healthy",
            "loads_count": loads.count,
            "packages_count": packages.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }

"""
Supabase connection.

The engine reads the local products table and owns the mappings table;
both live in the same Supabase project.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class SupabaseConnectionError(Exception):
    """Could not create or reach the Supabase client."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client. get_supabase_client.cache_clear() reconnects.

    Raises:
        SupabaseConnectionError: If the client cannot reach the mappings table
    """
    try:
        logger.info("connecting_to_supabase", url=settings.supabase_url[:30] + "...")
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table(settings.mappings_table).select("sku").limit(1).execute()
    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise SupabaseConnectionError(f"Failed to connect to Supabase: {e}") from e

    logger.info("supabase_connected")
    return client


def check_connection() -> dict:
    """
    Health probe: row counts of the products and mappings tables.

    Never raises; failures come back as status "unhealthy".
    """
    try:
        client = get_supabase_client()
        products = client.table(settings.products_table).select("sku", count="exact").execute()
        mappings = client.table(settings.mappings_table).select("sku", count="exact").execute()
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "products_count": products.count,
        "mappings_count": mappings.count
    }

"""
Local catalog reader.

The store's products table is owned elsewhere; this service only reads
sku/titulo from it.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.catalog import LocalProduct
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class LocalCatalogService:
    """
    Read access to the local product catalog.
    """

    def __init__(self, page_size: Optional[int] = None):
        self.db = get_supabase_client()
        self.table = settings.products_table
        self.page_size = page_size or settings.local_catalog_page_size

    def get_all(self) -> list[LocalProduct]:
        """
        Load every product with a SKU, ordered by SKU.

        Reads page_size rows at a time until a short or empty page.

        Returns:
            List of LocalProduct
        """
        logger.info("loading_local_catalog", page_size=self.page_size)

        products = []
        offset = 0

        try:
            while True:
                result = (
                    self.db.table(self.table)
                    .select("sku, titulo")
                    .order("sku")
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )
                rows = result.data or []

                for row in rows:
                    if row.get("sku"):
                        products.append(LocalProduct(
                            sku=str(row["sku"]),
                            title=row.get("titulo") or ""
                        ))

                if len(rows) < self.page_size:
                    break
                offset += self.page_size

        except Exception as e:
            logger.error("load_local_catalog_failed", offset=offset, error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("local_catalog_loaded", count=len(products))
        return products

    def get_by_sku(self, sku: str) -> Optional[LocalProduct]:
        """Single product by SKU, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("sku, titulo")
                .eq("sku", sku)
                .execute()
            )
        except Exception as e:
            logger.error("get_local_product_failed", sku=sku, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        row = result.data[0]
        return LocalProduct(sku=str(row["sku"]), title=row.get("titulo") or "")


# Singleton instance
_local_catalog_service: Optional[LocalCatalogService] = None


def get_local_catalog_service() -> LocalCatalogService:
    """Get or create local catalog service instance."""
    global _local_catalog_service
    if _local_catalog_service is None:
        _local_catalog_service = LocalCatalogService()
    return _local_catalog_service

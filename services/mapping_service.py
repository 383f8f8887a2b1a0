"""
Mapping store: confirmed SKU -> SIGE product links.

Backed by the sige_mappings table, unique on sku.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
import structlog

from config import get_supabase_client, settings
from models.mapping import Mapping, MatchType
from exceptions import DatabaseError, MappingNotFoundError

logger = structlog.get_logger(__name__)

WRITE_CHUNK_SIZE = 500
# PostgREST default max-rows
READ_PAGE_SIZE = 1000


def _chunks(values: list, size: int):
    for start in range(0, len(values), size):
        yield values[start:start + size]


class MappingService:
    """
    CRUD over stored mappings.
    """

    def __init__(self, page_size: Optional[int] = None):
        self.db = get_supabase_client()
        self.table = settings.mappings_table
        self.page_size = page_size or READ_PAGE_SIZE

    # ===================
    # READ OPERATIONS
    # ===================

    def _select_all(self, columns: str, match_type: Optional[MatchType] = None) -> list[dict]:
        """Every row, page_size at a time; PostgREST truncates unranged selects."""
        rows = []
        offset = 0
        while True:
            query = self.db.table(self.table).select(columns)
            if match_type:
                query = query.eq("match_type", match_type.value)
            result = (
                query.order("sku")
                .range(offset, offset + self.page_size - 1)
                .execute()
            )
            page = result.data or []
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            offset += self.page_size

    def list_mappings(self, match_type: Optional[MatchType] = None) -> list[Mapping]:
        """
        All stored mappings, ordered by SKU.

        Args:
            match_type: Only return mappings of this type
        """
        try:
            rows = self._select_all("*", match_type)
        except Exception as e:
            logger.error("list_mappings_failed", error=str(e))
            raise DatabaseError("select", str(e))

        mappings = [Mapping(**row) for row in rows]
        logger.debug("mappings_retrieved", count=len(mappings))
        return mappings

    def get_mapping(self, sku: str) -> Optional[Mapping]:
        """Mapping for a SKU, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("sku", sku)
                .execute()
            )
        except Exception as e:
            logger.error("get_mapping_failed", sku=sku, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return Mapping(**result.data[0])

    def get_mapped_skus(self) -> set[str]:
        """SKUs that already have a mapping of any type."""
        try:
            rows = self._select_all("sku")
        except Exception as e:
            logger.error("get_mapped_skus_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return {row["sku"] for row in rows if row.get("sku")}

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert_mapping(self, mapping: Mapping) -> Mapping:
        """
        Create or replace the mapping for mapping.sku.

        Returns:
            The stored Mapping
        """
        logger.info(
            "upserting_mapping",
            sku=mapping.sku,
            remote_id=mapping.remote_id,
            match_type=mapping.match_type.value
        )

        try:
            result = (
                self.db.table(self.table)
                .upsert(mapping.to_row(), on_conflict="sku")
                .execute()
            )
        except Exception as e:
            logger.error("upsert_mapping_failed", sku=mapping.sku, error=str(e))
            raise DatabaseError("upsert", str(e))

        if result.data:
            return Mapping(**result.data[0])
        return mapping

    def bulk_upsert(self, mappings: list[Mapping]) -> int:
        """
        Store many mappings, WRITE_CHUNK_SIZE rows per call.

        Returns:
            Number of mappings written
        """
        if not mappings:
            return 0

        written = 0
        try:
            for chunk in _chunks(mappings, WRITE_CHUNK_SIZE):
                self.db.table(self.table).upsert(
                    [m.to_row() for m in chunk],
                    on_conflict="sku"
                ).execute()
                written += len(chunk)
        except Exception as e:
            logger.error("bulk_upsert_mappings_failed", written=written, error=str(e))
            raise DatabaseError("upsert", str(e), {"written": written})

        logger.info("mappings_bulk_upserted", count=written)
        return written

    def delete_mapping(self, sku: str) -> None:
        """
        Remove the mapping for a SKU.

        Raises:
            MappingNotFoundError: If the SKU has no mapping
        """
        if self.get_mapping(sku) is None:
            raise MappingNotFoundError(sku)

        try:
            self.db.table(self.table).delete().eq("sku", sku).execute()
        except Exception as e:
            logger.error("delete_mapping_failed", sku=sku, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("mapping_deleted", sku=sku)

    def delete_for_skus(self, skus: Iterable[str]) -> int:
        """
        Remove mappings for the given SKUs (missing ones are ignored).

        Returns:
            Number of SKUs submitted for deletion
        """
        skus = [s for s in dict.fromkeys(skus) if s]
        if not skus:
            return 0

        try:
            for chunk in _chunks(skus, WRITE_CHUNK_SIZE):
                self.db.table(self.table).delete().in_("sku", chunk).execute()
        except Exception as e:
            logger.error("delete_mappings_failed", count=len(skus), error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("mappings_cleared", count=len(skus))
        return len(skus)


def new_mapping(
    sku: str,
    remote_id: str,
    match_type: MatchType,
    remote_code: str = "",
    description: str = "",
    confirmed_by: Optional[str] = None,
) -> Mapping:
    """Build a Mapping stamped with the current UTC time."""
    return Mapping(
        sku=sku,
        remote_id=remote_id,
        remote_code=remote_code,
        description=description,
        match_type=match_type,
        confirmed_at=datetime.now(timezone.utc),
        confirmed_by=confirmed_by,
    )


# Singleton instance
_mapping_service: Optional[MappingService] = None


def get_mapping_service() -> MappingService:
    """Get or create mapping service instance."""
    global _mapping_service
    if _mapping_service is None:
        _mapping_service = MappingService()
    return _mapping_service

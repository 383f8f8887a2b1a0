"""
Business logic services.

Each service handles one domain area.
"""

from services.mapping_service import MappingService, get_mapping_service
from services.local_catalog_service import LocalCatalogService, get_local_catalog_service
from services.balance_cache import BalanceLookupCache
from services.balance_batch_service import (
    CancelToken,
    resolve_balances_batched,
    summarize_balances,
)
from services.catalog_matcher import match_catalog, summarize_matches
from services.reconciliation_service import (
    ReconciliationService,
    get_reconciliation_service,
)

__all__ = [
    "MappingService",
    "get_mapping_service",
    "LocalCatalogService",
    "get_local_catalog_service",
    "BalanceLookupCache",
    "CancelToken",
    "resolve_balances_batched",
    "summarize_balances",
    "match_catalog",
    "summarize_matches",
    "ReconciliationService",
    "get_reconciliation_service",
]

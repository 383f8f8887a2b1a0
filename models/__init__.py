"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.catalog import (
    LocalProduct,
    RemoteProduct,
    RemoteProductPage,
)
from models.mapping import (
    MatchType,
    Mapping,
    ManualMappingRequest,
    MappingListResponse,
)
from models.balance import (
    LocationBalance,
    BalanceDiagnostic,
    BalanceReading,
    MatchedItem,
    ItemWithBalance,
    BalanceSummary,
    BalanceBatchRequest,
    BalanceBatchResponse,
)
from models.sync import (
    MatchSuggestion,
    MatchResult,
    MatchSummary,
    SyncRequest,
    SyncResult,
    LookupStrategy,
    LookupResult,
)

__all__ = [
    # Base
    "BaseSchema",
    # Catalog
    "LocalProduct",
    "RemoteProduct",
    "RemoteProductPage",
    # Mapping
    "MatchType",
    "Mapping",
    "ManualMappingRequest",
    "MappingListResponse",
    # Balance
    "LocationBalance",
    "BalanceDiagnostic",
    "BalanceReading",
    "MatchedItem",
    "ItemWithBalance",
    "BalanceSummary",
    "BalanceBatchRequest",
    "BalanceBatchResponse",
    # Sync
    "MatchSuggestion",
    "MatchResult",
    "MatchSummary",
    "SyncRequest",
    "SyncResult",
    "LookupStrategy",
    "LookupResult",
]

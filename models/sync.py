"""
Sync pass and single-item lookup schemas.
"""

from pydantic import Field
from typing import Any, Optional
from enum import Enum

from models.base import BaseSchema
from models.balance import BalanceReading
from models.mapping import MatchType


class MatchSuggestion(BaseSchema):
    """A SIGE product that resembles an unmatched local product. Advisory only."""

    remote_id: str
    code: str
    description: str
    score: int = Field(..., ge=0, le=100)


class MatchResult(BaseSchema):
    """Outcome of the match cascade for one local product."""

    sku: str
    matched: bool
    remote_id: Optional[str] = None
    remote_code: Optional[str] = None
    match_type: Optional[MatchType] = None
    local_title: str = ""
    remote_description: Optional[str] = None
    suggestions: list[MatchSuggestion] = Field(default_factory=list)


class MatchSummary(BaseSchema):
    """Aggregate counts for a sync pass."""

    total_results: int = 0
    matched: int = 0
    unmatched: int = 0
    skipped: int = 0


class SyncRequest(BaseSchema):
    """Options for a sync pass."""

    clear_existing: bool = Field(False, description="Delete stored mappings before matching")
    fetch_balances: bool = Field(True, description="Fetch balances for new matches")
    batch_size: int = Field(500, ge=1, description="SIGE catalog page size (capped at 500)")


class SyncResult(MatchSummary):
    """Result of a sync pass."""

    match_results: list[MatchResult] = Field(default_factory=list)
    balance_fetched: int = 0
    local_products: int = 0
    remote_products: int = 0


class LookupStrategy(str, Enum):
    """Steps of the single-item balance lookup, in the order they are tried."""
    MAPPING = "mapping"
    DIRECT_BALANCE = "direct_balance"
    CODE_SEARCH = "code_search"
    BASE_DIRECT = "base_direct"
    BASE_SEARCH = "base_search"
    CLEAN_SEARCH = "clean_search"
    REFERENCE_SEARCH = "reference_search"
    DESCRIPTION_SEARCH = "description_search"


class LookupResult(BaseSchema):
    """Result of a deep single-item balance lookup."""

    query: str
    found: bool
    remote_id: Optional[str] = None
    description: str = ""
    strategy: Optional[LookupStrategy] = None
    reading: BalanceReading
    cached: bool = False
    debug_trace: list[str] = Field(default_factory=list)
    remote_responses: list[dict[str, Any]] = Field(default_factory=list)

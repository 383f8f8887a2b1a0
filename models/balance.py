"""
Stock balance schemas.

Balance readings are never stored: stock is volatile, so every query
re-resolves the SIGE payload.
"""

from pydantic import Field, computed_field
from typing import Any, Optional

from models.base import BaseSchema


class LocationBalance(BaseSchema):
    """Stock figures for one SIGE stock location/branch."""

    location: str = Field("Geral", description="Stock location")
    branch: str = Field("", description="Branch (filial)")
    quantity: float = 0.0
    reserved: float = 0.0

    @computed_field
    @property
    def available(self) -> float:
        return self.quantity - self.reserved


class BalanceDiagnostic(BaseSchema):
    """
    Hint that the quantity heuristic may be missing a field name.

    Raised (as data, not as an exception) when every quantity came out zero
    and none of the known quantity fields were present.
    """

    message: str
    top_level_keys: list[str] = Field(default_factory=list)
    item_keys: list[str] = Field(default_factory=list)


class BalanceReading(BaseSchema):
    """
    Resolved stock figures for one SIGE product.

    found=True, quantity=0 means SIGE confirmed zero stock.
    found=False means the balance could not be resolved (see error).
    """

    found: bool = False
    quantity: float = 0.0
    reserved: float = 0.0
    error: Optional[str] = None
    raw: Any = Field(None, description="SIGE payload the figures came from")
    locations: list[LocationBalance] = Field(default_factory=list)
    diagnostic: Optional[BalanceDiagnostic] = None

    @computed_field
    @property
    def available(self) -> float:
        return self.quantity - self.reserved

    @classmethod
    def failed(cls, error: str, raw: Any = None) -> "BalanceReading":
        """Reading for a balance that could not be resolved."""
        return cls(found=False, error=error, raw=raw)


# ===================
# BATCH SCHEMAS
# ===================

class MatchedItem(BaseSchema):
    """An item whose SIGE balance should be fetched."""

    sku: str = Field(..., min_length=1)
    remote_id: Optional[str] = Field(None, description="SIGE id; items without one fail without a fetch")
    description: str = ""


class ItemWithBalance(BaseSchema):
    """A batch item and its reading. balance is None until the item is processed."""

    item: MatchedItem
    balance: Optional[BalanceReading] = None


class BalanceSummary(BaseSchema):
    """Counts over a batch of readings."""

    total: int = 0
    in_stock: int = 0
    out_of_stock: int = 0
    not_found: int = 0
    errors: int = 0
    pending: int = 0
    diagnostic: Optional[BalanceDiagnostic] = None


class BalanceBatchRequest(BaseSchema):
    """Request body for an explorer-style batch balance fetch."""

    items: list[MatchedItem] = Field(..., min_length=1, max_length=500)
    concurrency: Optional[int] = Field(None, ge=1, le=10)


class BalanceBatchResponse(BaseSchema):
    """Result of a batch balance fetch."""

    results: list[ItemWithBalance]
    summary: BalanceSummary
    cancelled: bool = False

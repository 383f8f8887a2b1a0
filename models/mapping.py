"""
SKU -> SIGE product mapping schemas.

One mapping per local SKU. Mappings are created by a sync pass (automatic
match types) or by an operator (MANUAL).
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema


class MatchType(str, Enum):
    """How a local SKU was linked to a SIGE product."""
    EXACT_CODE = "exact_code"
    NORMALIZED_CODE = "normalized_code"
    NO_LEADING_ZEROS = "no_leading_zeros"
    REMOTE_ID_DIRECT = "remote_id_direct"
    BASE_BEFORE_DASH = "base_before_dash"
    MANUAL = "manual"


class Mapping(BaseSchema):
    """A confirmed link between a local SKU and a SIGE product."""

    sku: str = Field(..., min_length=1, description="Local SKU (unique)")
    remote_id: str = Field(..., min_length=1, description="SIGE id used for balance lookups")
    remote_code: str = Field("", description="SIGE product code (codProduto)")
    description: str = Field("", description="SIGE product description")
    match_type: MatchType = Field(..., description="How the mapping was made")
    confirmed_at: datetime = Field(..., description="When the mapping was stored")
    confirmed_by: Optional[str] = Field(None, description="Operator id for manual mappings")

    @property
    def is_manual(self) -> bool:
        return self.match_type == MatchType.MANUAL

    def to_row(self) -> dict:
        """Row for the mappings table."""
        return {
            "sku": self.sku,
            "remote_id": self.remote_id,
            "remote_code": self.remote_code,
            "description": self.description,
            "match_type": self.match_type.value,
            "confirmed_at": self.confirmed_at.isoformat(),
            "confirmed_by": self.confirmed_by,
        }


class ManualMappingRequest(BaseSchema):
    """
    Operator-entered mapping.

    Required: remote_id
    Optional: remote_code (defaults to remote_id), description
    """

    remote_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="SIGE product id",
        examples=["10432"]
    )
    remote_code: Optional[str] = Field(None, max_length=64, description="SIGE product code")
    description: str = Field("", max_length=255, description="SIGE description, for display")
    confirmed_by: Optional[str] = Field(None, description="Operator id")


class MappingListResponse(BaseSchema):
    """All stored mappings."""

    data: list[Mapping]
    total: int

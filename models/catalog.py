"""
Catalog schemas: the store's own products and SIGE product rows.
"""

from pydantic import ConfigDict, Field
from typing import Any, Optional

from models.base import BaseSchema


def _as_str(value: Any) -> str:
    """SIGE ids arrive as numbers or strings; compare them as strings."""
    if value is None:
        return ""
    return str(value).strip()


class LocalProduct(BaseSchema):
    """A product in the store catalog. Read-only to the reconciliation engine."""

    sku: str = Field(..., min_length=1, description="Local SKU (unique)")
    title: str = Field("", description="Product title")


class RemoteProduct(BaseSchema):
    """
    One row of the SIGE product listing.

    SIGE keeps two identifiers per product: an internal id (`id`) and the
    product code shown to users (`codProduto`). Both are kept because local
    SKUs sometimes hold one and sometimes the other.
    """

    model_config = ConfigDict(frozen=True)

    remote_id: str = Field("", description="SIGE internal id")
    code: str = Field("", description="SIGE product code (codProduto)")
    description: str = Field("", description="Product description")
    type_code: str = Field("", description="SIGE product type (tipoProduto)")
    raw_fields: dict[str, Any] = Field(default_factory=dict, description="Row as returned by SIGE")

    @property
    def balance_id(self) -> str:
        """Identifier used for /product/{id}/balance calls."""
        return self.remote_id or self.code

    @classmethod
    def from_sige(cls, row: dict[str, Any]) -> "RemoteProduct":
        """Build from a raw SIGE product row."""
        description = (
            row.get("descProdutoEst")
            or row.get("descricao")
            or row.get("descProduto")
            or ""
        )
        return cls(
            remote_id=_as_str(row.get("id")),
            code=_as_str(row.get("codProduto")),
            description=str(description),
            type_code=_as_str(row.get("tipoProduto")),
            raw_fields=row,
        )


class RemoteProductPage(BaseSchema):
    """One page of the SIGE product listing."""

    data: list[RemoteProduct]
    count: int
    limit: int
    offset: int
    filters: dict[str, str] = Field(default_factory=dict)
    raw_keys: Optional[list[str]] = Field(
        None,
        description="Top-level keys of the SIGE response, set when no products were found"
    )

"""
SIGE catalog sync and product explorer routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.catalog import RemoteProductPage
from models.sync import SyncRequest, SyncResult
from services.reconciliation_service import get_reconciliation_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/sync", response_model=SyncResult)
async def run_sync(request: Optional[SyncRequest] = None):
    """
    Match local products to SIGE products and store new mappings.

    Existing mappings are kept (and their SKUs skipped) unless
    clear_existing is set.
    """
    request = request or SyncRequest()
    try:
        service = get_reconciliation_service()
        return await service.run_sync(
            clear_existing=request.clear_existing,
            fetch_balances=request.fetch_balances,
            batch_size=request.batch_size,
        )
    except Exception as e:
        return handle_error(e)


@router.get("/products", response_model=RemoteProductPage)
async def list_remote_products(
    cod_produto: Optional[str] = Query(None, alias="codProduto", description="Filter by SIGE code"),
    desc_produto: Optional[str] = Query(None, alias="descProdutoEst", description="Filter by description"),
    tipo_produto: Optional[str] = Query(None, alias="tipoProduto", description="Filter by product type"),
    limit: int = Query(50, ge=1, le=500, description="Page size"),
    offset: int = Query(1, ge=1, description="1-based offset"),
):
    """
    One page of the SIGE product catalog, for browsing.
    """
    filters = {
        "codProduto": cod_produto,
        "descProdutoEst": desc_produto,
        "tipoProduto": tipo_produto,
    }
    try:
        service = get_reconciliation_service()
        return await service.list_remote_products(
            filters={k: v for k, v in filters.items() if v},
            limit=limit,
            offset=offset,
        )
    except Exception as e:
        return handle_error(e)

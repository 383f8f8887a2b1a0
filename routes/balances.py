"""
SIGE stock balance routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.balance import BalanceBatchRequest, BalanceBatchResponse
from models.sync import LookupResult
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

@router.get("/balance/{sku}", response_model=LookupResult)
async def get_balance(
    sku: str,
    force: bool = Query(False, description="Bypass the lookup cache"),
    debug: bool = Query(False, description="Include raw SIGE responses"),
):
    """
    Live stock for a SKU (or SIGE id).

    found=false with quantity 0 means the product could not be resolved,
    not that it is out of stock.
    """
    try:
        service = get_reconciliation_service()
        return await service.lookup_balance(sku, force=force, debug=debug)
    except Exception as e:
        return handle_error(e)


@router.post("/balances", response_model=BalanceBatchResponse)
async def fetch_balances(request: BalanceBatchRequest):
    """
    Balances for a list of SIGE products, fetched a few at a time.

    A failed item is reported on its own reading; the rest still resolve.
    """
    try:
        service = get_reconciliation_service()
        return await service.fetch_balances(request.items, concurrency=request.concurrency)
    except Exception as e:
        return handle_error(e)


@router.delete("/balance-cache")
async def clear_balance_cache():
    """Drop all cached single-SKU lookups."""
    try:
        service = get_reconciliation_service()
        cleared = service.clear_balance_cache()
        return {"cleared": cleared}
    except Exception as e:
        return handle_error(e)

"""
SKU -> SIGE mapping routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.mapping import (
    Mapping,
    ManualMappingRequest,
    MappingListResponse,
    MatchType,
)
from services.reconciliation_service import get_reconciliation_service
from exceptions import AppError, MappingNotFoundError

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

@router.get("/mappings", response_model=MappingListResponse)
async def list_mappings(
    match_type: Optional[MatchType] = Query(None, description="Filter by match type")
):
    """List stored mappings."""
    try:
        service = get_reconciliation_service()
        mappings = service.list_mappings(match_type)
        return MappingListResponse(data=mappings, total=len(mappings))
    except Exception as e:
        return handle_error(e)


@router.get("/mappings/{sku}", response_model=Mapping)
async def get_mapping(sku: str):
    """Mapping for one SKU."""
    try:
        service = get_reconciliation_service()
        mapping = service.mappings.get_mapping(sku)
        if mapping is None:
            raise MappingNotFoundError(sku)
        return mapping
    except Exception as e:
        return handle_error(e)


@router.put("/mappings/{sku}", response_model=Mapping)
async def set_manual_mapping(sku: str, request: ManualMappingRequest):
    """
    Link a SKU to a SIGE product by hand.

    Replaces any existing mapping for the SKU. Manual mappings survive
    later sync passes unless the pass clears existing mappings.
    """
    try:
        service = get_reconciliation_service()
        return service.set_manual_mapping(
            sku=sku,
            remote_id=request.remote_id,
            description=request.description,
            remote_code=request.remote_code,
            confirmed_by=request.confirmed_by,
        )
    except Exception as e:
        return handle_error(e)


@router.delete("/mappings/{sku}", status_code=204)
async def remove_mapping(sku: str):
    """Remove the mapping for a SKU."""
    try:
        service = get_reconciliation_service()
        service.remove_mapping(sku)
        return None
    except Exception as e:
        return handle_error(e)

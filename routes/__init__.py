"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.sige_sync import router as sige_sync_router
from routes.mappings import router as mappings_router
from routes.balances import router as balances_router

__all__ = [
    "sige_sync_router",
    "mappings_router",
    "balances_router",
]

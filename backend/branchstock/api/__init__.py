"""
API routes for BranchStock
"""
from .catalog import router as catalog_router
from .inventory import router as inventory_router
from .purchases import router as purchases_router
from .quotations import router as quotations_router
from .reports import router as reports_router
from .sales import router as sales_router
from .transfers import router as transfers_router

__all__ = [
    "catalog_router",
    "inventory_router",
    "purchases_router",
    "quotations_router",
    "reports_router",
    "sales_router",
    "transfers_router",
]

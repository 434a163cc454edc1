"""
BranchStock - Main FastAPI Application
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from branchstock.config import settings
from branchstock.database import init_db
from branchstock.exceptions import BranchStockError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Multi-branch inventory with FIFO lot costing",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BranchStockError)
async def branchstock_error_handler(request: Request, exc: BranchStockError):
    """Render typed errors as {"code", "detail", ...} with the error's own status."""
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.on_event("startup")
def create_tables():
    """Create missing tables on the configured database."""
    init_db()
    logger.info("%s %s started (transfer cost basis: %s)", settings.APP_NAME, settings.APP_VERSION, settings.TRANSFER_COST_BASIS)


# Import and include routers
from branchstock.api import (  # noqa: E402
    catalog_router,
    inventory_router,
    purchases_router,
    quotations_router,
    reports_router,
    sales_router,
    transfers_router,
)

app.include_router(catalog_router, prefix="/api", tags=["Catalog"])
app.include_router(purchases_router, prefix="/api/purchases", tags=["Purchases"])
app.include_router(sales_router, prefix="/api/sales", tags=["Sales"])
app.include_router(transfers_router, prefix="/api/transfers", tags=["Transfers"])
app.include_router(quotations_router, prefix="/api/quotations", tags=["Quotations"])
app.include_router(inventory_router, prefix="/api/inventory", tags=["Inventory"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("branchstock.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)

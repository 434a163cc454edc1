"""
Pydantic schemas for request/response validation
"""
from .catalog import (
    BranchCreate, BranchResponse,
    ProductTypeCreate, ProductTypeResponse,
    ProductCreate, ProductResponse,
)
from .purchase import PurchaseCreate, PurchaseItemCreate, PurchaseResponse
from .sale import (
    SaleCreate, SaleItemCreate, SaleResponse,
    QuotationCreate, QuotationItemCreate, QuotationUpdate, QuotationResponse,
)
from .transfer import TransferCreate, TransferItemCreate, TransferReceiveRequest, TransferResponse
from .inventory import (
    BranchProductResponse, StockLotResponse,
    StockAdjustRequest, StockAdjustmentResponse, MinStockRequest,
    ValuationRow, ReconcileRow,
)
from .reports import ConsignmentStockRow, ConsignmentSaleRow, ConsignmentSummary, DashboardStats

__all__ = [
    # Catalog
    "BranchCreate",
    "BranchResponse",
    "ProductTypeCreate",
    "ProductTypeResponse",
    "ProductCreate",
    "ProductResponse",
    # Purchase
    "PurchaseCreate",
    "PurchaseItemCreate",
    "PurchaseResponse",
    # Sale / Quotation
    "SaleCreate",
    "SaleItemCreate",
    "SaleResponse",
    "QuotationCreate",
    "QuotationItemCreate",
    "QuotationUpdate",
    "QuotationResponse",
    # Transfer
    "TransferCreate",
    "TransferItemCreate",
    "TransferReceiveRequest",
    "TransferResponse",
    # Inventory
    "BranchProductResponse",
    "StockLotResponse",
    "StockAdjustRequest",
    "StockAdjustmentResponse",
    "MinStockRequest",
    "ValuationRow",
    "ReconcileRow",
    # Reports
    "ConsignmentStockRow",
    "ConsignmentSaleRow",
    "ConsignmentSummary",
    "DashboardStats",
]

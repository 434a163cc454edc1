"""
Database models for BranchStock
"""
from branchstock.database import Base

# Import all models
from .branch import Branch, BranchType
from .product import Product, ProductType
from .user import User, UserBranchRole, Role
from .inventory import StockLot, BranchProduct, StockAdjustment, LotReference, AdjustmentType
from .purchase import Purchase, PurchaseItem, PurchaseStatus
from .sale import Sale, SaleItem, SaleStatus, Quotation, QuotationItem, QuotationStatus
from .transfer import Transfer, TransferItem, TransferLotAllocation, TransferStatus

__all__ = [
    "Base",
    "Branch",
    "BranchType",
    "Product",
    "ProductType",
    "User",
    "UserBranchRole",
    "Role",
    "StockLot",
    "BranchProduct",
    "StockAdjustment",
    "LotReference",
    "AdjustmentType",
    "Purchase",
    "PurchaseItem",
    "PurchaseStatus",
    "Sale",
    "SaleItem",
    "SaleStatus",
    "Quotation",
    "QuotationItem",
    "QuotationStatus",
    "Transfer",
    "TransferItem",
    "TransferLotAllocation",
    "TransferStatus",
]

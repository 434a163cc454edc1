"""
Business logic services for BranchStock
"""
from .balance_service import BalanceService
from .catalog_service import CatalogService
from .document_service import DocumentService
from .fifo_service import FifoAllocator, consume_fifo
from .inventory_service import InventoryService
from .purchase_service import PurchaseService
from .quotation_service import QuotationService
from .sale_service import SaleService
from .stock_lot_service import StockLotService
from .transfer_service import TransferService

__all__ = [
    "BalanceService",
    "CatalogService",
    "DocumentService",
    "FifoAllocator",
    "consume_fifo",
    "InventoryService",
    "PurchaseService",
    "QuotationService",
    "SaleService",
    "StockLotService",
    "TransferService",
]

"""
Inventory schemas: balances, lots, adjustments, valuation, reconciliation
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class BranchProductResponse(BaseModel):
    id: UUID
    branch_id: UUID
    product_id: UUID
    quantity: int
    min_stock: int
    updated_at: Optional[datetime] = None
    product_sku: Optional[str] = None
    product_name: Optional[str] = None

    class Config:
        from_attributes = True


class StockLotResponse(BaseModel):
    id: UUID
    branch_id: UUID
    product_id: UUID
    quantity: int
    remaining_quantity: int
    unit_cost: Decimal
    lot_date: datetime
    reference_doc_type: str
    reference_doc_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class StockAdjustRequest(BaseModel):
    branch_id: UUID
    product_id: UUID
    adjustment_type: Literal["add", "subtract", "set"]
    quantity: int = Field(..., ge=0)
    reason: Optional[str] = None


class StockAdjustmentResponse(BaseModel):
    id: UUID
    branch_id: UUID
    product_id: UUID
    adjustment_type: str
    quantity: int
    quantity_before: int
    quantity_after: int
    reason: Optional[str] = None
    performed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MinStockRequest(BaseModel):
    branch_id: UUID
    product_id: UUID
    min_stock: int = Field(..., ge=0)


class ValuationRow(BaseModel):
    branch_id: UUID
    product_id: UUID
    quantity: int
    total_value: Decimal


class ReconcileRow(BaseModel):
    branch_id: UUID
    product_id: UUID
    balance_quantity: int
    lot_quantity: int
    difference: int  # balance - lots

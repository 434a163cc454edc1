"""
Purchase schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class PurchaseItemCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0)


class PurchaseItemResponse(BaseModel):
    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal

    class Config:
        from_attributes = True


class PurchaseCreate(BaseModel):
    branch_id: UUID
    supplier_name: Optional[str] = None
    purchase_date: Optional[date] = None  # Defaults to today
    notes: Optional[str] = None
    items: List[PurchaseItemCreate] = Field(..., min_length=1)


class PurchaseResponse(BaseModel):
    id: UUID
    doc_no: str
    branch_id: UUID
    supplier_name: Optional[str] = None
    purchase_date: date
    status: str
    total_amount: Decimal
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    received_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[PurchaseItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True

"""
Sale and Quotation schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class SaleItemCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)


class SaleItemResponse(BaseModel):
    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    unit_cost: Decimal
    total_cost: Decimal

    class Config:
        from_attributes = True


class SaleCreate(BaseModel):
    branch_id: UUID
    customer_name: Optional[str] = None
    sale_date: Optional[date] = None
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: List[SaleItemCreate] = Field(..., min_length=1)


class SaleResponse(BaseModel):
    id: UUID
    doc_no: str
    branch_id: UUID
    customer_name: Optional[str] = None
    sale_date: date
    status: str
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    quotation_id: Optional[UUID] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[SaleItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


# ----- Quotation -----
class QuotationItemCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)


class QuotationItemResponse(BaseModel):
    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class QuotationCreate(BaseModel):
    branch_id: UUID
    customer_name: Optional[str] = None
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: List[QuotationItemCreate] = Field(..., min_length=1)


class QuotationUpdate(BaseModel):
    """Fields left as None keep their current value; items, when given, replace all lines."""
    customer_name: Optional[str] = None
    valid_until: Optional[date] = None
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[QuotationItemCreate]] = Field(None, min_length=1)


class QuotationResponse(BaseModel):
    id: UUID
    doc_no: str
    branch_id: UUID
    customer_name: Optional[str] = None
    quotation_date: date
    valid_until: Optional[date] = None
    status: str
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    converted_sale_id: Optional[UUID] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    items: List[QuotationItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True

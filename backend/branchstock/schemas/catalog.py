"""
Branch, product type and product schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class BranchBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str
    name_en: Optional[str] = None
    type: Literal["MAIN", "BRANCH", "CONSIGNMENT"] = "BRANCH"
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True


class BranchCreate(BranchBase):
    pass


class BranchResponse(BranchBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductTypeBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str
    name_en: Optional[str] = None
    description: Optional[str] = None


class ProductTypeCreate(ProductTypeBase):
    pass


class ProductTypeResponse(ProductTypeBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    name: str
    name_en: Optional[str] = None
    description: Optional[str] = None
    base_price: Decimal = Field(Decimal("0"), ge=0)
    product_type_id: Optional[UUID] = None
    is_active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductResponse(ProductBase):
    id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

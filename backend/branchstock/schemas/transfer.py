"""
Transfer schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field, model_validator


class TransferItemCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)


class TransferLotAllocationResponse(BaseModel):
    lot_id: UUID
    sequence: int
    quantity: int
    unit_cost: Decimal

    class Config:
        from_attributes = True


class TransferItemResponse(BaseModel):
    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    unit_cost: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None
    allocations: List[TransferLotAllocationResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class TransferCreate(BaseModel):
    from_branch_id: UUID
    to_branch_id: UUID
    transfer_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[TransferItemCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _distinct_branches(self):
        if self.from_branch_id == self.to_branch_id:
            raise ValueError("from_branch_id and to_branch_id must differ")
        return self


class TransferReceiveRequest(BaseModel):
    cost_basis: Optional[Literal["source_fifo", "approval_snapshot"]] = None  # None: TRANSFER_COST_BASIS


class TransferResponse(BaseModel):
    id: UUID
    doc_no: str
    from_branch_id: UUID
    to_branch_id: UUID
    transfer_date: date
    status: str
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    received_by: Optional[UUID] = None
    received_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[TransferItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True

"""
Sales API
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from branchstock.api.transaction import unit_of_work
from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.schemas.sale import SaleCreate, SaleResponse
from branchstock.services.sale_service import SaleService

router = APIRouter()


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """
    Create a sale. Stock is withdrawn FIFO immediately; each line carries the
    weighted average unit cost and exact total cost of the lots it consumed.
    """
    with unit_of_work(db, "Create sale"):
        sale = SaleService.create_sale(db, ctx, data)
    return sale


@router.get("", response_model=List[SaleResponse])
def list_sales(
    branch_id: Optional[UUID] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return SaleService.list_sales(
        db, ctx, branch_id=branch_id, status=status, start_date=start_date, end_date=end_date
    )


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    sale = SaleService.get_sale(db, sale_id)
    ctx.ensure_branch(sale.branch_id)
    return sale


@router.post("/{sale_id}/cancel", response_model=SaleResponse)
def cancel_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Mark a sale CANCELLED. Stock is not returned."""
    with unit_of_work(db, "Cancel sale"):
        sale = SaleService.cancel_sale(db, ctx, sale_id)
    return sale

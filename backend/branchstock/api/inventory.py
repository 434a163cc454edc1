"""
Inventory API - balances, lots, manual adjustments, valuation, reconciliation
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from branchstock.api.transaction import unit_of_work
from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.models import BranchProduct
from branchstock.schemas.inventory import (
    BranchProductResponse,
    MinStockRequest,
    ReconcileRow,
    StockAdjustmentResponse,
    StockAdjustRequest,
    StockLotResponse,
    ValuationRow,
)
from branchstock.services.inventory_service import InventoryService

router = APIRouter()


def _balance_row(bp: BranchProduct) -> BranchProductResponse:
    row = BranchProductResponse.model_validate(bp)
    if bp.product is not None:
        row.product_sku = bp.product.sku
        row.product_name = bp.product.name
    return row


@router.get("/balances", response_model=List[BranchProductResponse])
def list_balances(
    branch_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Current quantity per (branch, product), limited to the caller's branches."""
    if branch_id:
        ctx.ensure_branch(branch_id)
    return [_balance_row(bp) for bp in InventoryService.list_balances(db, ctx, branch_id=branch_id)]


@router.get("/low-stock", response_model=List[BranchProductResponse])
def list_low_stock(
    branch_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    if branch_id:
        ctx.ensure_branch(branch_id)
    return [_balance_row(bp) for bp in InventoryService.list_low_stock(db, ctx, branch_id=branch_id)]


@router.get("/lots", response_model=List[StockLotResponse])
def list_lots(
    branch_id: Optional[UUID] = None,
    product_id: Optional[UUID] = None,
    available_only: bool = True,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Lots in FIFO order (oldest first)."""
    if branch_id:
        ctx.ensure_branch(branch_id)
    return InventoryService.list_lots(
        db, ctx, branch_id=branch_id, product_id=product_id, available_only=available_only
    )


@router.post("/adjust", response_model=StockAdjustmentResponse, status_code=status.HTTP_201_CREATED)
def adjust_stock(
    data: StockAdjustRequest,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """
    Manual balance adjustment (add / subtract / set).

    Lots are not touched, so an adjustment shows up as drift in /reconcile.
    """
    with unit_of_work(db, "Adjust stock"):
        adjustment = InventoryService.adjust_stock(
            db, ctx, data.branch_id, data.product_id, data.adjustment_type, data.quantity, data.reason
        )
    return adjustment


@router.put("/min-stock", response_model=BranchProductResponse)
def set_min_stock(
    data: MinStockRequest,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Set minimum stock"):
        row = InventoryService.set_min_stock(db, ctx, data.branch_id, data.product_id, data.min_stock)
    return _balance_row(row)


@router.get("/valuation", response_model=List[ValuationRow])
def stock_valuation(
    branch_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    if branch_id:
        ctx.ensure_branch(branch_id)
    return InventoryService.valuation(db, ctx, branch_id=branch_id)


@router.get("/reconcile", response_model=List[ReconcileRow])
def reconcile(
    branch_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """(branch, product) pairs whose balance differs from the sum of remaining lot quantity."""
    if branch_id:
        ctx.ensure_branch(branch_id)
    rows = InventoryService.reconcile(db, branch_id=branch_id)
    visible = ctx.visible_branches()
    if visible is not None:
        rows = [r for r in rows if r["branch_id"] in visible]
    return rows

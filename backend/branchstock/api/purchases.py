"""
Purchases API
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from branchstock.api.transaction import unit_of_work
from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.schemas.purchase import PurchaseCreate, PurchaseResponse
from branchstock.services.purchase_service import PurchaseService

router = APIRouter()


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(
    data: PurchaseCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Create a PENDING purchase (no stock effect)."""
    with unit_of_work(db, "Create purchase"):
        purchase = PurchaseService.create_purchase(db, ctx, data)
    return purchase


@router.get("", response_model=List[PurchaseResponse])
def list_purchases(
    branch_id: Optional[UUID] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return PurchaseService.list_purchases(db, ctx, branch_id=branch_id, status=status)


@router.get("/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(
    purchase_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    purchase = PurchaseService.get_purchase(db, purchase_id)
    ctx.ensure_branch(purchase.branch_id)
    return purchase


@router.post("/{purchase_id}/receive", response_model=PurchaseResponse)
def receive_purchase(
    purchase_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Receive into stock: one lot per line, balances increased."""
    with unit_of_work(db, "Receive purchase"):
        purchase = PurchaseService.receive_purchase(db, ctx, purchase_id)
    return purchase


@router.post("/{purchase_id}/cancel", response_model=PurchaseResponse)
def cancel_purchase(
    purchase_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Cancel purchase"):
        purchase = PurchaseService.cancel_purchase(db, ctx, purchase_id)
    return purchase

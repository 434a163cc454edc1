"""
Transfers API - stock movement between branches
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from branchstock.api.transaction import unit_of_work
from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.schemas.transfer import TransferCreate, TransferReceiveRequest, TransferResponse
from branchstock.services.transfer_service import TransferService

router = APIRouter()


@router.post("", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def create_transfer(
    data: TransferCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Create transfer"):
        transfer = TransferService.create_transfer(db, ctx, data)
    return transfer


@router.get("", response_model=List[TransferResponse])
def list_transfers(
    branch_id: Optional[UUID] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return TransferService.list_transfers(db, ctx, branch_id=branch_id, status=status)


@router.get("/{transfer_id}", response_model=TransferResponse)
def get_transfer(
    transfer_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    transfer = TransferService.get_transfer(db, transfer_id)
    ctx.ensure_any_branch(transfer.from_branch_id, transfer.to_branch_id)
    return transfer


@router.post("/{transfer_id}/approve", response_model=TransferResponse)
def approve_transfer(
    transfer_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """PENDING -> IN_TRANSIT: withdraw FIFO from the source branch."""
    with unit_of_work(db, "Approve transfer"):
        transfer = TransferService.approve_transfer(db, ctx, transfer_id)
    return transfer


@router.post("/{transfer_id}/receive", response_model=TransferResponse)
def receive_transfer(
    transfer_id: UUID,
    body: Optional[TransferReceiveRequest] = Body(None),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """IN_TRANSIT -> RECEIVED: create lots at the destination branch."""
    cost_basis = body.cost_basis if body else None
    with unit_of_work(db, "Receive transfer"):
        transfer = TransferService.receive_transfer(db, ctx, transfer_id, cost_basis=cost_basis)
    return transfer


@router.post("/{transfer_id}/cancel", response_model=TransferResponse)
def cancel_transfer(
    transfer_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Cancel a PENDING or IN_TRANSIT transfer. Approved stock is not returned to the source."""
    with unit_of_work(db, "Cancel transfer"):
        transfer = TransferService.cancel_transfer(db, ctx, transfer_id)
    return transfer

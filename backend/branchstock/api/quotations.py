"""
Quotations API
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from branchstock.api.transaction import unit_of_work
from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.schemas.sale import QuotationCreate, QuotationResponse, QuotationUpdate, SaleResponse
from branchstock.services.quotation_service import QuotationService

router = APIRouter()


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
def create_quotation(
    data: QuotationCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Create quotation"):
        quotation = QuotationService.create_quotation(db, ctx, data)
    return quotation


@router.get("", response_model=List[QuotationResponse])
def list_quotations(
    branch_id: Optional[UUID] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return QuotationService.list_quotations(db, ctx, branch_id=branch_id, status=status)


@router.get("/{quotation_id}", response_model=QuotationResponse)
def get_quotation(
    quotation_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    quotation = QuotationService.get_quotation(db, quotation_id)
    ctx.ensure_branch(quotation.branch_id)
    return quotation


@router.put("/{quotation_id}", response_model=QuotationResponse)
def update_quotation(
    quotation_id: UUID,
    data: QuotationUpdate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Edit a DRAFT or SENT quotation."""
    with unit_of_work(db, "Update quotation"):
        quotation = QuotationService.update_quotation(db, ctx, quotation_id, data)
    return quotation


@router.post("/{quotation_id}/send", response_model=QuotationResponse)
def send_quotation(
    quotation_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Send quotation"):
        quotation = QuotationService.send_quotation(db, ctx, quotation_id)
    return quotation


@router.post("/{quotation_id}/accept", response_model=QuotationResponse)
def accept_quotation(
    quotation_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Accept quotation"):
        quotation = QuotationService.accept_quotation(db, ctx, quotation_id)
    return quotation


@router.post("/{quotation_id}/reject", response_model=QuotationResponse)
def reject_quotation(
    quotation_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Reject quotation"):
        quotation = QuotationService.reject_quotation(db, ctx, quotation_id)
    return quotation


@router.post("/{quotation_id}/convert-to-sale", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def convert_quotation_to_sale(
    quotation_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Create a sale from an ACCEPTED quotation (stock is withdrawn FIFO)."""
    with unit_of_work(db, "Convert quotation"):
        sale = QuotationService.convert_to_sale(db, ctx, quotation_id)
    return sale

"""
Quotation lifecycle: DRAFT -> SENT -> ACCEPTED | REJECTED (REJECTED also from DRAFT).
Quotations never move stock; converting an ACCEPTED quotation creates a sale.
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from branchstock.context import UserContext
from branchstock.exceptions import InvalidStateTransition, NotFoundError, ValidationError
from branchstock.models import Quotation, QuotationItem, QuotationStatus, Sale
from branchstock.schemas.sale import QuotationCreate, QuotationUpdate, SaleCreate, SaleItemCreate
from branchstock.services.document_items_helper import require_branch, require_products, validate_lines
from branchstock.services.document_service import DocumentService
from branchstock.services.sale_service import SaleService
from branchstock.utils.numeric import ZERO, to_decimal

logger = logging.getLogger(__name__)

# action -> statuses it may start from
_TRANSITIONS = {
    "update": (QuotationStatus.DRAFT, QuotationStatus.SENT),
    "send": (QuotationStatus.DRAFT,),
    "accept": (QuotationStatus.SENT,),
    "reject": (QuotationStatus.DRAFT, QuotationStatus.SENT),
    "convert": (QuotationStatus.ACCEPTED,),
}


class QuotationService:

    @staticmethod
    def get_quotation(db: Session, quotation_id: UUID, for_update: bool = False) -> Quotation:
        q = db.query(Quotation).filter(Quotation.id == quotation_id)
        if for_update:
            q = q.with_for_update()
        quotation = q.first()
        if not quotation:
            raise NotFoundError("Quotation", quotation_id)
        return quotation

    @staticmethod
    def list_quotations(
        db: Session,
        ctx: UserContext,
        branch_id: Optional[UUID] = None,
        status: Optional[str] = None,
    ) -> List[Quotation]:
        q = db.query(Quotation).options(selectinload(Quotation.items))
        visible = ctx.visible_branches()
        if visible is not None:
            q = q.filter(Quotation.branch_id.in_(visible))
        if branch_id:
            q = q.filter(Quotation.branch_id == branch_id)
        if status:
            q = q.filter(Quotation.status == status)
        return q.order_by(Quotation.quotation_date.desc(), Quotation.doc_no.desc()).all()

    @staticmethod
    def _check(quotation: Quotation, action: str) -> None:
        allowed = [s.value for s in _TRANSITIONS[action]]
        if quotation.status not in allowed:
            raise InvalidStateTransition("quotation", quotation.doc_no, quotation.status, action)

    @staticmethod
    def _set_lines(db: Session, quotation: Quotation, items, discount, tax) -> None:
        validate_lines(items)
        require_products(db, (it.product_id for it in items))
        discount = to_decimal(discount)
        tax = to_decimal(tax)
        if discount < 0 or tax < 0:
            raise ValidationError("Discount and tax cannot be negative")
        quotation.items.clear()
        subtotal = ZERO
        for line_no, it in enumerate(items, start=1):
            unit_price = to_decimal(it.unit_price)
            line_total = unit_price * it.quantity
            subtotal += line_total
            quotation.items.append(QuotationItem(
                line_no=line_no,
                product_id=it.product_id,
                quantity=it.quantity,
                unit_price=unit_price,
                total_price=line_total,
            ))
        quotation.subtotal = subtotal
        quotation.discount_amount = discount
        quotation.tax_amount = tax
        quotation.total_amount = subtotal - discount + tax

    @staticmethod
    def create_quotation(db: Session, ctx: UserContext, data: QuotationCreate) -> Quotation:
        ctx.ensure_branch(data.branch_id)
        require_branch(db, data.branch_id)
        quotation_date = data.quotation_date or date.today()
        quotation = Quotation(
            doc_no=DocumentService.get_quotation_number(db, data.branch_id, quotation_date),
            branch_id=data.branch_id,
            customer_name=data.customer_name,
            quotation_date=quotation_date,
            valid_until=data.valid_until,
            status=QuotationStatus.DRAFT.value,
            notes=data.notes,
            created_by=ctx.user_id,
        )
        QuotationService._set_lines(db, quotation, data.items, data.discount_amount, data.tax_amount)
        db.add(quotation)
        db.flush()
        logger.info("Quotation %s created: %s lines, total %s", quotation.doc_no, len(quotation.items), quotation.total_amount)
        return quotation

    @staticmethod
    def update_quotation(db: Session, ctx: UserContext, quotation_id: UUID, data: QuotationUpdate) -> Quotation:
        """Edit header fields; items, when given, replace every line and totals are recomputed."""
        quotation = QuotationService.get_quotation(db, quotation_id, for_update=True)
        ctx.ensure_branch(quotation.branch_id)
        QuotationService._check(quotation, "update")
        if data.customer_name is not None:
            quotation.customer_name = data.customer_name
        if data.valid_until is not None:
            quotation.valid_until = data.valid_until
        if data.notes is not None:
            quotation.notes = data.notes
        discount = data.discount_amount if data.discount_amount is not None else quotation.discount_amount
        tax = data.tax_amount if data.tax_amount is not None else quotation.tax_amount
        items = data.items if data.items is not None else list(quotation.items)
        QuotationService._set_lines(db, quotation, items, discount, tax)
        db.flush()
        logger.info("Quotation %s updated", quotation.doc_no)
        return quotation

    @staticmethod
    def _move(db: Session, ctx: UserContext, quotation_id: UUID, action: str, target: QuotationStatus) -> Quotation:
        quotation = QuotationService.get_quotation(db, quotation_id, for_update=True)
        ctx.ensure_branch(quotation.branch_id)
        QuotationService._check(quotation, action)
        was = quotation.status
        quotation.status = target.value
        db.flush()
        logger.info("Quotation %s %s -> %s", quotation.doc_no, was, quotation.status)
        return quotation

    @staticmethod
    def send_quotation(db: Session, ctx: UserContext, quotation_id: UUID) -> Quotation:
        return QuotationService._move(db, ctx, quotation_id, "send", QuotationStatus.SENT)

    @staticmethod
    def accept_quotation(db: Session, ctx: UserContext, quotation_id: UUID) -> Quotation:
        return QuotationService._move(db, ctx, quotation_id, "accept", QuotationStatus.ACCEPTED)

    @staticmethod
    def reject_quotation(db: Session, ctx: UserContext, quotation_id: UUID) -> Quotation:
        return QuotationService._move(db, ctx, quotation_id, "reject", QuotationStatus.REJECTED)

    @staticmethod
    def convert_to_sale(
        db: Session,
        ctx: UserContext,
        quotation_id: UUID,
        sale_date: Optional[date] = None,
    ) -> Sale:
        """ACCEPTED only, and only once. The sale goes through the normal sale processor."""
        quotation = QuotationService.get_quotation(db, quotation_id, for_update=True)
        ctx.ensure_branch(quotation.branch_id)
        QuotationService._check(quotation, "convert")
        if quotation.converted_sale_id is not None:
            raise InvalidStateTransition("quotation", quotation.doc_no, "CONVERTED", "convert")

        sale = SaleService.create_sale(
            db,
            ctx,
            SaleCreate(
                branch_id=quotation.branch_id,
                customer_name=quotation.customer_name,
                sale_date=sale_date,
                discount_amount=quotation.discount_amount,
                tax_amount=quotation.tax_amount,
                notes=quotation.notes,
                items=[
                    SaleItemCreate(product_id=it.product_id, quantity=it.quantity, unit_price=it.unit_price)
                    for it in quotation.items
                ],
            ),
            quotation_id=quotation.id,
        )
        quotation.converted_sale_id = sale.id
        db.flush()
        logger.info("Quotation %s converted to sale %s", quotation.doc_no, sale.doc_no)
        return sale

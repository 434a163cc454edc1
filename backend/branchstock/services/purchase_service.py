"""
Purchase processor: create (PENDING), receive (lots + balances), cancel.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from branchstock.context import UserContext
from branchstock.exceptions import InvalidStateTransition, NotFoundError, ValidationError
from branchstock.models import Purchase, PurchaseItem, PurchaseStatus, LotReference
from branchstock.schemas.purchase import PurchaseCreate
from branchstock.services.balance_service import BalanceService
from branchstock.services.document_items_helper import require_branch, require_products, validate_lines
from branchstock.services.document_service import DocumentService
from branchstock.services.stock_guard import StockGuard
from branchstock.services.stock_lot_service import StockLotService
from branchstock.utils.numeric import ZERO, to_decimal

logger = logging.getLogger(__name__)


class PurchaseService:

    @staticmethod
    def get_purchase(db: Session, purchase_id: UUID, for_update: bool = False) -> Purchase:
        q = db.query(Purchase).filter(Purchase.id == purchase_id)
        if for_update:
            q = q.with_for_update()
        purchase = q.first()
        if not purchase:
            raise NotFoundError("Purchase", purchase_id)
        return purchase

    @staticmethod
    def list_purchases(
        db: Session,
        ctx: UserContext,
        branch_id: Optional[UUID] = None,
        status: Optional[str] = None,
    ) -> List[Purchase]:
        q = db.query(Purchase).options(selectinload(Purchase.items))
        visible = ctx.visible_branches()
        if visible is not None:
            q = q.filter(Purchase.branch_id.in_(visible))
        if branch_id:
            q = q.filter(Purchase.branch_id == branch_id)
        if status:
            q = q.filter(Purchase.status == status)
        return q.order_by(Purchase.purchase_date.desc(), Purchase.doc_no.desc()).all()

    @staticmethod
    def create_purchase(db: Session, ctx: UserContext, data: PurchaseCreate) -> Purchase:
        """Create a PENDING purchase. No stock moves until receive."""
        ctx.ensure_branch(data.branch_id)
        require_branch(db, data.branch_id)
        validate_lines(data.items)
        require_products(db, (it.product_id for it in data.items))

        purchase_date = data.purchase_date or date.today()
        purchase = Purchase(
            doc_no=DocumentService.get_purchase_number(db, data.branch_id, purchase_date),
            branch_id=data.branch_id,
            supplier_name=data.supplier_name,
            purchase_date=purchase_date,
            status=PurchaseStatus.PENDING.value,
            notes=data.notes,
            created_by=ctx.user_id,
        )
        total = ZERO
        for line_no, it in enumerate(data.items, start=1):
            unit_cost = to_decimal(it.unit_cost)
            if unit_cost < 0:
                raise ValidationError(f"Line {line_no}: unit cost cannot be negative", field="unit_cost")
            line_total = unit_cost * it.quantity
            total += line_total
            purchase.items.append(PurchaseItem(
                line_no=line_no,
                product_id=it.product_id,
                quantity=it.quantity,
                unit_cost=unit_cost,
                total_cost=line_total,
            ))
        purchase.total_amount = total
        db.add(purchase)
        db.flush()
        logger.info("Purchase %s created: %s lines, total %s", purchase.doc_no, len(purchase.items), total)
        return purchase

    @staticmethod
    def receive_purchase(db: Session, ctx: UserContext, purchase_id: UUID) -> Purchase:
        """
        PENDING -> RECEIVED. One lot per line at the line's unit cost, then +qty on the balance.
        """
        purchase = PurchaseService.get_purchase(db, purchase_id, for_update=True)
        ctx.ensure_branch(purchase.branch_id)
        if purchase.status != PurchaseStatus.PENDING.value:
            raise InvalidStateTransition("purchase", purchase.doc_no, purchase.status, "receive")

        guard = StockGuard(db)
        for it in purchase.items:
            guard.watch(purchase.branch_id, it.product_id)

        received_at = datetime.now(timezone.utc)
        for it in purchase.items:
            StockLotService.create_lot(
                db,
                branch_id=purchase.branch_id,
                product_id=it.product_id,
                quantity=it.quantity,
                unit_cost=it.unit_cost,
                reference_doc_type=LotReference.PURCHASE.value,
                reference_doc_id=purchase.id,
                lot_date=received_at,
            )
            BalanceService.apply_delta(db, purchase.branch_id, it.product_id, it.quantity)

        guard.verify()
        purchase.status = PurchaseStatus.RECEIVED.value
        purchase.received_at = received_at
        db.flush()
        logger.info(
            "Purchase %s received: %s lots created at branch %s",
            purchase.doc_no, len(purchase.items), purchase.branch_id,
        )
        return purchase

    @staticmethod
    def cancel_purchase(db: Session, ctx: UserContext, purchase_id: UUID) -> Purchase:
        """PENDING -> CANCELLED. Nothing was received so there is no stock effect."""
        purchase = PurchaseService.get_purchase(db, purchase_id, for_update=True)
        ctx.ensure_branch(purchase.branch_id)
        if purchase.status != PurchaseStatus.PENDING.value:
            raise InvalidStateTransition("purchase", purchase.doc_no, purchase.status, "cancel")
        purchase.status = PurchaseStatus.CANCELLED.value
        db.flush()
        logger.info("Purchase %s cancelled", purchase.doc_no)
        return purchase

"""
Sale processor.

A sale takes effect at creation: every line is costed FIFO against the branch's
lots, then the lots and balances are written and the sale is COMPLETED.
All lines are planned before anything is written, so a short line fails the
whole sale with no lot touched.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from branchstock.context import UserContext
from branchstock.exceptions import (
    InsufficientStockError,
    InvalidStateTransition,
    NegativeStockError,
    NotFoundError,
    ValidationError,
)
from branchstock.models import Sale, SaleItem, SaleStatus
from branchstock.schemas.sale import SaleCreate
from branchstock.services.balance_service import BalanceService
from branchstock.services.document_items_helper import (
    quantity_by_product,
    require_branch,
    require_products,
    validate_lines,
)
from branchstock.services.document_service import DocumentService
from branchstock.services.fifo_service import FifoAllocator
from branchstock.services.stock_guard import StockGuard
from branchstock.services.stock_lot_service import StockLotService
from branchstock.utils.numeric import ZERO, to_decimal

logger = logging.getLogger(__name__)


class SaleService:

    @staticmethod
    def get_sale(db: Session, sale_id: UUID, for_update: bool = False) -> Sale:
        q = db.query(Sale).filter(Sale.id == sale_id)
        if for_update:
            q = q.with_for_update()
        sale = q.first()
        if not sale:
            raise NotFoundError("Sale", sale_id)
        return sale

    @staticmethod
    def list_sales(
        db: Session,
        ctx: UserContext,
        branch_id: Optional[UUID] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Sale]:
        q = db.query(Sale).options(selectinload(Sale.items))
        visible = ctx.visible_branches()
        if visible is not None:
            q = q.filter(Sale.branch_id.in_(visible))
        if branch_id:
            q = q.filter(Sale.branch_id == branch_id)
        if status:
            q = q.filter(Sale.status == status)
        if start_date:
            q = q.filter(Sale.sale_date >= start_date)
        if end_date:
            q = q.filter(Sale.sale_date <= end_date)
        return q.order_by(Sale.sale_date.desc(), Sale.doc_no.desc()).all()

    @staticmethod
    def create_sale(
        db: Session,
        ctx: UserContext,
        data: SaleCreate,
        quotation_id: Optional[UUID] = None,
    ) -> Sale:
        """
        Create a COMPLETED sale and withdraw its stock FIFO.

        Raises:
            InsufficientStockError: a line cannot be covered by the branch's lots
            NegativeStockError: the branch balance is below the requested total
        """
        ctx.ensure_branch(data.branch_id)
        require_branch(db, data.branch_id)
        validate_lines(data.items)
        require_products(db, (it.product_id for it in data.items))
        discount = to_decimal(data.discount_amount)
        tax = to_decimal(data.tax_amount)
        if discount < 0:
            raise ValidationError("Discount cannot be negative", field="discount_amount")
        if tax < 0:
            raise ValidationError("Tax cannot be negative", field="tax_amount")

        # Plan every line first; nothing is written if any line is short
        allocator = FifoAllocator(db)
        plans = []
        for line_no, it in enumerate(data.items, start=1):
            try:
                plans.append(allocator.plan(data.branch_id, it.product_id, it.quantity))
            except InsufficientStockError as e:
                logger.warning("Sale rejected at line %s: %s", line_no, e.message)
                raise

        guard = StockGuard(db)
        for product_id, qty in quantity_by_product(data.items).items():
            guard.watch(data.branch_id, product_id)
            balance = BalanceService.get_balance(db, data.branch_id, product_id)
            if balance.quantity < qty:
                logger.warning(
                    "Sale rejected: balance %s < requested %s (branch=%s product=%s)",
                    balance.quantity, qty, data.branch_id, product_id,
                )
                raise NegativeStockError(data.branch_id, product_id, balance.quantity, -qty)

        sale_date = data.sale_date or date.today()
        sale = Sale(
            doc_no=DocumentService.get_sale_number(db, data.branch_id, sale_date),
            branch_id=data.branch_id,
            customer_name=data.customer_name,
            sale_date=sale_date,
            status=SaleStatus.COMPLETED.value,
            discount_amount=discount,
            tax_amount=tax,
            quotation_id=quotation_id,
            notes=data.notes,
            created_by=ctx.user_id,
        )
        subtotal = ZERO
        for line_no, (it, plan) in enumerate(zip(data.items, plans), start=1):
            unit_price = to_decimal(it.unit_price)
            if unit_price < 0:
                raise ValidationError(f"Line {line_no}: unit price cannot be negative", field="unit_price")
            line_total = unit_price * it.quantity
            subtotal += line_total
            sale.items.append(SaleItem(
                line_no=line_no,
                product_id=it.product_id,
                quantity=it.quantity,
                unit_price=unit_price,
                total_price=line_total,
                unit_cost=plan.average_unit_cost,
                total_cost=plan.total_cost,
            ))
        sale.subtotal = subtotal
        sale.total_amount = subtotal - discount + tax
        db.add(sale)
        db.flush()

        for it, plan in zip(data.items, plans):
            for dec in plan.lot_decrements:
                StockLotService.decrement_lot(db, dec.lot_id, dec.quantity)
            BalanceService.apply_delta(db, data.branch_id, it.product_id, -it.quantity)

        guard.verify()
        logger.info(
            "Sale %s completed: %s lines, total %s, cost %s",
            sale.doc_no, len(sale.items), sale.total_amount, sum((p.total_cost for p in plans), ZERO),
        )
        return sale

    @staticmethod
    def cancel_sale(db: Session, ctx: UserContext, sale_id: UUID) -> Sale:
        """COMPLETED -> CANCELLED. Bookkeeping only: stock is not returned."""
        sale = SaleService.get_sale(db, sale_id, for_update=True)
        ctx.ensure_branch(sale.branch_id)
        if sale.status != SaleStatus.COMPLETED.value:
            raise InvalidStateTransition("sale", sale.doc_no, sale.status, "cancel")
        sale.status = SaleStatus.CANCELLED.value
        sale.cancelled_at = datetime.now(timezone.utc)
        db.flush()
        logger.info("Sale %s cancelled (no restock)", sale.doc_no)
        return sale

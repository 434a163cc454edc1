"""
Stock lot store - create, list oldest-first, decrement.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from branchstock.exceptions import InsufficientLotQuantity, NotFoundError, ValidationError
from branchstock.models import StockLot, LotReference
from branchstock.services.balance_service import BalanceService
from branchstock.services.fifo_service import LotSnapshot
from branchstock.utils.numeric import to_decimal

logger = logging.getLogger(__name__)


class StockLotService:
    """Only writer of stock_lots. Callers own the transaction."""

    @staticmethod
    def create_lot(
        db: Session,
        branch_id: UUID,
        product_id: UUID,
        quantity: int,
        unit_cost,
        reference_doc_type: str,
        reference_doc_id: Optional[UUID] = None,
        lot_date: Optional[datetime] = None,
    ) -> StockLot:
        """Persist a new lot with remaining_quantity = quantity."""
        quantity = int(quantity)
        cost = to_decimal(unit_cost)
        if quantity < 0:
            raise ValidationError("Lot quantity cannot be negative", field="quantity")
        if cost < 0:
            raise ValidationError("Lot unit cost cannot be negative", field="unit_cost")
        ref = LotReference(reference_doc_type).value
        # The locked balance row serializes lot creation for the pair, so seq stays unique.
        BalanceService.get_or_create_row(db, branch_id, product_id)
        lot = StockLot(
            branch_id=branch_id,
            product_id=product_id,
            quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=cost,
            reference_doc_type=ref,
            reference_doc_id=reference_doc_id,
            seq=StockLotService.next_seq(db, branch_id, product_id),
        )
        if lot_date is not None:
            lot.lot_date = lot_date
        db.add(lot)
        db.flush()
        return lot

    @staticmethod
    def list_available_lots(
        db: Session,
        branch_id: UUID,
        product_id: UUID,
        for_update: bool = False,
    ) -> List[StockLot]:
        """
        Lots with remaining_quantity > 0, oldest lot_date first, ties by seq
        (creation order: source FIFO order for transfers, line order for purchases).
        This order is the FIFO contract.
        """
        q = (
            db.query(StockLot)
            .filter(
                StockLot.branch_id == branch_id,
                StockLot.product_id == product_id,
                StockLot.remaining_quantity > 0,
            )
            .order_by(StockLot.lot_date.asc(), StockLot.seq.asc())
        )
        if for_update:
            q = q.with_for_update()
        return q.all()

    @staticmethod
    def next_seq(db: Session, branch_id: UUID, product_id: UUID) -> int:
        current = db.query(func.max(StockLot.seq)).filter(
            StockLot.branch_id == branch_id,
            StockLot.product_id == product_id,
        ).scalar()
        return int(current or 0) + 1

    @staticmethod
    def decrement_lot(db: Session, lot_id: UUID, amount: int) -> StockLot:
        """Reduce remaining_quantity. Asking for more than the lot holds is an internal fault."""
        lot = db.query(StockLot).filter(StockLot.id == lot_id).with_for_update().first()
        if not lot:
            raise NotFoundError("StockLot", lot_id)
        amount = int(amount)
        if amount < 0 or amount > lot.remaining_quantity:
            logger.error(
                "Lot %s decrement by %s exceeds remaining %s (branch=%s product=%s)",
                lot.id, amount, lot.remaining_quantity, lot.branch_id, lot.product_id,
            )
            raise InsufficientLotQuantity(lot.id, lot.remaining_quantity, amount)
        lot.remaining_quantity = lot.remaining_quantity - amount
        db.flush()
        return lot

    @staticmethod
    def remaining_total(db: Session, branch_id: UUID, product_id: UUID) -> int:
        """Sum of remaining_quantity over all lots of (branch, product)."""
        total = db.query(
            func.coalesce(func.sum(StockLot.remaining_quantity), 0)
        ).filter(
            StockLot.branch_id == branch_id,
            StockLot.product_id == product_id,
        ).scalar()
        return int(total or 0)

    @staticmethod
    def snapshot(lot: StockLot) -> LotSnapshot:
        return LotSnapshot(
            lot_id=lot.id,
            remaining_quantity=int(lot.remaining_quantity),
            unit_cost=to_decimal(lot.unit_cost),
            lot_date=lot.lot_date,
        )

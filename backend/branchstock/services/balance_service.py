"""
Balance service: maintains branch_products (on-hand quantity per branch and product)
in step with stock_lots. Called from every stock write point in the same transaction.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from branchstock.exceptions import NegativeStockError, ValidationError
from branchstock.models import BranchProduct

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceView:
    branch_id: UUID
    product_id: UUID
    quantity: int
    min_stock: int
    exists: bool  # False: no row yet, distinct from an explicit zero


class BalanceService:
    """Read and update branch_products rows."""

    @staticmethod
    def _row(db: Session, branch_id: UUID, product_id: UUID, for_update: bool = False) -> Optional[BranchProduct]:
        q = db.query(BranchProduct).filter(
            BranchProduct.branch_id == branch_id,
            BranchProduct.product_id == product_id,
        )
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def get_balance(db: Session, branch_id: UUID, product_id: UUID) -> BalanceView:
        row = BalanceService._row(db, branch_id, product_id)
        if row is None:
            return BalanceView(branch_id, product_id, 0, 0, exists=False)
        return BalanceView(branch_id, product_id, int(row.quantity), int(row.min_stock or 0), exists=True)

    @staticmethod
    def lock_row(db: Session, branch_id: UUID, product_id: UUID, create: bool = False) -> Optional[BranchProduct]:
        """Row for (branch, product) under row lock; None when absent and create is False."""
        if create:
            return BalanceService.get_or_create_row(db, branch_id, product_id)
        return BalanceService._row(db, branch_id, product_id, for_update=True)

    @staticmethod
    def get_or_create_row(db: Session, branch_id: UUID, product_id: UUID) -> BranchProduct:
        """Locked row for (branch, product), created at zero if absent."""
        row = BalanceService._row(db, branch_id, product_id, for_update=True)
        if row is None:
            row = BranchProduct(branch_id=branch_id, product_id=product_id, quantity=0, min_stock=0)
            db.add(row)
            db.flush()
        return row

    @staticmethod
    def apply_delta(db: Session, branch_id: UUID, product_id: UUID, delta: int) -> BalanceView:
        """
        Add delta to the balance. Creates the row on first positive delta.
        Raises NegativeStockError instead of clamping.
        """
        delta = int(delta)
        row = BalanceService._row(db, branch_id, product_id, for_update=True)
        current = int(row.quantity) if row is not None else 0
        if current + delta < 0:
            logger.warning(
                "Negative stock rejected: branch=%s product=%s current=%s delta=%s",
                branch_id, product_id, current, delta,
            )
            raise NegativeStockError(branch_id, product_id, current, delta)
        if row is None:
            if delta == 0:
                return BalanceView(branch_id, product_id, 0, 0, exists=False)
            row = BranchProduct(branch_id=branch_id, product_id=product_id, quantity=0, min_stock=0)
            db.add(row)
        row.quantity = current + delta
        db.flush()
        return BalanceView(branch_id, product_id, int(row.quantity), int(row.min_stock or 0), exists=True)

    @staticmethod
    def set_min_stock(db: Session, branch_id: UUID, product_id: UUID, min_stock: int) -> BalanceView:
        """Store the reorder threshold. Quantity is untouched."""
        if min_stock is None or int(min_stock) < 0:
            raise ValidationError("min_stock cannot be negative", field="min_stock")
        row = BalanceService.get_or_create_row(db, branch_id, product_id)
        row.min_stock = int(min_stock)
        db.flush()
        return BalanceView(branch_id, product_id, int(row.quantity), int(row.min_stock), exists=True)


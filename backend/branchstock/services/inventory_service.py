"""
Inventory Service - manual adjustments, stock queries, valuation and reconciliation
"""
import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from branchstock.context import UserContext
from branchstock.exceptions import NegativeStockError, ValidationError
from branchstock.models import AdjustmentType, BranchProduct, StockAdjustment, StockLot
from branchstock.services.balance_service import BalanceService
from branchstock.services.document_items_helper import require_branch, require_products
from branchstock.utils.numeric import ZERO, to_decimal

logger = logging.getLogger(__name__)


class InventoryService:
    """Balance adjustments and read-only stock views"""

    @staticmethod
    def adjust_stock(
        db: Session,
        ctx: UserContext,
        branch_id: UUID,
        product_id: UUID,
        adjustment_type: str,
        quantity: int,
        reason: Optional[str] = None,
    ) -> StockAdjustment:
        """
        Manual adjustment of the balance only; lots are not created or consumed.

        add:      +quantity
        subtract: -quantity, NegativeStockError below zero
        set:      quantity - current

        add and set create the balance row if it does not exist. subtract on a
        missing row starts from zero, so only quantity 0 succeeds and no row is created.
        """
        ctx.ensure_branch(branch_id)
        try:
            kind = AdjustmentType(adjustment_type)
        except ValueError:
            raise ValidationError(f"Unknown adjustment type {adjustment_type!r}", field="adjustment_type") from None
        if quantity is None or int(quantity) != quantity or int(quantity) < 0:
            raise ValidationError("Adjustment quantity must be a whole number >= 0", field="quantity")
        quantity = int(quantity)
        require_branch(db, branch_id)
        require_products(db, [product_id])

        # Lock before reading so a set computes its delta from the current quantity
        row = BalanceService.lock_row(db, branch_id, product_id, create=kind != AdjustmentType.SUBTRACT)
        current = int(row.quantity) if row is not None else 0
        if kind == AdjustmentType.ADD:
            delta = quantity
        elif kind == AdjustmentType.SUBTRACT:
            delta = -quantity
        else:
            delta = quantity - current

        try:
            after = BalanceService.apply_delta(db, branch_id, product_id, delta)
        except NegativeStockError:
            logger.warning(
                "Adjustment rejected: %s %s on branch=%s product=%s (current %s)",
                kind.value, quantity, branch_id, product_id, current,
            )
            raise

        adjustment = StockAdjustment(
            branch_id=branch_id,
            product_id=product_id,
            adjustment_type=kind.value,
            quantity=quantity,
            quantity_before=current,
            quantity_after=after.quantity,
            reason=reason,
            performed_by=ctx.user_id,
        )
        db.add(adjustment)
        db.flush()
        logger.info(
            "Stock adjusted (%s %s): branch=%s product=%s %s -> %s",
            kind.value, quantity, branch_id, product_id, current, after.quantity,
        )
        return adjustment

    @staticmethod
    def set_min_stock(db: Session, ctx: UserContext, branch_id: UUID, product_id: UUID, min_stock: int) -> BranchProduct:
        ctx.ensure_branch(branch_id)
        require_branch(db, branch_id)
        require_products(db, [product_id])
        BalanceService.set_min_stock(db, branch_id, product_id, min_stock)
        return BalanceService.get_or_create_row(db, branch_id, product_id)

    @staticmethod
    def _balances_query(db: Session, ctx: UserContext, branch_id: Optional[UUID]):
        q = db.query(BranchProduct).options(joinedload(BranchProduct.product))
        visible = ctx.visible_branches()
        if visible is not None:
            q = q.filter(BranchProduct.branch_id.in_(visible))
        if branch_id:
            q = q.filter(BranchProduct.branch_id == branch_id)
        return q

    @staticmethod
    def list_balances(db: Session, ctx: UserContext, branch_id: Optional[UUID] = None) -> List[BranchProduct]:
        return InventoryService._balances_query(db, ctx, branch_id).order_by(
            BranchProduct.branch_id, BranchProduct.product_id
        ).all()

    @staticmethod
    def list_low_stock(db: Session, ctx: UserContext, branch_id: Optional[UUID] = None) -> List[BranchProduct]:
        """Rows with a threshold set (min_stock > 0) and quantity at or below it."""
        return InventoryService._balances_query(db, ctx, branch_id).filter(
            BranchProduct.min_stock > 0,
            BranchProduct.quantity <= BranchProduct.min_stock,
        ).order_by(BranchProduct.quantity.asc()).all()

    @staticmethod
    def list_lots(
        db: Session,
        ctx: UserContext,
        branch_id: Optional[UUID] = None,
        product_id: Optional[UUID] = None,
        available_only: bool = False,
    ) -> List[StockLot]:
        q = db.query(StockLot)
        visible = ctx.visible_branches()
        if visible is not None:
            q = q.filter(StockLot.branch_id.in_(visible))
        if branch_id:
            q = q.filter(StockLot.branch_id == branch_id)
        if product_id:
            q = q.filter(StockLot.product_id == product_id)
        if available_only:
            q = q.filter(StockLot.remaining_quantity > 0)
        return q.order_by(
            StockLot.branch_id, StockLot.product_id, StockLot.lot_date.asc(), StockLot.seq.asc()
        ).all()

    @staticmethod
    def valuation(db: Session, ctx: UserContext, branch_id: Optional[UUID] = None) -> List[Dict]:
        """
        Cost value of stock on hand per (branch, product) = sum(remaining_quantity * unit_cost).

        Summed in Python so the products stay Decimal on every backend.
        """
        lots = InventoryService.list_lots(db, ctx, branch_id=branch_id, available_only=True)
        totals: Dict[Tuple[UUID, UUID], Dict] = {}
        for lot in lots:
            key = (lot.branch_id, lot.product_id)
            row = totals.setdefault(key, {
                "branch_id": lot.branch_id,
                "product_id": lot.product_id,
                "quantity": 0,
                "total_value": ZERO,
            })
            row["quantity"] += int(lot.remaining_quantity)
            row["total_value"] += to_decimal(lot.unit_cost) * int(lot.remaining_quantity)
        return list(totals.values())

    @staticmethod
    def reconcile(db: Session, branch_id: Optional[UUID] = None) -> List[Dict]:
        """
        Every (branch, product) whose balance differs from the sum of its lots'
        remaining quantity. Manual adjustments are the expected source of drift.
        """
        lot_q = db.query(
            StockLot.branch_id,
            StockLot.product_id,
            func.coalesce(func.sum(StockLot.remaining_quantity), 0).label("lot_quantity"),
        )
        bal_q = db.query(BranchProduct.branch_id, BranchProduct.product_id, BranchProduct.quantity)
        if branch_id:
            lot_q = lot_q.filter(StockLot.branch_id == branch_id)
            bal_q = bal_q.filter(BranchProduct.branch_id == branch_id)
        lot_totals = {
            (r.branch_id, r.product_id): int(r.lot_quantity)
            for r in lot_q.group_by(StockLot.branch_id, StockLot.product_id).all()
        }
        balances = {(r.branch_id, r.product_id): int(r.quantity) for r in bal_q.all()}

        mismatches = []
        for key in sorted(set(lot_totals) | set(balances), key=lambda k: (str(k[0]), str(k[1]))):
            balance = balances.get(key, 0)
            lots = lot_totals.get(key, 0)
            if balance != lots:
                mismatches.append({
                    "branch_id": key[0],
                    "product_id": key[1],
                    "balance_quantity": balance,
                    "lot_quantity": lots,
                    "difference": balance - lots,
                })
        if mismatches:
            logger.warning("Reconcile: %s balance/lot mismatches", len(mismatches))
        return mismatches


"""
FIFO consumption engine.

consume_fifo() is pure: it takes lot snapshots already ordered oldest-first and
a requested quantity, and returns the cost of the withdrawal plus the lot
decrements that realize it. It never touches the database.

FifoAllocator plans several withdrawals inside one document. It loads the
available lots for each (branch, product) once, under row lock, and keeps a
working copy of their remaining quantities so a product that appears on two
lines sees the first line's consumption. Nothing is written until the caller
applies the planned decrements, so a failure on a later line leaves no partial
state.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from branchstock.config import settings
from branchstock.exceptions import InsufficientStockError, ValidationError
from branchstock.utils.numeric import ZERO, quantize, to_decimal


@dataclass(frozen=True)
class LotSnapshot:
    """Read-only view of a lot as the engine sees it."""
    lot_id: UUID
    remaining_quantity: int
    unit_cost: Decimal
    lot_date: Optional[datetime] = None


@dataclass(frozen=True)
class LotDecrement:
    lot_id: UUID
    quantity: int
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class FifoResult:
    quantity: int
    total_cost: Decimal  # exact sum of lot-level products
    average_unit_cost: Decimal  # total_cost / quantity, rounded
    lot_decrements: Tuple[LotDecrement, ...] = field(default_factory=tuple)


def consume_fifo(
    lots: Iterable[LotSnapshot],
    requested_quantity: int,
    branch_id: Optional[UUID] = None,
    product_id: Optional[UUID] = None,
    unit_cost_places: Optional[int] = None,
) -> FifoResult:
    """
    Walk lots oldest-first and consume requested_quantity.

    Raises InsufficientStockError (with shortfall) when the lots cannot cover
    the request. No partial result is ever returned.
    """
    if requested_quantity is None or int(requested_quantity) <= 0:
        raise ValidationError("Withdrawal quantity must be greater than zero", field="quantity")
    requested_quantity = int(requested_quantity)
    places = settings.UNIT_COST_DECIMAL_PLACES if unit_cost_places is None else unit_cost_places

    ordered = [lot for lot in lots if lot.remaining_quantity > 0]
    available = sum(lot.remaining_quantity for lot in ordered)
    if available < requested_quantity:
        raise InsufficientStockError(branch_id, product_id, requested_quantity, available)

    remaining = requested_quantity
    total_cost = ZERO
    decrements: List[LotDecrement] = []
    for lot in ordered:
        if remaining == 0:
            break
        take = min(remaining, lot.remaining_quantity)
        unit_cost = to_decimal(lot.unit_cost)
        total_cost += unit_cost * take
        decrements.append(LotDecrement(lot_id=lot.lot_id, quantity=take, unit_cost=unit_cost))
        remaining -= take

    average = quantize(total_cost / requested_quantity, places)
    return FifoResult(
        quantity=requested_quantity,
        total_cost=total_cost,
        average_unit_cost=average,
        lot_decrements=tuple(decrements),
    )


class FifoAllocator:
    """Plans FIFO withdrawals for one document against a working copy of the lots."""

    def __init__(self, db: Optional[Session] = None, lock: bool = True):
        self.db = db
        self.lock = lock
        self._lots: Dict[Tuple[UUID, UUID], List[LotSnapshot]] = {}
        self._remaining: Dict[UUID, int] = {}

    def seed(self, branch_id: UUID, product_id: UUID, lots: Sequence[LotSnapshot]) -> None:
        """Provide lots directly (pure use, no session)."""
        key = (branch_id, product_id)
        self._lots[key] = list(lots)
        for lot in lots:
            self._remaining[lot.lot_id] = lot.remaining_quantity

    def _load(self, branch_id: UUID, product_id: UUID) -> List[LotSnapshot]:
        key = (branch_id, product_id)
        if key not in self._lots:
            if self.db is None:
                self._lots[key] = []
            else:
                from branchstock.services.stock_lot_service import StockLotService
                rows = StockLotService.list_available_lots(
                    self.db, branch_id, product_id, for_update=self.lock
                )
                self.seed(branch_id, product_id, [StockLotService.snapshot(r) for r in rows])
        return self._lots[key]

    def available(self, branch_id: UUID, product_id: UUID) -> int:
        return sum(self._remaining[lot.lot_id] for lot in self._load(branch_id, product_id))

    def plan(self, branch_id: UUID, product_id: UUID, quantity: int) -> FifoResult:
        """Consume from the working copy. Raises before changing it if stock is short."""
        working = [
            LotSnapshot(lot.lot_id, self._remaining[lot.lot_id], lot.unit_cost, lot.lot_date)
            for lot in self._load(branch_id, product_id)
        ]
        result = consume_fifo(working, quantity, branch_id=branch_id, product_id=product_id)
        for dec in result.lot_decrements:
            self._remaining[dec.lot_id] -= dec.quantity
        return result

"""
Balance/lot invariant check around a document effect.

Manual adjustments move the balance without touching lots, so a pair may
already carry drift (balance - lot total) before a purchase, sale or transfer
runs. A correct effect moves balance and lots by the same amount: the drift
after must equal the drift before. With no adjustments this is exactly
balance == sum(remaining_quantity).
"""
import logging
from typing import Dict, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from branchstock.exceptions import InventoryInvariantError
from branchstock.services.balance_service import BalanceService
from branchstock.services.stock_lot_service import StockLotService

logger = logging.getLogger(__name__)


class StockGuard:
    def __init__(self, db: Session):
        self.db = db
        self._before: Dict[Tuple[UUID, UUID], int] = {}

    def _drift(self, branch_id: UUID, product_id: UUID) -> Tuple[int, int, int]:
        balance = BalanceService.get_balance(self.db, branch_id, product_id).quantity
        lots = StockLotService.remaining_total(self.db, branch_id, product_id)
        return balance - lots, balance, lots

    def watch(self, branch_id: UUID, product_id: UUID) -> None:
        key = (branch_id, product_id)
        if key not in self._before:
            self._before[key] = self._drift(branch_id, product_id)[0]

    def verify(self) -> None:
        for (branch_id, product_id), before in self._before.items():
            after, balance, lots = self._drift(branch_id, product_id)
            if after != before:
                logger.error(
                    "Inventory invariant broken: branch=%s product=%s balance=%s lots=%s drift %s -> %s",
                    branch_id, product_id, balance, lots, before, after,
                )
                raise InventoryInvariantError(branch_id, product_id, balance, lots)

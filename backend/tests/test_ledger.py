"""
Lot store guards and the balance/lot invariant check.
"""
from decimal import Decimal

import pytest

from branchstock.exceptions import InsufficientLotQuantity, InventoryInvariantError, ValidationError
from branchstock.models import LotReference, StockLot
from branchstock.services.balance_service import BalanceService
from branchstock.services.stock_guard import StockGuard
from branchstock.services.stock_lot_service import StockLotService

from conftest import stock_in


def test_decrement_beyond_remaining(db, main_branch, product):
    lot = stock_in(db, main_branch, product, 4, "2")
    StockLotService.decrement_lot(db, lot.id, 3)

    with pytest.raises(InsufficientLotQuantity) as exc:
        StockLotService.decrement_lot(db, lot.id, 2)
    assert (exc.value.lot_id, exc.value.remaining, exc.value.requested) == (lot.id, 1, 2)
    assert exc.value.code == "INSUFFICIENT_LOT_QUANTITY"
    assert db.get(StockLot, lot.id).remaining_quantity == 1


def test_decrement_negative_amount(db, main_branch, product):
    lot = stock_in(db, main_branch, product, 4, "2")
    with pytest.raises(InsufficientLotQuantity):
        StockLotService.decrement_lot(db, lot.id, -1)
    assert lot.remaining_quantity == 4


@pytest.mark.parametrize("quantity,unit_cost,field", [(-1, "2", "quantity"), (3, "-0.01", "unit_cost")])
def test_create_lot_rejects_negatives(db, main_branch, product, quantity, unit_cost, field):
    with pytest.raises(ValidationError) as exc:
        StockLotService.create_lot(
            db, main_branch.id, product.id, quantity, Decimal(unit_cost), LotReference.PURCHASE.value
        )
    assert exc.value.field == field
    assert db.query(StockLot).count() == 0


def test_seq_counts_per_branch_and_product(db, main_branch, branch2, product, product2):
    a = stock_in(db, main_branch, product, 1, "1")
    b = stock_in(db, main_branch, product, 1, "1")
    c = stock_in(db, main_branch, product2, 1, "1")
    d = stock_in(db, branch2, product, 1, "1")
    assert [a.seq, b.seq, c.seq, d.seq] == [1, 2, 1, 1]


def test_guard_accepts_matching_moves(db, main_branch, product):
    stock_in(db, main_branch, product, 5, "1")
    guard = StockGuard(db)
    guard.watch(main_branch.id, product.id)
    stock_in(db, main_branch, product, 2, "1")
    guard.verify()


def test_guard_rejects_balance_only_move(db, main_branch, product):
    stock_in(db, main_branch, product, 5, "1")
    guard = StockGuard(db)
    guard.watch(main_branch.id, product.id)
    BalanceService.apply_delta(db, main_branch.id, product.id, 1)

    with pytest.raises(InventoryInvariantError) as exc:
        guard.verify()
    assert (exc.value.balance, exc.value.lot_total) == (6, 5)
    assert exc.value.code == "INVENTORY_INVARIANT_VIOLATION"


def test_guard_rejects_lot_only_move(db, main_branch, product):
    lot = stock_in(db, main_branch, product, 5, "1")
    guard = StockGuard(db)
    guard.watch(main_branch.id, product.id)
    StockLotService.decrement_lot(db, lot.id, 2)

    with pytest.raises(InventoryInvariantError):
        guard.verify()

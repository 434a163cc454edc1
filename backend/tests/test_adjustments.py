"""
Manual balance adjustments and the views built on balances and lots.
"""
from decimal import Decimal

import pytest

from branchstock.exceptions import NegativeStockError, ValidationError
from branchstock.models import Branch, BranchType, StockAdjustment, StockLot
from branchstock.schemas.purchase import PurchaseCreate, PurchaseItemCreate
from branchstock.services.balance_service import BalanceService
from branchstock.services.inventory_service import InventoryService
from branchstock.services.purchase_service import PurchaseService

from conftest import stock_in


def test_add_then_subtract(db, ctx, main_branch, product):
    first = InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "add", 5, reason="found in back room")
    assert (first.quantity_before, first.quantity_after) == (0, 5)

    second = InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "subtract", 2)
    assert (second.quantity_before, second.quantity_after) == (5, 3)
    assert BalanceService.get_balance(db, main_branch.id, product.id).quantity == 3
    # Lots are never touched by adjustments
    assert db.query(StockLot).count() == 0
    assert db.query(StockAdjustment).count() == 2


def test_set_to_current_is_noop(db, ctx, main_branch, product):
    stock_in(db, main_branch, product, 7, "1")
    adj = InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "set", 7)
    assert (adj.quantity_before, adj.quantity_after) == (7, 7)
    assert BalanceService.get_balance(db, main_branch.id, product.id).quantity == 7


def test_set_moves_to_target(db, ctx, main_branch, product):
    stock_in(db, main_branch, product, 7, "1")
    InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "set", 2)
    assert BalanceService.get_balance(db, main_branch.id, product.id).quantity == 2


def test_subtract_below_zero_rejected(db, ctx, main_branch, product):
    stock_in(db, main_branch, product, 3, "1")
    with pytest.raises(NegativeStockError) as exc:
        InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "subtract", 4)
    assert (exc.value.current, exc.value.delta) == (3, -4)
    assert BalanceService.get_balance(db, main_branch.id, product.id).quantity == 3
    assert db.query(StockAdjustment).count() == 0


def test_subtract_on_missing_row(db, ctx, main_branch, product):
    with pytest.raises(NegativeStockError):
        InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "subtract", 1)
    assert not BalanceService.get_balance(db, main_branch.id, product.id).exists


def test_unknown_type_rejected(db, ctx, main_branch, product):
    with pytest.raises(ValidationError):
        InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "multiply", 2)


def test_reconcile_reports_drift(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 10, "1")
    stock_in(db, branch2, product, 4, "1")
    assert InventoryService.reconcile(db) == []

    InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "subtract", 3)
    rows = InventoryService.reconcile(db)
    assert len(rows) == 1
    row = rows[0]
    assert row["branch_id"] == main_branch.id
    assert (row["balance_quantity"], row["lot_quantity"], row["difference"]) == (7, 10, -3)
    assert InventoryService.reconcile(db, branch_id=branch2.id) == []


def test_purchase_after_adjustment_not_blocked(db, ctx, main_branch, product):
    InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "add", 2)
    purchase = PurchaseService.create_purchase(db, ctx, PurchaseCreate(
        branch_id=main_branch.id,
        items=[PurchaseItemCreate(product_id=product.id, quantity=5, unit_cost=Decimal("3"))],
    ))
    PurchaseService.receive_purchase(db, ctx, purchase.id)

    assert BalanceService.get_balance(db, main_branch.id, product.id).quantity == 7
    assert [r["difference"] for r in InventoryService.reconcile(db)] == [2]


def test_low_stock_and_min_stock(db, ctx, main_branch, product, product2):
    stock_in(db, main_branch, product, 3, "1")
    stock_in(db, main_branch, product2, 50, "1")
    assert InventoryService.list_low_stock(db, ctx) == []

    InventoryService.set_min_stock(db, ctx, main_branch.id, product.id, 5)
    InventoryService.set_min_stock(db, ctx, main_branch.id, product2.id, 5)
    low = InventoryService.list_low_stock(db, ctx)
    assert [(bp.product_id, bp.quantity, bp.min_stock) for bp in low] == [(product.id, 3, 5)]


def test_valuation_uses_lot_costs(db, ctx, main_branch, product):
    stock_in(db, main_branch, product, 5, "10", minutes=0)
    stock_in(db, main_branch, product, 5, "20", minutes=1)
    rows = InventoryService.valuation(db, ctx)
    assert len(rows) == 1
    assert rows[0]["quantity"] == 10
    assert rows[0]["total_value"] == Decimal("150")


def test_set_delta_comes_from_locked_row(db, ctx, main_branch, product, monkeypatch):
    stock_in(db, main_branch, product, 10, "1")
    # An unlocked read that has gone stale must not feed the delta
    stale = BalanceService.get_balance(db, main_branch.id, product.id)
    BalanceService.apply_delta(db, main_branch.id, product.id, -3)
    monkeypatch.setattr(BalanceService, "get_balance", staticmethod(lambda *args, **kwargs: stale))

    adj = InventoryService.adjust_stock(db, ctx, main_branch.id, product.id, "set", 10)
    assert (adj.quantity_before, adj.quantity_after) == (7, 10)
    assert BalanceService.lock_row(db, main_branch.id, product.id).quantity == 10


def test_reconcile_script_branch_lookup_ignores_case(db):
    from scripts.reconcile_balances import find_branch

    branch = Branch(code="north-1", name="North Kiosk", type=BranchType.BRANCH.value)
    db.add(branch)
    db.flush()
    assert find_branch(db, "NORTH-1") is branch
    assert find_branch(db, "north-1") is branch
    assert find_branch(db, "south-1") is None

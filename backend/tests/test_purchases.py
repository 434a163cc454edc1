"""
Purchase lifecycle: PENDING -> RECEIVED | CANCELLED.
"""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from branchstock.exceptions import BranchAccessDenied, InvalidStateTransition, NotFoundError
from branchstock.models import LotReference, PurchaseStatus, StockLot
from branchstock.schemas.purchase import PurchaseCreate, PurchaseItemCreate
from branchstock.services.balance_service import BalanceService
from branchstock.services.fifo_service import FifoAllocator
from branchstock.services.purchase_service import PurchaseService
from branchstock.services.stock_lot_service import StockLotService

from conftest import assert_in_sync, make_staff_ctx


def _purchase(db, ctx, branch, *lines, purchase_date=None):
    return PurchaseService.create_purchase(db, ctx, PurchaseCreate(
        branch_id=branch.id,
        supplier_name="Acme Wholesale",
        purchase_date=purchase_date or date(2026, 1, 10),
        items=[PurchaseItemCreate(product_id=p.id, quantity=q, unit_cost=Decimal(c)) for p, q, c in lines],
    ))


def test_create_has_no_stock_effect(db, ctx, main_branch, product):
    purchase = _purchase(db, ctx, main_branch, (product, 20, "5"))

    assert purchase.status == PurchaseStatus.PENDING.value
    assert purchase.doc_no == "PO-MAIN-202601-001"
    assert purchase.total_amount == Decimal("100")
    assert db.query(StockLot).count() == 0
    assert not BalanceService.get_balance(db, main_branch.id, product.id).exists


def test_receive_creates_lot_and_balance(db, ctx, main_branch, product):
    purchase = _purchase(db, ctx, main_branch, (product, 20, "5"))
    PurchaseService.receive_purchase(db, ctx, purchase.id)

    assert purchase.status == PurchaseStatus.RECEIVED.value
    assert purchase.received_at is not None
    lots = db.query(StockLot).all()
    assert len(lots) == 1
    lot = lots[0]
    assert (lot.quantity, lot.remaining_quantity) == (20, 20)
    assert lot.unit_cost == Decimal("5")
    assert lot.reference_doc_type == LotReference.PURCHASE.value
    assert lot.reference_doc_id == purchase.id
    assert assert_in_sync(db, main_branch, product) == 20


def test_one_lot_per_line(db, ctx, main_branch, product, product2):
    purchase = _purchase(db, ctx, main_branch, (product, 3, "2"), (product2, 4, "1.5"), (product, 2, "2.5"))
    PurchaseService.receive_purchase(db, ctx, purchase.id)

    assert [it.line_no for it in purchase.items] == [1, 2, 3]
    assert db.query(StockLot).count() == 3
    assert assert_in_sync(db, main_branch, product) == 5
    assert assert_in_sync(db, main_branch, product2) == 4


def test_lines_of_one_product_consumed_in_line_order(db, ctx, main_branch, product):
    purchase = _purchase(db, ctx, main_branch, (product, 4, "9"), (product, 4, "3"))
    PurchaseService.receive_purchase(db, ctx, purchase.id)

    lots = StockLotService.list_available_lots(db, main_branch.id, product.id)
    assert [(lot.seq, lot.unit_cost) for lot in lots] == [(1, Decimal("9")), (2, Decimal("3"))]
    assert FifoAllocator(db).plan(main_branch.id, product.id, 4).total_cost == Decimal("36")


def test_receive_twice_rejected(db, ctx, main_branch, product):
    purchase = _purchase(db, ctx, main_branch, (product, 20, "5"))
    PurchaseService.receive_purchase(db, ctx, purchase.id)

    with pytest.raises(InvalidStateTransition) as exc:
        PurchaseService.receive_purchase(db, ctx, purchase.id)
    assert exc.value.current_status == PurchaseStatus.RECEIVED.value
    assert db.query(StockLot).count() == 1
    assert BalanceService.get_balance(db, main_branch.id, product.id).quantity == 20


def test_cancel_pending(db, ctx, main_branch, product):
    purchase = _purchase(db, ctx, main_branch, (product, 1, "1"))
    PurchaseService.cancel_purchase(db, ctx, purchase.id)
    assert purchase.status == PurchaseStatus.CANCELLED.value

    with pytest.raises(InvalidStateTransition):
        PurchaseService.receive_purchase(db, ctx, purchase.id)


def test_cancel_received_rejected(db, ctx, main_branch, product):
    purchase = _purchase(db, ctx, main_branch, (product, 1, "1"))
    PurchaseService.receive_purchase(db, ctx, purchase.id)
    with pytest.raises(InvalidStateTransition):
        PurchaseService.cancel_purchase(db, ctx, purchase.id)


def test_unknown_product(db, ctx, main_branch):
    ghost = SimpleNamespace(id=uuid4())
    with pytest.raises(NotFoundError):
        _purchase(db, ctx, main_branch, (ghost, 1, "1"))


def test_staff_limited_to_own_branch(db, main_branch, branch2, product):
    staff = make_staff_ctx(db, branch2)
    with pytest.raises(BranchAccessDenied):
        _purchase(db, staff, main_branch, (product, 1, "1"))
    purchase = _purchase(db, staff, branch2, (product, 1, "1"))
    assert purchase.created_by == staff.user_id
    assert [p.id for p in PurchaseService.list_purchases(db, staff)] == [purchase.id]

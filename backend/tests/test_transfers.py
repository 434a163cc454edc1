"""
Transfers: PENDING -> IN_TRANSIT (approve) -> RECEIVED, with either cost basis at receive.
"""
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from branchstock.config import TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT, TRANSFER_COST_BASIS_SOURCE_FIFO
from branchstock.exceptions import (
    BranchAccessDenied,
    InsufficientStockError,
    InvalidStateTransition,
    ValidationError,
)
from branchstock.models import LotReference, StockLot, TransferStatus
from branchstock.schemas.transfer import TransferCreate, TransferItemCreate
from branchstock.services.inventory_service import InventoryService
from branchstock.services.fifo_service import FifoAllocator
from branchstock.services.stock_lot_service import StockLotService
from branchstock.services.transfer_service import TransferService

from conftest import assert_in_sync, make_staff_ctx, stock_in


def _transfer(db, ctx, src, dst, *lines):
    return TransferService.create_transfer(db, ctx, TransferCreate(
        from_branch_id=src.id,
        to_branch_id=dst.id,
        transfer_date=date(2026, 2, 3),
        items=[TransferItemCreate(product_id=p.id, quantity=q) for p, q in lines],
    ))


def _dest_lots(db, branch, product):
    return (
        db.query(StockLot)
        .filter(StockLot.branch_id == branch.id, StockLot.product_id == product.id)
        .order_by(StockLot.unit_cost)
        .all()
    )


@pytest.mark.parametrize("basis", [TRANSFER_COST_BASIS_SOURCE_FIFO, TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT])
def test_round_trip(db, ctx, main_branch, branch2, product, basis):
    stock_in(db, main_branch, product, 10, "7")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 4))
    assert transfer.status == TransferStatus.PENDING.value
    assert transfer.doc_no == "TR-MAIN-BR2-202602-001"

    TransferService.approve_transfer(db, ctx, transfer.id)
    assert transfer.status == TransferStatus.IN_TRANSIT.value
    assert assert_in_sync(db, main_branch, product) == 6
    item = transfer.items[0]
    assert item.total_cost == Decimal("28")
    assert item.unit_cost == Decimal("7.0000")
    assert [(a.sequence, a.quantity) for a in item.allocations] == [(1, 4)]

    TransferService.receive_transfer(db, ctx, transfer.id, cost_basis=basis)
    assert transfer.status == TransferStatus.RECEIVED.value
    assert transfer.received_at is not None
    assert assert_in_sync(db, branch2, product) == 4
    lots = _dest_lots(db, branch2, product)
    assert [(lot.quantity, lot.unit_cost) for lot in lots] == [(4, Decimal("7"))]
    assert lots[0].reference_doc_type == LotReference.TRANSFER.value
    assert lots[0].reference_doc_id == transfer.id
    assert assert_in_sync(db, main_branch, product) == 6


def _split_transfer(db, ctx, main_branch, branch2, product):
    """Approve 4 units across two source lots: 3@5 then 1@7."""
    stock_in(db, main_branch, product, 3, "5", minutes=0)
    stock_in(db, main_branch, product, 10, "7", minutes=1)
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 4))
    TransferService.approve_transfer(db, ctx, transfer.id)
    return transfer


def test_approve_allocations_follow_fifo(db, ctx, main_branch, branch2, product):
    transfer = _split_transfer(db, ctx, main_branch, branch2, product)
    item = transfer.items[0]
    assert [(a.sequence, a.quantity, a.unit_cost) for a in item.allocations] == [
        (1, 3, Decimal("5")),
        (2, 1, Decimal("7")),
    ]
    assert item.total_cost == Decimal("22")
    assert item.unit_cost == Decimal("5.5000")


def test_receive_approval_snapshot_copies_pieces(db, ctx, main_branch, branch2, product):
    transfer = _split_transfer(db, ctx, main_branch, branch2, product)
    TransferService.receive_transfer(db, ctx, transfer.id, cost_basis=TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT)

    lots = _dest_lots(db, branch2, product)
    assert [(lot.quantity, lot.unit_cost) for lot in lots] == [(3, Decimal("5")), (1, Decimal("7"))]
    assert assert_in_sync(db, branch2, product) == 4


def test_receive_source_fifo_rewalks_source(db, ctx, main_branch, branch2, product):
    transfer = _split_transfer(db, ctx, main_branch, branch2, product)
    TransferService.receive_transfer(db, ctx, transfer.id, cost_basis=TRANSFER_COST_BASIS_SOURCE_FIFO)

    # The 5-cost lot was used up at approve; the source now starts at 7
    lots = _dest_lots(db, branch2, product)
    assert [(lot.quantity, lot.unit_cost) for lot in lots] == [(4, Decimal("7"))]
    # Read-only walk: source lots untouched by receive
    assert assert_in_sync(db, main_branch, product) == 9


def test_receive_source_fifo_falls_back_when_source_empty(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 4, "6")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 4))
    TransferService.approve_transfer(db, ctx, transfer.id)

    TransferService.receive_transfer(db, ctx, transfer.id, cost_basis=TRANSFER_COST_BASIS_SOURCE_FIFO)
    lots = _dest_lots(db, branch2, product)
    assert [(lot.quantity, lot.unit_cost) for lot in lots] == [(4, Decimal("6"))]
    assert assert_in_sync(db, branch2, product) == 4


def test_approve_insufficient(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 3, "1")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 4))

    with pytest.raises(InsufficientStockError) as exc:
        TransferService.approve_transfer(db, ctx, transfer.id)
    assert exc.value.shortfall == 1
    assert transfer.status == TransferStatus.PENDING.value
    assert assert_in_sync(db, main_branch, product) == 3


def test_approve_checks_summed_lines(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 5, "1")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 3), (product, 3))
    with pytest.raises(InsufficientStockError) as exc:
        TransferService.approve_transfer(db, ctx, transfer.id)
    assert (exc.value.requested, exc.value.available) == (6, 5)


def test_same_branch_rejected(db, ctx, main_branch, product):
    with pytest.raises(SchemaValidationError):
        TransferCreate(
            from_branch_id=main_branch.id,
            to_branch_id=main_branch.id,
            items=[TransferItemCreate(product_id=product.id, quantity=1)],
        )


def test_receive_requires_in_transit(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 5, "1")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 1))
    with pytest.raises(InvalidStateTransition):
        TransferService.receive_transfer(db, ctx, transfer.id)

    TransferService.approve_transfer(db, ctx, transfer.id)
    with pytest.raises(InvalidStateTransition):
        TransferService.approve_transfer(db, ctx, transfer.id)

    TransferService.receive_transfer(db, ctx, transfer.id)
    with pytest.raises(InvalidStateTransition):
        TransferService.receive_transfer(db, ctx, transfer.id)
    assert assert_in_sync(db, branch2, product) == 1


def test_unknown_cost_basis(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 5, "1")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 1))
    TransferService.approve_transfer(db, ctx, transfer.id)
    with pytest.raises(ValidationError):
        TransferService.receive_transfer(db, ctx, transfer.id, cost_basis="average")


def test_cancel_in_transit_does_not_restock(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 5, "1")
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 2))
    TransferService.approve_transfer(db, ctx, transfer.id)

    TransferService.cancel_transfer(db, ctx, transfer.id)
    assert transfer.status == TransferStatus.CANCELLED.value
    assert assert_in_sync(db, main_branch, product) == 3
    with pytest.raises(InvalidStateTransition):
        TransferService.receive_transfer(db, ctx, transfer.id)
    with pytest.raises(InvalidStateTransition):
        TransferService.cancel_transfer(db, ctx, transfer.id)


def test_branch_roles(db, main_branch, branch2, product):
    stock_in(db, main_branch, product, 5, "1")
    source_staff = make_staff_ctx(db, main_branch)
    dest_staff = make_staff_ctx(db, branch2)

    transfer = _transfer(db, dest_staff, main_branch, branch2, (product, 2))
    with pytest.raises(BranchAccessDenied):
        TransferService.approve_transfer(db, dest_staff, transfer.id)
    TransferService.approve_transfer(db, source_staff, transfer.id)
    with pytest.raises(BranchAccessDenied):
        TransferService.receive_transfer(db, source_staff, transfer.id)
    TransferService.receive_transfer(db, dest_staff, transfer.id)
    assert transfer.approved_by == source_staff.user_id
    assert transfer.received_by == dest_staff.user_id


def test_receive_after_adjustment_drift(db, ctx, main_branch, branch2, product):
    """Adjustment drift at the destination survives a transfer unchanged."""
    stock_in(db, main_branch, product, 5, "1")
    InventoryService.adjust_stock(db, ctx, branch2.id, product.id, "add", 2)
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 3))
    TransferService.approve_transfer(db, ctx, transfer.id)
    TransferService.receive_transfer(db, ctx, transfer.id)

    rows = InventoryService.reconcile(db, branch_id=branch2.id)
    assert [(r["balance_quantity"], r["lot_quantity"], r["difference"]) for r in rows] == [(5, 3, 2)]


@pytest.mark.parametrize("basis", [TRANSFER_COST_BASIS_SOURCE_FIFO, TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT])
def test_destination_consumes_older_piece_first(db, ctx, main_branch, branch2, product, basis):
    stock_in(db, main_branch, product, 5, "10", minutes=0)
    stock_in(db, main_branch, product, 5, "20", minutes=1)
    transfer = _transfer(db, ctx, main_branch, branch2, (product, 10))
    TransferService.approve_transfer(db, ctx, transfer.id)
    TransferService.receive_transfer(db, ctx, transfer.id, cost_basis=basis)

    # Both destination lots share the receive time; creation order decides
    for _ in range(5):
        result = FifoAllocator(db, lock=False).plan(branch2.id, product.id, 5)
        assert result.total_cost == Decimal("50")
        assert [d.unit_cost for d in result.lot_decrements] == [Decimal("10")]
    lots = StockLotService.list_available_lots(db, branch2.id, product.id)
    assert [(lot.seq, lot.unit_cost) for lot in lots] == [(1, Decimal("10")), (2, Decimal("20"))]

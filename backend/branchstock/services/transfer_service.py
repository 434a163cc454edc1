"""
Transfer processor: create, approve (withdraw at source), receive (stock in at destination), cancel.

Approve runs FIFO per line against the source branch, decrements the lots, takes
the quantity off the source balance and records the consumed lot/cost pairs in
transfer_lot_allocations.

Receive creates lots at the destination. Their cost comes from one of two bases
(TRANSFER_COST_BASIS, overridable per call):

    source_fifo        re-walk the source branch's remaining lots oldest-first,
                       read only. Quantity the source can no longer cover takes
                       the approve-time costs in allocation order.
    approval_snapshot  copy the approve-time lot/cost pairs exactly.

One destination lot is created per cost piece, so a line sourced from a single
lot yields a single lot.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from branchstock.config import (
    settings,
    TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT,
    TRANSFER_COST_BASIS_SOURCE_FIFO,
)
from branchstock.context import UserContext
from branchstock.exceptions import (
    InsufficientStockError,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from branchstock.models import (
    LotReference,
    Transfer,
    TransferItem,
    TransferLotAllocation,
    TransferStatus,
)
from branchstock.schemas.transfer import TransferCreate
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
from branchstock.utils.numeric import to_decimal

logger = logging.getLogger(__name__)

CostPiece = Tuple[int, Decimal]  # (quantity, unit_cost)


class TransferService:

    @staticmethod
    def get_transfer(db: Session, transfer_id: UUID, for_update: bool = False) -> Transfer:
        q = db.query(Transfer).filter(Transfer.id == transfer_id)
        if for_update:
            q = q.with_for_update()
        transfer = q.first()
        if not transfer:
            raise NotFoundError("Transfer", transfer_id)
        return transfer

    @staticmethod
    def list_transfers(
        db: Session,
        ctx: UserContext,
        branch_id: Optional[UUID] = None,
        status: Optional[str] = None,
    ) -> List[Transfer]:
        """Transfers touching branch_id on either side."""
        q = db.query(Transfer).options(selectinload(Transfer.items))
        visible = ctx.visible_branches()
        if visible is not None:
            q = q.filter(Transfer.from_branch_id.in_(visible) | Transfer.to_branch_id.in_(visible))
        if branch_id:
            q = q.filter((Transfer.from_branch_id == branch_id) | (Transfer.to_branch_id == branch_id))
        if status:
            q = q.filter(Transfer.status == status)
        return q.order_by(Transfer.transfer_date.desc(), Transfer.doc_no.desc()).all()

    @staticmethod
    def create_transfer(db: Session, ctx: UserContext, data: TransferCreate) -> Transfer:
        """Create a PENDING transfer. Either branch may raise it."""
        if data.from_branch_id == data.to_branch_id:
            raise ValidationError("Source and destination branch must differ", field="to_branch_id")
        ctx.ensure_any_branch(data.from_branch_id, data.to_branch_id)
        require_branch(db, data.from_branch_id)
        require_branch(db, data.to_branch_id)
        validate_lines(data.items)
        require_products(db, (it.product_id for it in data.items))

        transfer_date = data.transfer_date or date.today()
        transfer = Transfer(
            doc_no=DocumentService.get_transfer_number(db, data.from_branch_id, data.to_branch_id, transfer_date),
            from_branch_id=data.from_branch_id,
            to_branch_id=data.to_branch_id,
            transfer_date=transfer_date,
            status=TransferStatus.PENDING.value,
            notes=data.notes,
            created_by=ctx.user_id,
        )
        for line_no, it in enumerate(data.items, start=1):
            transfer.items.append(TransferItem(line_no=line_no, product_id=it.product_id, quantity=it.quantity))
        db.add(transfer)
        db.flush()
        logger.info("Transfer %s created: %s lines", transfer.doc_no, len(transfer.items))
        return transfer

    @staticmethod
    def approve_transfer(db: Session, ctx: UserContext, transfer_id: UUID) -> Transfer:
        """
        PENDING -> IN_TRANSIT. Withdraw every line from the source branch.

        The source balance is checked per product (summed over lines) before
        anything is planned or written.
        """
        transfer = TransferService.get_transfer(db, transfer_id, for_update=True)
        ctx.ensure_branch(transfer.from_branch_id)
        if transfer.status != TransferStatus.PENDING.value:
            raise InvalidStateTransition("transfer", transfer.doc_no, transfer.status, "approve")

        source = transfer.from_branch_id
        guard = StockGuard(db)
        for product_id, qty in quantity_by_product(transfer.items).items():
            guard.watch(source, product_id)
            balance = BalanceService.get_balance(db, source, product_id)
            if balance.quantity < qty:
                logger.warning(
                    "Transfer %s approval rejected: balance %s < requested %s (product=%s)",
                    transfer.doc_no, balance.quantity, qty, product_id,
                )
                raise InsufficientStockError(source, product_id, qty, balance.quantity)

        allocator = FifoAllocator(db)
        plans = []
        for it in transfer.items:
            try:
                plans.append(allocator.plan(source, it.product_id, it.quantity))
            except InsufficientStockError as e:
                logger.warning("Transfer %s approval rejected at line %s: %s", transfer.doc_no, it.line_no, e.message)
                raise

        for it, plan in zip(transfer.items, plans):
            for seq, dec in enumerate(plan.lot_decrements, start=1):
                StockLotService.decrement_lot(db, dec.lot_id, dec.quantity)
                it.allocations.append(TransferLotAllocation(
                    lot_id=dec.lot_id,
                    sequence=seq,
                    quantity=dec.quantity,
                    unit_cost=dec.unit_cost,
                ))
            it.unit_cost = plan.average_unit_cost
            it.total_cost = plan.total_cost
            BalanceService.apply_delta(db, source, it.product_id, -it.quantity)

        guard.verify()
        transfer.status = TransferStatus.IN_TRANSIT.value
        transfer.approved_by = ctx.user_id
        transfer.approved_at = datetime.now(timezone.utc)
        db.flush()
        logger.info("Transfer %s approved: %s lines withdrawn from branch %s", transfer.doc_no, len(plans), source)
        return transfer

    @staticmethod
    def _snapshot_pieces(item: TransferItem, quantity: int) -> List[CostPiece]:
        """First `quantity` units of the approve-time allocation, in sequence order."""
        pieces: List[CostPiece] = []
        left = quantity
        for alloc in item.allocations:
            if left == 0:
                break
            take = min(left, alloc.quantity)
            pieces.append((take, to_decimal(alloc.unit_cost)))
            left -= take
        if left > 0:
            # Approve always records allocations covering the line; reaching here means they were lost
            raise ValidationError(
                f"Transfer line {item.line_no} has no approve-time cost for {left} units", field="allocations"
            )
        return pieces

    @staticmethod
    def _cost_pieces(
        transfer: Transfer,
        cost_basis: str,
        source_walk: Optional[FifoAllocator],
    ) -> List[List[CostPiece]]:
        pieces_per_line = []
        for it in transfer.items:
            if cost_basis == TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT:
                pieces_per_line.append(TransferService._snapshot_pieces(it, it.quantity))
                continue
            covered = min(it.quantity, source_walk.available(transfer.from_branch_id, it.product_id))
            pieces: List[CostPiece] = []
            if covered > 0:
                walk = source_walk.plan(transfer.from_branch_id, it.product_id, covered)
                pieces.extend((d.quantity, d.unit_cost) for d in walk.lot_decrements)
            if covered < it.quantity:
                logger.info(
                    "Transfer %s line %s: source lots cover %s of %s, rest at approve-time cost",
                    transfer.doc_no, it.line_no, covered, it.quantity,
                )
                pieces.extend(TransferService._snapshot_pieces(it, it.quantity - covered))
            pieces_per_line.append(pieces)
        return pieces_per_line

    @staticmethod
    def receive_transfer(
        db: Session,
        ctx: UserContext,
        transfer_id: UUID,
        cost_basis: Optional[str] = None,
    ) -> Transfer:
        """IN_TRANSIT -> RECEIVED. Create destination lots and add the quantity to the destination balance."""
        transfer = TransferService.get_transfer(db, transfer_id, for_update=True)
        ctx.ensure_branch(transfer.to_branch_id)
        if transfer.status != TransferStatus.IN_TRANSIT.value:
            raise InvalidStateTransition("transfer", transfer.doc_no, transfer.status, "receive")

        basis = (cost_basis or settings.TRANSFER_COST_BASIS).strip().lower()
        if basis not in (TRANSFER_COST_BASIS_SOURCE_FIFO, TRANSFER_COST_BASIS_APPROVAL_SNAPSHOT):
            raise ValidationError(f"Unknown transfer cost basis {cost_basis!r}", field="cost_basis")

        # Read-only pass over the source: the working copy is never applied
        source_walk = FifoAllocator(db, lock=False) if basis == TRANSFER_COST_BASIS_SOURCE_FIFO else None
        pieces_per_line = TransferService._cost_pieces(transfer, basis, source_walk)

        dest = transfer.to_branch_id
        guard = StockGuard(db)
        for it in transfer.items:
            guard.watch(dest, it.product_id)

        received_at = datetime.now(timezone.utc)
        lots_created = 0
        for it, pieces in zip(transfer.items, pieces_per_line):
            for qty, unit_cost in pieces:
                StockLotService.create_lot(
                    db,
                    branch_id=dest,
                    product_id=it.product_id,
                    quantity=qty,
                    unit_cost=unit_cost,
                    reference_doc_type=LotReference.TRANSFER.value,
                    reference_doc_id=transfer.id,
                    lot_date=received_at,
                )
                lots_created += 1
            BalanceService.apply_delta(db, dest, it.product_id, it.quantity)

        guard.verify()
        transfer.status = TransferStatus.RECEIVED.value
        transfer.received_by = ctx.user_id
        transfer.received_at = received_at
        db.flush()
        logger.info(
            "Transfer %s received at branch %s: %s lots created (cost basis %s)",
            transfer.doc_no, dest, lots_created, basis,
        )
        return transfer

    @staticmethod
    def cancel_transfer(db: Session, ctx: UserContext, transfer_id: UUID) -> Transfer:
        """PENDING or IN_TRANSIT -> CANCELLED. An approved transfer is not restocked at the source."""
        transfer = TransferService.get_transfer(db, transfer_id, for_update=True)
        ctx.ensure_any_branch(transfer.from_branch_id, transfer.to_branch_id)
        if transfer.status not in (TransferStatus.PENDING.value, TransferStatus.IN_TRANSIT.value):
            raise InvalidStateTransition("transfer", transfer.doc_no, transfer.status, "cancel")
        was = transfer.status
        transfer.status = TransferStatus.CANCELLED.value
        db.flush()
        logger.info("Transfer %s cancelled from %s (no restock)", transfer.doc_no, was)
        return transfer

"""
Stock lots - source of truth for cost and FIFO order
BranchProduct - denormalized on-hand quantity per (branch, product)
StockAdjustment - audit trail for manual balance adjustments
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, CheckConstraint, UniqueConstraint, Index, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LotReference(str, enum.Enum):
    PURCHASE = "PURCHASE"
    TRANSFER = "TRANSFER"


class AdjustmentType(str, enum.Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


class StockLot(Base):
    """
    A batch of stock received at one unit cost.

    Lots are never deleted. Only remaining_quantity changes after creation,
    and only through FIFO consumption. A depleted lot stays as history.
    """
    __tablename__ = "stock_lots"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)  # Original quantity received
    remaining_quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(20, 4), nullable=False)
    lot_date = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)  # FIFO key
    seq = Column(Integer, nullable=False)  # Insertion order within (branch, product); FIFO tie-break
    reference_doc_type = Column(String(20), nullable=False)  # PURCHASE, TRANSFER
    reference_doc_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="stock_lot_quantity_non_negative"),
        CheckConstraint(
            "remaining_quantity >= 0 AND remaining_quantity <= quantity",
            name="stock_lot_remaining_within_quantity",
        ),
        CheckConstraint("unit_cost >= 0", name="stock_lot_unit_cost_non_negative"),
        UniqueConstraint("branch_id", "product_id", "seq", name="uq_stock_lot_seq"),
        Index("idx_stock_lots_fifo", "branch_id", "product_id", "lot_date", "seq"),
    )

    branch = relationship("Branch")
    product = relationship("Product")


class BranchProduct(Base):
    """Current stock per (branch_id, product_id). Must equal the sum of its lots' remaining quantity."""
    __tablename__ = "branch_products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)  # Reorder threshold; 0 disables low-stock alert
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("branch_id", "product_id", name="uq_branch_product"),
        CheckConstraint("quantity >= 0", name="branch_product_quantity_non_negative"),
    )

    branch = relationship("Branch")
    product = relationship("Product")


class StockAdjustment(Base):
    """
    Audit record for a manual balance adjustment.
    adjustment_type: add | subtract | set. Lots are not touched.
    """
    __tablename__ = "stock_adjustments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    adjustment_type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    performed_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

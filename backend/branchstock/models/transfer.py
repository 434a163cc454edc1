"""
Transfer models - stock moved between two branches.
Approve withdraws FIFO at the source; receive creates lots at the destination.
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Numeric, Date, ForeignKey, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


class TransferStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class Transfer(Base):
    """Transfer header. Cancelling after IN_TRANSIT does not restock the source."""
    __tablename__ = "transfers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doc_no = Column(String(100), nullable=False, unique=True)  # TR-{FROM}-{TO}-{YYYYMM}-{NNN}
    from_branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    to_branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    transfer_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=TransferStatus.PENDING.value)
    notes = Column(Text)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    approved_by = Column(UUID(as_uuid=True), nullable=True)
    approved_at = Column(TIMESTAMP(timezone=True), nullable=True)
    received_by = Column(UUID(as_uuid=True), nullable=True)
    received_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("from_branch_id <> to_branch_id", name="transfer_distinct_branches"),
    )

    from_branch = relationship("Branch", foreign_keys=[from_branch_id])
    to_branch = relationship("Branch", foreign_keys=[to_branch_id])
    items = relationship(
        "TransferItem", back_populates="transfer",
        cascade="all, delete-orphan", order_by="TransferItem.line_no",
    )


class TransferItem(Base):
    """Transfer line: quantity only, cost comes from the source lots."""
    __tablename__ = "transfer_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transfer_id = Column(UUID(as_uuid=True), ForeignKey("transfers.id", ondelete="CASCADE"), nullable=False)
    line_no = Column(Integer, nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(20, 4), nullable=True)  # Weighted average at approve
    total_cost = Column(Numeric(20, 4), nullable=True)

    transfer = relationship("Transfer", back_populates="items")
    product = relationship("Product")
    allocations = relationship(
        "TransferLotAllocation", back_populates="transfer_item",
        cascade="all, delete-orphan", order_by="TransferLotAllocation.sequence",
    )


class TransferLotAllocation(Base):
    """Lot/cost pair consumed from the source at approve time, in FIFO order."""
    __tablename__ = "transfer_lot_allocations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transfer_item_id = Column(UUID(as_uuid=True), ForeignKey("transfer_items.id", ondelete="CASCADE"), nullable=False)
    lot_id = Column(UUID(as_uuid=True), ForeignKey("stock_lots.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(20, 4), nullable=False)

    transfer_item = relationship("TransferItem", back_populates="allocations")

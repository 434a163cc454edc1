"""
Purchase models - stock bought from a supplier into one branch
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Numeric, Date, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


class PurchaseStatus(str, enum.Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class Purchase(Base):
    """Purchase header. Stock only moves on receive (one lot per line)."""
    __tablename__ = "purchases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doc_no = Column(String(100), nullable=False, unique=True)  # PO-{BRANCH}-{YYYYMM}-{NNN}
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    supplier_name = Column(String(255))
    purchase_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=PurchaseStatus.PENDING.value)
    total_amount = Column(Numeric(20, 4), nullable=False, default=0)
    notes = Column(Text)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    received_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    branch = relationship("Branch")
    items = relationship(
        "PurchaseItem", back_populates="purchase",
        cascade="all, delete-orphan", order_by="PurchaseItem.line_no",
    )


class PurchaseItem(Base):
    __tablename__ = "purchase_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    purchase_id = Column(UUID(as_uuid=True), ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False)
    line_no = Column(Integer, nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(20, 4), nullable=False)
    total_cost = Column(Numeric(20, 4), nullable=False)  # quantity * unit_cost

    purchase = relationship("Purchase", back_populates="items")
    product = relationship("Product")

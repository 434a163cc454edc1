"""
Sale and Quotation models
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Numeric, Date, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


class SaleStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class QuotationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Sale(Base):
    """
    Sale header

    Sales take effect at creation: stock is withdrawn FIFO and the sale is
    COMPLETED. Cancelling is a bookkeeping flag and does not restock.
    """
    __tablename__ = "sales"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doc_no = Column(String(100), nullable=False, unique=True)  # INV-{BRANCH}-{YYYYMM}-{NNN}
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    customer_name = Column(String(255))
    sale_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=SaleStatus.COMPLETED.value)
    subtotal = Column(Numeric(20, 4), nullable=False, default=0)
    discount_amount = Column(Numeric(20, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(20, 4), nullable=False, default=0)
    total_amount = Column(Numeric(20, 4), nullable=False, default=0)  # subtotal - discount + tax
    quotation_id = Column(UUID(as_uuid=True), ForeignKey("quotations.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    cancelled_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    branch = relationship("Branch")
    items = relationship(
        "SaleItem", back_populates="sale",
        cascade="all, delete-orphan", order_by="SaleItem.line_no",
    )


class SaleItem(Base):
    """Sale line; unit_cost/total_cost are filled from the FIFO withdrawal at creation."""
    __tablename__ = "sale_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    line_no = Column(Integer, nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(20, 4), nullable=False)
    total_price = Column(Numeric(20, 4), nullable=False)  # quantity * unit_price
    unit_cost = Column(Numeric(20, 4), nullable=False)  # FIFO weighted average, rounded
    total_cost = Column(Numeric(20, 4), nullable=False)  # Exact sum of lot-level cost

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


class Quotation(Base):
    """Quotation - no stock effect until converted to a sale."""
    __tablename__ = "quotations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doc_no = Column(String(100), nullable=False, unique=True)  # QT-{BRANCH}-{YYYYMM}-{NNN}
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False)
    customer_name = Column(String(255))
    quotation_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=QuotationStatus.DRAFT.value)
    subtotal = Column(Numeric(20, 4), nullable=False, default=0)
    discount_amount = Column(Numeric(20, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(20, 4), nullable=False, default=0)
    total_amount = Column(Numeric(20, 4), nullable=False, default=0)
    converted_sale_id = Column(UUID(as_uuid=True), nullable=True)
    notes = Column(Text)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    branch = relationship("Branch")
    items = relationship(
        "QuotationItem", back_populates="quotation",
        cascade="all, delete-orphan", order_by="QuotationItem.line_no",
    )


class QuotationItem(Base):
    __tablename__ = "quotation_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quotation_id = Column(UUID(as_uuid=True), ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False)
    line_no = Column(Integer, nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(20, 4), nullable=False)
    total_price = Column(Numeric(20, 4), nullable=False)

    quotation = relationship("Quotation", back_populates="items")
    product = relationship("Product")

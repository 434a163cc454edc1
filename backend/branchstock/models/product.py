"""
Product and ProductType models
"""
import uuid

from sqlalchemy import Column, String, Boolean, Numeric, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


class ProductType(Base):
    """Product category"""
    __tablename__ = "product_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    name_en = Column(String(255))
    description = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    products = relationship("Product", back_populates="product_type")


class Product(Base):
    """Product (SKU) model"""
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sku = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    name_en = Column(String(255))
    description = Column(Text)
    base_price = Column(Numeric(20, 4), nullable=False, default=0)  # Standard selling price; values consignment stock
    product_type_id = Column(UUID(as_uuid=True), ForeignKey("product_types.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    product_type = relationship("ProductType", back_populates="products")

"""
Branch model
"""
import enum
import uuid

from sqlalchemy import Column, String, Boolean, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


class BranchType(str, enum.Enum):
    MAIN = "MAIN"
    BRANCH = "BRANCH"
    CONSIGNMENT = "CONSIGNMENT"


class Branch(Base):
    """Branch directory entry. CONSIGNMENT branches are third-party shops paid by commission."""
    __tablename__ = "branches"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)  # Used in document numbers
    name = Column(String(255), nullable=False)
    name_en = Column(String(255))
    type = Column(String(20), nullable=False, default=BranchType.BRANCH.value)
    commission_rate = Column(Numeric(5, 4), nullable=True)  # 0.15 = 15%; NULL -> DEFAULT_COMMISSION_RATE
    address = Column(Text)
    phone = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

"""
User and UserBranchRole models
"""
import enum
import uuid

from sqlalchemy import Column, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from branchstock.database import Base


class Role(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CONSIGNMENT_OWNER = "consignment_owner"


class User(Base):
    """
    User model

    Identity only; credentials are issued elsewhere. What a user may touch is
    decided entirely by their UserBranchRole rows.
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255))
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    branch_roles = relationship("UserBranchRole", back_populates="user", cascade="all, delete-orphan")


class UserBranchRole(Base):
    """
    User-Branch-Role mapping

    branch_id NULL means the role is not tied to one branch. An admin row with
    NULL branch grants every branch.
    """
    __tablename__ = "user_branch_roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=True)
    role = Column(String(50), nullable=False)  # admin, staff, consignment_owner
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="branch_roles")
    branch = relationship("Branch")

    __table_args__ = (
        UniqueConstraint("user_id", "branch_id", "role", name="uq_user_branch_role"),
    )

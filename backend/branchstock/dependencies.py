"""
Request dependencies: database session and caller context.

Credential issuance lives outside this service. The caller is identified by the
X-User-Id header set by the upstream gateway; branch access comes from that
user's UserBranchRole rows.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from branchstock.context import UserContext
from branchstock.database import get_db
from branchstock.models import User, UserBranchRole

logger = logging.getLogger(__name__)

__all__ = ["get_db", "get_current_user"]


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> UserContext:
    """Resolve X-User-Id to a UserContext. 401 when missing, malformed, unknown or inactive."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        user_id = UUID(x_user_id.strip())
    except (ValueError, TypeError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        logger.warning("Rejected request for unknown or inactive user %s", user_id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown or inactive user")

    roles = db.query(UserBranchRole).filter(UserBranchRole.user_id == user_id).all()
    return UserContext.from_roles(user_id, roles)

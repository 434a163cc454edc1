"""
Transaction boundary for write routes: one request, one commit.
"""
import logging
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.orm import Session

from branchstock.exceptions import BranchStockError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session, action: str):
    """
    Commit when the block finishes; roll back on any exception.
    Typed errors propagate to the app's exception handler; anything else becomes a 500.
    """
    try:
        yield
        db.commit()
    except (HTTPException, BranchStockError):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("%s failed: %s", action, e)
        raise HTTPException(status_code=500, detail=f"{action} failed")

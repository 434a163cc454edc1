import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# In-memory database for the whole run; must be set before branchstock.config is imported.
os.environ["DATABASE_URL"] = "sqlite://"

# Allow running pytest from the repo root or from within `backend/`.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest
from sqlalchemy.orm import sessionmaker

from branchstock.context import UserContext
from branchstock.database import Base, engine
from branchstock.models import (
    Branch,
    BranchType,
    LotReference,
    Product,
    Role,
    User,
    UserBranchRole,
)
from branchstock.services.balance_service import BalanceService
from branchstock.services.stock_lot_service import StockLotService

TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def main_branch(db):
    branch = Branch(code="MAIN", name="Head Office", type=BranchType.MAIN.value)
    db.add(branch)
    db.flush()
    return branch


@pytest.fixture
def branch2(db):
    branch = Branch(code="BR2", name="Riverside", type=BranchType.BRANCH.value)
    db.add(branch)
    db.flush()
    return branch


@pytest.fixture
def consignment_branch(db):
    branch = Branch(
        code="CON1",
        name="Market Stall",
        type=BranchType.CONSIGNMENT.value,
        commission_rate=Decimal("0.2000"),
    )
    db.add(branch)
    db.flush()
    return branch


@pytest.fixture
def product(db):
    p = Product(sku="SKU-001", name="Rice 5kg", base_price=Decimal("25.0000"))
    db.add(p)
    db.flush()
    return p


@pytest.fixture
def product2(db):
    p = Product(sku="SKU-002", name="Cooking Oil 1L", base_price=Decimal("8.5000"))
    db.add(p)
    db.flush()
    return p


@pytest.fixture
def ctx():
    return UserContext.system()


@pytest.fixture
def admin_user(db):
    user = User(email="admin@example.com", full_name="Admin", is_active=True)
    db.add(user)
    db.flush()
    db.add(UserBranchRole(user_id=user.id, branch_id=None, role=Role.ADMIN.value))
    db.flush()
    return user


def make_staff_ctx(db, *branches):
    """A non-admin user with a staff role on each given branch."""
    user = User(email=f"staff-{uuid.uuid4().hex[:8]}@example.com", is_active=True)
    db.add(user)
    db.flush()
    roles = []
    for b in branches:
        r = UserBranchRole(user_id=user.id, branch_id=b.id, role=Role.STAFF.value)
        db.add(r)
        roles.append(r)
    db.flush()
    return UserContext.from_roles(user.id, roles)


def stock_in(db, branch, product, quantity, unit_cost, minutes=0):
    """Add a lot and its balance, as a received purchase would. `minutes` orders lots for FIFO."""
    lot = StockLotService.create_lot(
        db,
        branch_id=branch.id,
        product_id=product.id,
        quantity=quantity,
        unit_cost=Decimal(str(unit_cost)),
        reference_doc_type=LotReference.PURCHASE.value,
        lot_date=BASE_TIME + timedelta(minutes=minutes),
    )
    BalanceService.apply_delta(db, branch.id, product.id, quantity)
    return lot


def assert_in_sync(db, branch, product):
    """Balance must equal the sum of remaining lot quantity."""
    balance = BalanceService.get_balance(db, branch.id, product.id).quantity
    lots = StockLotService.remaining_total(db, branch.id, product.id)
    assert balance == lots, f"balance {balance} != lots {lots}"
    return balance

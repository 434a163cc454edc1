"""
Document line-item helpers shared by the purchase, sale, transfer and quotation services.
"""
from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy.orm import Session

from branchstock.exceptions import NotFoundError, ValidationError
from branchstock.models import Branch, Product


def require_branch(db: Session, branch_id: UUID) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if not branch:
        raise NotFoundError("Branch", branch_id)
    return branch


def require_products(db: Session, product_ids: Iterable[UUID]) -> Dict[UUID, Product]:
    """Load every referenced product; NotFoundError names the first missing one."""
    wanted: List[UUID] = list(dict.fromkeys(product_ids))
    found = {p.id: p for p in db.query(Product).filter(Product.id.in_(wanted)).all()} if wanted else {}
    for pid in wanted:
        if pid not in found:
            raise NotFoundError("Product", pid)
    return found


def validate_lines(items) -> None:
    """Every document needs at least one line and every line a positive integer quantity."""
    if not items:
        raise ValidationError("Document must have at least one line item", field="items")
    for idx, it in enumerate(items, start=1):
        qty = it.quantity
        if qty is None or int(qty) != qty or int(qty) <= 0:
            raise ValidationError(f"Line {idx}: quantity must be a positive whole number", field="quantity")


def quantity_by_product(items) -> Dict[UUID, int]:
    """Total quantity per product across lines, first-seen order preserved."""
    totals: Dict[UUID, int] = {}
    for it in items:
        totals[it.product_id] = totals.get(it.product_id, 0) + int(it.quantity)
    return totals

"""
Catalog service: branches, product types and products (reference lookups only).
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from branchstock.exceptions import NotFoundError, ValidationError
from branchstock.models import Branch, Product, ProductType
from branchstock.schemas.catalog import BranchCreate, ProductCreate, ProductTypeCreate

logger = logging.getLogger(__name__)


class CatalogService:

    @staticmethod
    def create_branch(db: Session, data: BranchCreate) -> Branch:
        code = data.code.strip().upper()
        if db.query(Branch).filter(Branch.code == code).first():
            raise ValidationError(f"Branch code {code} already exists", field="code")
        branch = Branch(**data.model_dump(exclude={"code"}), code=code)
        db.add(branch)
        db.flush()
        logger.info("Branch %s created (%s)", branch.code, branch.type)
        return branch

    @staticmethod
    def list_branches(db: Session, branch_type: Optional[str] = None, active_only: bool = False) -> List[Branch]:
        q = db.query(Branch)
        if branch_type:
            q = q.filter(Branch.type == branch_type)
        if active_only:
            q = q.filter(Branch.is_active.is_(True))
        return q.order_by(Branch.code).all()

    @staticmethod
    def create_product_type(db: Session, data: ProductTypeCreate) -> ProductType:
        if db.query(ProductType).filter(ProductType.code == data.code).first():
            raise ValidationError(f"Product type code {data.code} already exists", field="code")
        product_type = ProductType(**data.model_dump())
        db.add(product_type)
        db.flush()
        return product_type

    @staticmethod
    def list_product_types(db: Session) -> List[ProductType]:
        return db.query(ProductType).order_by(ProductType.code).all()

    @staticmethod
    def create_product(db: Session, data: ProductCreate) -> Product:
        if db.query(Product).filter(Product.sku == data.sku).first():
            raise ValidationError(f"SKU {data.sku} already exists", field="sku")
        if data.product_type_id and not db.query(ProductType).filter(ProductType.id == data.product_type_id).first():
            raise NotFoundError("ProductType", data.product_type_id)
        product = Product(**data.model_dump())
        db.add(product)
        db.flush()
        logger.info("Product %s created", product.sku)
        return product

    @staticmethod
    def get_product(db: Session, product_id: UUID) -> Product:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    @staticmethod
    def list_products(
        db: Session,
        product_type_id: Optional[UUID] = None,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> List[Product]:
        q = db.query(Product)
        if product_type_id:
            q = q.filter(Product.product_type_id == product_type_id)
        if active_only:
            q = q.filter(Product.is_active.is_(True))
        if search:
            term = f"%{search.strip()}%"
            q = q.filter(Product.sku.ilike(term) | Product.name.ilike(term) | Product.name_en.ilike(term))
        return q.order_by(Product.sku).all()

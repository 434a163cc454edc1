"""
Catalog API: branches, product types, products
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from branchstock.api.transaction import unit_of_work
from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.schemas.catalog import (
    BranchCreate,
    BranchResponse,
    ProductCreate,
    ProductResponse,
    ProductTypeCreate,
    ProductTypeResponse,
)
from branchstock.services.catalog_service import CatalogService

router = APIRouter()


@router.post("/branches", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
def create_branch(
    data: BranchCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Create branch"):
        branch = CatalogService.create_branch(db, data)
    return branch


@router.get("/branches", response_model=List[BranchResponse])
def list_branches(
    type: Optional[str] = Query(None, description="MAIN, BRANCH or CONSIGNMENT"),
    active_only: bool = False,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return CatalogService.list_branches(db, branch_type=type, active_only=active_only)


@router.post("/product-types", response_model=ProductTypeResponse, status_code=status.HTTP_201_CREATED)
def create_product_type(
    data: ProductTypeCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Create product type"):
        product_type = CatalogService.create_product_type(db, data)
    return product_type


@router.get("/product-types", response_model=List[ProductTypeResponse])
def list_product_types(
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return CatalogService.list_product_types(db)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    with unit_of_work(db, "Create product"):
        product = CatalogService.create_product(db, data)
    return product


@router.get("/products", response_model=List[ProductResponse])
def list_products(
    product_type_id: Optional[UUID] = None,
    active_only: bool = False,
    search: Optional[str] = Query(None, description="Matches SKU or name"),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return CatalogService.list_products(db, product_type_id=product_type_id, active_only=active_only, search=search)


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return CatalogService.get_product(db, product_id)

"""
Reports API - consignment reporting and dashboard
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from branchstock.context import UserContext
from branchstock.dependencies import get_current_user, get_db
from branchstock.exceptions import ValidationError
from branchstock.schemas.reports import (
    ConsignmentSaleRow,
    ConsignmentStockRow,
    ConsignmentSummary,
    DashboardStats,
)
from branchstock.services import report_service

router = APIRouter()


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must be on or before end_date", field="start_date")


@router.get("/consignment/stock", response_model=List[ConsignmentStockRow])
def consignment_stock(
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return report_service.consignment_stock_report(db, ctx)


@router.get("/consignment/sales", response_model=List[ConsignmentSaleRow])
def consignment_sales(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    """Completed consignment sales with profit and commission per sale (dates inclusive)."""
    _check_range(start_date, end_date)
    return report_service.consignment_sales_report(db, ctx, start_date, end_date)


@router.get("/consignment/summary", response_model=ConsignmentSummary)
def consignment_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    _check_range(start_date, end_date)
    return report_service.consignment_summary(db, ctx, start_date, end_date)


@router.get("/dashboard", response_model=DashboardStats)
def dashboard(
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(get_current_user),
):
    return report_service.dashboard_stats(db, ctx)

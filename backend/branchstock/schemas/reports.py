"""
Report schemas: consignment stock/sales, dashboard
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class ConsignmentStockRow(BaseModel):
    branch_id: UUID
    branch_code: str
    branch_name: str
    product_id: UUID
    sku: str
    product_name: str
    quantity: int
    base_price: Decimal
    stock_value: Decimal


class ConsignmentSaleRow(BaseModel):
    sale_id: UUID
    doc_no: str
    sale_date: date
    branch_id: UUID
    branch_code: str
    branch_name: str
    total_amount: Decimal
    total_cost: Decimal
    profit: Decimal
    commission_rate: Decimal
    commission: Decimal


class ConsignmentBranchTotals(BaseModel):
    branch_id: UUID
    branch_code: str
    branch_name: str
    total_stock: int = 0
    stock_value: Decimal = Decimal("0")
    total_sales: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")


class ConsignmentSummary(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_stock: int = 0
    total_stock_value: Decimal = Decimal("0")
    total_sales: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    branches: List[ConsignmentBranchTotals] = Field(default_factory=list)


class DashboardStats(BaseModel):
    today_sales: Decimal
    today_sales_count: int
    yesterday_sales: Decimal
    sales_change_percent: Decimal  # 0 when yesterday had no sales
    yesterday_sales_count: int
    orders_change: int  # today count - yesterday count
    total_stock: int
    active_branches: int

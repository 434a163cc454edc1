"""
Report service: read-only folds over balances, lots and sales.
No writes; safe to run outside the document transaction.
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from branchstock.config import settings
from branchstock.context import UserContext
from branchstock.models import Branch, BranchProduct, BranchType, Product, Sale, SaleStatus
from branchstock.schemas.reports import (
    ConsignmentBranchTotals,
    ConsignmentSaleRow,
    ConsignmentStockRow,
    ConsignmentSummary,
    DashboardStats,
)
from branchstock.utils.numeric import ZERO, quantize, to_decimal


def _consignment_branches(db: Session, ctx: UserContext) -> List[Branch]:
    q = db.query(Branch).filter(
        Branch.type == BranchType.CONSIGNMENT.value,
        Branch.is_active.is_(True),
    )
    visible = ctx.visible_branches()
    if visible is not None:
        q = q.filter(Branch.id.in_(visible))
    return q.order_by(Branch.code).all()


def _commission_rate(branch: Branch) -> Decimal:
    if branch.commission_rate is None:
        return to_decimal(settings.DEFAULT_COMMISSION_RATE)
    return to_decimal(branch.commission_rate)


def consignment_stock_report(db: Session, ctx: UserContext) -> List[ConsignmentStockRow]:
    """Stock held at active consignment branches, valued at base_price."""
    rows: List[ConsignmentStockRow] = []
    for branch in _consignment_branches(db, ctx):
        balances = (
            db.query(BranchProduct, Product)
            .join(Product, Product.id == BranchProduct.product_id)
            .filter(BranchProduct.branch_id == branch.id, BranchProduct.quantity > 0)
            .order_by(Product.sku)
            .all()
        )
        for bp, product in balances:
            base_price = to_decimal(product.base_price)
            rows.append(ConsignmentStockRow(
                branch_id=branch.id,
                branch_code=branch.code,
                branch_name=branch.name,
                product_id=product.id,
                sku=product.sku,
                product_name=product.name,
                quantity=int(bp.quantity),
                base_price=base_price,
                stock_value=base_price * int(bp.quantity),
            ))
    return rows


def consignment_sales_report(
    db: Session,
    ctx: UserContext,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[ConsignmentSaleRow]:
    """
    COMPLETED sales at consignment branches, newest first.
    profit = total_amount - sum(line total_cost); commission = profit * branch rate.
    Dates are inclusive.
    """
    branches = {b.id: b for b in _consignment_branches(db, ctx)}
    if not branches:
        return []
    q = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.branch_id.in_(list(branches)), Sale.status == SaleStatus.COMPLETED.value)
    )
    if start_date:
        q = q.filter(Sale.sale_date >= start_date)
    if end_date:
        q = q.filter(Sale.sale_date <= end_date)

    rows: List[ConsignmentSaleRow] = []
    for sale in q.order_by(Sale.sale_date.desc(), Sale.doc_no.desc()).all():
        branch = branches[sale.branch_id]
        total_amount = to_decimal(sale.total_amount)
        total_cost = sum((to_decimal(it.total_cost) for it in sale.items), ZERO)
        profit = total_amount - total_cost
        rate = _commission_rate(branch)
        rows.append(ConsignmentSaleRow(
            sale_id=sale.id,
            doc_no=sale.doc_no,
            sale_date=sale.sale_date,
            branch_id=branch.id,
            branch_code=branch.code,
            branch_name=branch.name,
            total_amount=total_amount,
            total_cost=total_cost,
            profit=profit,
            commission_rate=rate,
            commission=quantize(profit * rate, settings.MONEY_DECIMAL_PLACES),
        ))
    return rows


def consignment_summary(
    db: Session,
    ctx: UserContext,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ConsignmentSummary:
    stock = consignment_stock_report(db, ctx)
    sales = consignment_sales_report(db, ctx, start_date, end_date)

    per_branch: Dict = {}
    for b in _consignment_branches(db, ctx):
        per_branch[b.id] = ConsignmentBranchTotals(branch_id=b.id, branch_code=b.code, branch_name=b.name)
    for row in stock:
        t = per_branch[row.branch_id]
        t.total_stock += row.quantity
        t.stock_value += row.stock_value
    for row in sales:
        t = per_branch[row.branch_id]
        t.total_sales += row.total_amount
        t.total_profit += row.profit
        t.total_commission += row.commission

    return ConsignmentSummary(
        start_date=start_date,
        end_date=end_date,
        total_stock=sum(r.quantity for r in stock),
        total_stock_value=sum((r.stock_value for r in stock), ZERO),
        total_sales=sum((r.total_amount for r in sales), ZERO),
        total_commission=sum((r.commission for r in sales), ZERO),
        total_profit=sum((r.profit for r in sales), ZERO),
        branches=list(per_branch.values()),
    )


def _sales_on(db: Session, ctx: UserContext, day: date):
    q = db.query(Sale.total_amount).filter(Sale.sale_date == day, Sale.status == SaleStatus.COMPLETED.value)
    visible = ctx.visible_branches()
    if visible is not None:
        q = q.filter(Sale.branch_id.in_(visible))
    amounts = [to_decimal(a) for (a,) in q.all()]
    return sum(amounts, ZERO), len(amounts)


def dashboard_stats(db: Session, ctx: UserContext, today: Optional[date] = None) -> DashboardStats:
    """Today's sales vs yesterday, stock on hand and active branch count."""
    today = today or date.today()
    today_total, today_count = _sales_on(db, ctx, today)
    yesterday_total, yesterday_count = _sales_on(db, ctx, today - timedelta(days=1))
    if yesterday_total > 0:
        change = quantize((today_total - yesterday_total) / yesterday_total * 100, settings.MONEY_DECIMAL_PLACES)
    else:
        change = ZERO

    stock_q = db.query(func.coalesce(func.sum(BranchProduct.quantity), 0))
    branch_q = db.query(func.count(Branch.id)).filter(Branch.is_active.is_(True))
    visible = ctx.visible_branches()
    if visible is not None:
        stock_q = stock_q.filter(BranchProduct.branch_id.in_(visible))
        branch_q = branch_q.filter(Branch.id.in_(visible))

    return DashboardStats(
        today_sales=today_total,
        today_sales_count=today_count,
        yesterday_sales=yesterday_total,
        yesterday_sales_count=yesterday_count,
        sales_change_percent=change,
        orders_change=today_count - yesterday_count,
        total_stock=int(stock_q.scalar() or 0),
        active_branches=int(branch_q.scalar() or 0),
    )

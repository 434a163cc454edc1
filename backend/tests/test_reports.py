"""
Consignment reporting and dashboard figures.
"""
from datetime import date
from decimal import Decimal

from branchstock.schemas.sale import SaleCreate, SaleItemCreate
from branchstock.services import report_service
from branchstock.services.sale_service import SaleService

from conftest import make_staff_ctx, stock_in


def _sell(db, ctx, branch, product, qty, price, day):
    return SaleService.create_sale(db, ctx, SaleCreate(
        branch_id=branch.id,
        sale_date=day,
        items=[SaleItemCreate(product_id=product.id, quantity=qty, unit_price=Decimal(price))],
    ))


def test_consignment_stock_valued_at_base_price(db, ctx, main_branch, consignment_branch, product):
    stock_in(db, main_branch, product, 50, "10")
    stock_in(db, consignment_branch, product, 4, "10")

    rows = report_service.consignment_stock_report(db, ctx)
    assert len(rows) == 1
    row = rows[0]
    assert row.branch_code == "CON1"
    assert row.quantity == 4
    assert row.stock_value == Decimal("100")


def test_consignment_sales_commission(db, ctx, main_branch, consignment_branch, product):
    stock_in(db, consignment_branch, product, 10, "10")
    stock_in(db, main_branch, product, 10, "10")
    _sell(db, ctx, consignment_branch, product, 3, "25", date(2026, 4, 1))
    _sell(db, ctx, main_branch, product, 3, "25", date(2026, 4, 1))

    rows = report_service.consignment_sales_report(db, ctx)
    assert len(rows) == 1
    row = rows[0]
    assert row.total_amount == Decimal("75")
    assert row.total_cost == Decimal("30")
    assert row.profit == Decimal("45")
    assert row.commission_rate == Decimal("0.2")
    assert row.commission == Decimal("9.00")


def test_consignment_sales_date_range_and_cancelled(db, ctx, consignment_branch, product):
    stock_in(db, consignment_branch, product, 10, "1")
    _sell(db, ctx, consignment_branch, product, 1, "5", date(2026, 4, 1))
    in_range = _sell(db, ctx, consignment_branch, product, 1, "5", date(2026, 4, 10))
    cancelled = _sell(db, ctx, consignment_branch, product, 1, "5", date(2026, 4, 11))
    SaleService.cancel_sale(db, ctx, cancelled.id)

    rows = report_service.consignment_sales_report(db, ctx, date(2026, 4, 5), date(2026, 4, 30))
    assert [r.sale_id for r in rows] == [in_range.id]


def test_default_commission_rate(db, ctx, consignment_branch, product):
    consignment_branch.commission_rate = None
    db.flush()
    stock_in(db, consignment_branch, product, 10, "10")
    _sell(db, ctx, consignment_branch, product, 2, "20", date(2026, 4, 1))

    row = report_service.consignment_sales_report(db, ctx)[0]
    assert row.commission_rate == Decimal("0.15")
    assert row.commission == Decimal("3.00")


def test_summary_totals(db, ctx, consignment_branch, product):
    stock_in(db, consignment_branch, product, 10, "10")
    _sell(db, ctx, consignment_branch, product, 3, "25", date(2026, 4, 1))

    summary = report_service.consignment_summary(db, ctx)
    assert summary.total_stock == 7
    assert summary.total_stock_value == Decimal("175")
    assert summary.total_sales == Decimal("75")
    assert summary.total_profit == Decimal("45")
    assert summary.total_commission == Decimal("9.00")
    assert [b.branch_code for b in summary.branches] == ["CON1"]


def test_consignment_scoped_to_visible_branches(db, consignment_branch, main_branch, product):
    stock_in(db, consignment_branch, product, 2, "1")
    outsider = make_staff_ctx(db, main_branch)
    assert report_service.consignment_stock_report(db, outsider) == []
    owner = make_staff_ctx(db, consignment_branch)
    assert len(report_service.consignment_stock_report(db, owner)) == 1


def test_dashboard(db, ctx, main_branch, branch2, product):
    stock_in(db, main_branch, product, 20, "1")
    _sell(db, ctx, main_branch, product, 1, "40", date(2026, 5, 9))
    _sell(db, ctx, main_branch, product, 1, "25", date(2026, 5, 10))
    _sell(db, ctx, main_branch, product, 1, "25", date(2026, 5, 10))
    cancelled = _sell(db, ctx, main_branch, product, 1, "99", date(2026, 5, 10))
    SaleService.cancel_sale(db, ctx, cancelled.id)

    stats = report_service.dashboard_stats(db, ctx, today=date(2026, 5, 10))
    assert stats.today_sales == Decimal("50")
    assert stats.today_sales_count == 2
    assert stats.yesterday_sales == Decimal("40")
    assert stats.yesterday_sales_count == 1
    assert stats.sales_change_percent == Decimal("25.00")
    assert stats.orders_change == 1
    assert stats.total_stock == 16
    assert stats.active_branches == 2


def test_dashboard_no_sales_yesterday(db, ctx, main_branch, product):
    stock_in(db, main_branch, product, 5, "1")
    _sell(db, ctx, main_branch, product, 1, "10", date(2026, 5, 10))
    stats = report_service.dashboard_stats(db, ctx, today=date(2026, 5, 10))
    assert stats.sales_change_percent == Decimal("0")
    assert stats.orders_change == 1

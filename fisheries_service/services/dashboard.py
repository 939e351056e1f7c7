from datetime import datetime, timedelta

from sqlalchemy import extract, func
from sqlalchemy.orm import Session, selectinload

from ..models import COMPLETED_STATUSES, Order, OrderItem, Truck, User, utcnow

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _growth(current, previous):
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 2)


def _revenue_between(db: Session, start, end=None):
    query = db.query(func.sum(Order.total_amount)).filter(
        Order.status.in_(COMPLETED_STATUSES), Order.created_at >= start
    )
    if end is not None:
        query = query.filter(Order.created_at < end)
    return float(query.scalar() or 0)


def _users_with_orders_between(db: Session, start, end=None):
    query = db.query(func.count(func.distinct(Order.user_id))).filter(Order.created_at >= start)
    if end is not None:
        query = query.filter(Order.created_at < end)
    return query.scalar() or 0


def get_dashboard_stats(db: Session, now: datetime = None) -> dict:
    now = now or utcnow()
    current_month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month_start = (current_month_start - timedelta(days=1)).replace(day=1)

    total_revenue = _revenue_between(db, current_month_start)
    previous_revenue = _revenue_between(db, last_month_start, current_month_start)

    new_customers = db.query(func.count(User.id)).filter(User.created_at >= current_month_start).scalar() or 0

    # Active accounts: users who placed an order in the last 30 days.
    thirty_days_ago = now - timedelta(days=30)
    active_accounts = _users_with_orders_between(db, thirty_days_ago)
    previous_active_accounts = _users_with_orders_between(db, thirty_days_ago - timedelta(days=30), thirty_days_ago)

    ongoing_trucks = (
        db.query(func.count(Truck.id)).filter(Truck.availability_status == "in_transit").scalar() or 0
    )

    return {
        "totalRevenue": total_revenue,
        "revenueGrowth": _growth(total_revenue, previous_revenue),
        "newCustomers": new_customers,
        "activeAccounts": active_accounts,
        "activeAccountsGrowth": _growth(active_accounts, previous_active_accounts),
        "ongoingTrucks": ongoing_trucks,
    }


def get_revenue_data(db: Session, year: int = None) -> list:
    """Monthly revenue of completed orders, this year against last year."""
    current_year = year or utcnow().year
    previous_year = current_year - 1

    order_month = extract("month", Order.created_at)
    order_year = extract("year", Order.created_at)
    rows = (
        db.query(order_year, order_month, func.sum(Order.total_amount))
        .filter(Order.status.in_(COMPLETED_STATUSES), order_year.in_([current_year, previous_year]))
        .group_by(order_year, order_month)
        .all()
    )

    revenue = {(int(row_year), int(row_month)): float(total or 0) for row_year, row_month, total in rows}
    return [
        {
            "month": name,
            "currentYear": revenue.get((current_year, month), 0),
            "previousYear": revenue.get((previous_year, month), 0),
        }
        for month, name in enumerate(MONTHS, start=1)
    ]


def get_fish_sales_data(db: Session, year: int = None) -> list:
    """Kilograms sold per month this year; months without sales report 0."""
    current_year = year or utcnow().year

    order_month = extract("month", Order.created_at)
    rows = (
        db.query(order_month, func.sum(OrderItem.quantity_kg))
        .join(OrderItem, OrderItem.order_id == Order.id)
        .filter(Order.status.in_(COMPLETED_STATUSES), extract("year", Order.created_at) == current_year)
        .group_by(order_month)
        .all()
    )

    sales = {int(month): float(total or 0) for month, total in rows}
    return [{"month": name, "sales": sales.get(month, 0)} for month, name in enumerate(MONTHS, start=1)]


def get_truck_info(db: Session):
    return (
        db.query(Truck)
        .options(selectinload(Truck.driver))
        .filter(Truck.availability_status.in_(["available", "in_transit", "maintenance"]))
        .order_by(Truck.updated_at.desc())
        .all()
    )

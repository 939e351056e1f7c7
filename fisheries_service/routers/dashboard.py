import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ApiError
from ..serializers import order_summary_to_dict, truck_to_dict
from ..services import dashboard
from ..services import orders as order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
def get_dashboard_stats(db: Session = Depends(get_db)):
    try:
        stats = dashboard.get_dashboard_stats(db)
    except SQLAlchemyError:
        logger.exception("Error fetching dashboard stats")
        raise ApiError("Failed to fetch dashboard statistics")
    return {"success": True, "data": stats}


@router.get("/revenue")
def get_revenue_data(db: Session = Depends(get_db)):
    try:
        revenue = dashboard.get_revenue_data(db)
    except SQLAlchemyError:
        logger.exception("Error fetching revenue data")
        raise ApiError("Failed to fetch revenue data")
    return {"success": True, "data": revenue}


@router.get("/fish-sales")
def get_fish_sales_data(db: Session = Depends(get_db)):
    try:
        sales = dashboard.get_fish_sales_data(db)
    except SQLAlchemyError:
        logger.exception("Error fetching fish sales data")
        raise ApiError("Failed to fetch fish sales data")
    return {"success": True, "data": sales}


@router.get("/trucks")
def get_truck_info(db: Session = Depends(get_db)):
    try:
        trucks = dashboard.get_truck_info(db)
    except SQLAlchemyError:
        logger.exception("Error fetching truck info")
        raise ApiError("Failed to fetch truck information")
    return {"success": True, "data": [truck_to_dict(t, include_driver=True) for t in trucks]}


# Orders in the given comma-separated statuses, open orders by default.
@router.get("/orders")
def list_orders_by_status(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    statuses = [s.strip() for s in status.split(",") if s.strip()] if status else []
    try:
        orders, pagination = order_service.get_orders_by_status(
            db, statuses or order_service.DEFAULT_OPEN_STATUSES, page, limit
        )
    except SQLAlchemyError:
        logger.exception("Error fetching orders by status")
        raise ApiError("Failed to fetch orders")

    return {
        "success": True,
        "data": [order_summary_to_dict(o, include_truck=True) for o in orders],
        "pagination": pagination,
    }

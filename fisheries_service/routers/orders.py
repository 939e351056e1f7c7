import logging

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ApiError, NotFoundError
from ..schemas import CreateOrderRequest
from ..serializers import order_detail_to_dict, order_item_to_dict, order_summary_to_dict, order_to_dict
from ..services import orders as order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


# Creates a new order together with its items and first status entry.
@router.post("", status_code=201)
def create_order(req: CreateOrderRequest, db: Session = Depends(get_db)):
    try:
        order, items = order_service.create_order(db, req)
    except SQLAlchemyError:
        logger.exception("Error creating order")
        raise ApiError("Failed to create order")

    return {
        "success": True,
        "message": "Order created successfully",
        "data": {
            "order": order_to_dict(order),
            "items": [order_item_to_dict(item) for item in items],
        },
    }


@router.get("/pending")
def get_pending_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    orders, pagination = order_service.get_pending_orders(db, page, limit)
    return {"success": True, "data": [order_summary_to_dict(o) for o in orders], "pagination": pagination}


@router.get("/transactions/latest")
def get_latest_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    orders, pagination = order_service.get_latest_transactions(db, page, limit)
    return {"success": True, "data": [order_summary_to_dict(o) for o in orders], "pagination": pagination}


# Retrieves a single order by its ID.
@router.get("/{order_id}")
def get_order(order_id: int = Path(gt=0), db: Session = Depends(get_db)):
    order = order_service.get_order_by_id(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return {"success": True, "data": order_detail_to_dict(order)}

import logging

from sqlalchemy.orm import Session, selectinload

from ..models import COMPLETED_STATUSES, Order, OrderItem, OrderStatusHistory
from ..pagination import paginate
from ..schemas import CreateOrderRequest

logger = logging.getLogger(__name__)

DEFAULT_OPEN_STATUSES = ("pending", "scheduled", "in_progress")


def _with_items_and_user(query):
    return query.options(
        selectinload(Order.order_items).selectinload(OrderItem.fish_type),
        selectinload(Order.user),
    )


def calculate_total(order_items) -> float:
    return sum(item.quantity_kg * item.unit_price for item in order_items)


def create_order(db: Session, req: CreateOrderRequest):
    """
    Persists an order, its items and its first status entry in one transaction.
    - Nothing is written if any insert fails.
    - Returns the created order and its items.
    """
    total_amount = calculate_total(req.order_items)

    try:
        order = Order(
            user_id=req.user_id,
            delivery_date=req.delivery_date,
            delivery_time_slot=req.delivery_time_slot,
            freshness_requirement_hours=req.freshness_requirement_hours,
            delivery_latitude=req.delivery_latitude,
            delivery_longitude=req.delivery_longitude,
            delivery_address=req.delivery_address,
            special_instructions=req.special_instructions,
            total_amount=total_amount,
            status="pending",
        )
        db.add(order)
        db.flush() # Assigns order.id so the children can reference it.

        items = [
            OrderItem(
                order_id=order.id,
                fish_type_id=item.fish_type_id,
                quantity_kg=item.quantity_kg,
                unit_price=item.unit_price,
                subtotal=item.quantity_kg * item.unit_price,
            )
            for item in req.order_items
        ]
        db.add_all(items)
        db.add(OrderStatusHistory(order_id=order.id, status="pending", notes="Order created"))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    for item in items:
        db.refresh(item)

    logger.info("Order %s created with %d items, total %.2f", order.id, len(items), total_amount)
    return order, items


def get_order_by_id(db: Session, order_id: int):
    return (
        db.query(Order)
        .options(
            selectinload(Order.order_items).selectinload(OrderItem.fish_type),
            selectinload(Order.user),
            selectinload(Order.pickup_harbor),
            selectinload(Order.assigned_truck),
            selectinload(Order.status_history),
        )
        .filter(Order.id == order_id)
        .first()
    )


def get_pending_orders(db: Session, page: int, limit: int):
    query = _with_items_and_user(db.query(Order)).filter(Order.status == "pending")
    return paginate(query.order_by(Order.created_at.desc(), Order.id.desc()), page, limit)


def get_latest_transactions(db: Session, page: int, limit: int):
    query = _with_items_and_user(db.query(Order)).filter(Order.status.in_(COMPLETED_STATUSES))
    return paginate(query.order_by(Order.updated_at.desc(), Order.id.desc()), page, limit)


def get_orders_by_status(db: Session, statuses, page: int, limit: int):
    query = (
        _with_items_and_user(db.query(Order))
        .options(selectinload(Order.assigned_truck))
        .filter(Order.status.in_(list(statuses)))
    )
    return paginate(query.order_by(Order.created_at.desc(), Order.id.desc()), page, limit)

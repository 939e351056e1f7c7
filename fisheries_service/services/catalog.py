from datetime import timedelta

from sqlalchemy.orm import Session, selectinload

from ..models import FishPricing, FishType, utcnow
from ..schemas import AddPriceRequest


def get_active_fish_types(db: Session):
    return db.query(FishType).filter(FishType.is_active.is_(True)).order_by(FishType.fish_name.asc()).all()


def get_fish_prices_history(db: Session, fish_type_id: int = None, days: int = 30):
    query = (
        db.query(FishPricing)
        .options(selectinload(FishPricing.fish_type))
        .filter(FishPricing.price_date >= utcnow() - timedelta(days=days))
    )
    if fish_type_id:
        query = query.filter(FishPricing.fish_type_id == fish_type_id)
    return query.order_by(FishPricing.price_date.desc()).all()


def add_fish_price(db: Session, req: AddPriceRequest) -> FishPricing:
    price = FishPricing(
        fish_type_id=req.fish_type_id,
        price_date=req.price_date,
        retail_price=req.retail_price,
        wholesale_price=req.wholesale_price,
        market_demand_level=req.market_demand_level,
        supply_availability=req.supply_availability,
        is_actual=True,
    )
    db.add(price)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(price)
    return price

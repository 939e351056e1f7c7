import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ApiError
from ..schemas import AddPriceRequest
from ..serializers import fish_price_to_dict, prediction_to_dict
from ..services import catalog
from ..services.predictions import PricePredictionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])

prediction_service = PricePredictionService()


def parse_optional_id(value: Optional[str]):
    """Positive integer id, or None for anything else."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


@router.get("/history")
def get_fish_prices_history(
    fish_type_id: Optional[int] = Query(None, alias="fishTypeId", gt=0),
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
):
    prices = catalog.get_fish_prices_history(db, fish_type_id, days)
    return {"success": True, "data": [fish_price_to_dict(p) for p in prices]}


@router.get("/current")
def get_current_predictions(
    fish_type_id: Optional[str] = Query(None, alias="fishTypeId"),
    db: Session = Depends(get_db),
):
    predictions = prediction_service.get_current_predictions(db, parse_optional_id(fish_type_id))
    return {"success": True, "data": [prediction_to_dict(p) for p in predictions]}


@router.post("/actual", status_code=201)
def add_actual_price(req: AddPriceRequest, db: Session = Depends(get_db)):
    try:
        price = catalog.add_fish_price(db, req)
    except SQLAlchemyError:
        logger.exception("Error adding actual price")
        raise ApiError("Failed to add price")

    logger.info("Actual price added for fish type %s", req.fish_type_id)
    return {"success": True, "message": "Price added successfully", "data": fish_price_to_dict(price)}

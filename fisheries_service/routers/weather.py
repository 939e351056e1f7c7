import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..serializers import weather_to_dict
from ..services.weather import WeatherService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weather", tags=["weather"])

weather_service = WeatherService()


@router.get("/forecasts")
def get_weather_forecasts(
    location: Optional[str] = None,
    days: int = Query(7, ge=1, le=14),
    db: Session = Depends(get_db),
):
    forecasts = weather_service.get_weather_forecasts(db, location, days)
    return {"success": True, "data": [weather_to_dict(f) for f in forecasts]}


# Runs the weather sync now instead of waiting for the scheduler.
@router.post("/refresh")
def refresh_weather_data(db: Session = Depends(get_db)):
    summary = weather_service.fetch_and_store_weather_data(db)
    return {"success": True, "message": "Weather data refreshed successfully", "data": summary}

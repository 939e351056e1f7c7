import logging
from datetime import date, timedelta

import requests
from sqlalchemy.orm import Session, selectinload

from ..config import PREDICTION_API_URL
from ..errors import PredictionError
from ..models import DailyPricePrediction, FishType
from .weather import WeatherService

logger = logging.getLogger(__name__)

PREDICTION_DAYS = 7
REQUEST_TIMEOUT_SECONDS = 30
MODEL_CONFIDENCE = 0.95

# Static economic indicators until a live feed is wired in.
ECONOMIC_DATA = {
    "dollar_rate": 302.30,
    "kerosene_price": 185.00,
    "diesel_lad_price": 283.00,
    "super_diesel_lsd_price": 313.00,
}

# Static ocean snapshot until marine forecasts are fetched live.
OCEAN_DATA = {
    "wave_height_max": 1.78,
    "wind_wave_height_max": 0.64,
    "swell_wave_height_max": 1.36,
    "wave_period_max": 8.45,
    "wave_direction_dominant": 252.29,
}


def _price_at(series, index):
    if index < len(series):
        return series[index]
    return None


class PricePredictionService:
    """Asks the prediction service for the coming week's prices of every active fish type."""

    def __init__(self, api_url: str = PREDICTION_API_URL, weather_service=None, http=None):
        self.api_url = api_url.rstrip("/")
        self.weather_service = weather_service or WeatherService()
        self.http = http or requests

    def generate_daily_predictions(self, db: Session) -> dict:
        logger.info("Starting daily price prediction generation")
        summary = {"stored": [], "failed": []}

        fish_types = db.query(FishType).filter(FishType.is_active.is_(True)).all()
        weather_data = self.weather_service.get_average_weather_data(db)

        for fish_type in fish_types:
            fish_name = fish_type.fish_name
            try:
                self.generate_prediction_for_fish(db, fish_type, weather_data)
                db.commit()
                summary["stored"].append(fish_name)
                logger.info("Generated predictions for %s", fish_name)
            except Exception as exc:
                db.rollback()
                summary["failed"].append(fish_name)
                logger.error("Failed to generate predictions for %s: %s", fish_name, exc)

        logger.info(
            "Daily price prediction generation completed: %d stored, %d failed",
            len(summary["stored"]), len(summary["failed"]),
        )
        return summary

    def request_prediction(self, fish_name: str, weather_data: dict) -> dict:
        response = self.http.post(
            f"{self.api_url}/predict",
            json={
                "fish_type": fish_name,
                "prediction_days": PREDICTION_DAYS,
                "weather_data": weather_data,
                "ocean_data": OCEAN_DATA,
                "economic_data": ECONOMIC_DATA,
            },
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()

    def generate_prediction_for_fish(self, db: Session, fish_type: FishType, weather_data: dict) -> int:
        payload = self.request_prediction(fish_type.fish_name, weather_data)
        if not payload or not payload.get("success"):
            raise PredictionError(f"Prediction API returned success: false for {fish_type.fish_name}")
        return self.store_predictions(db, fish_type, payload)

    def store_predictions(self, db: Session, fish_type: FishType, payload: dict, today: date = None) -> int:
        """
        Upserts one row per predicted day. Returns the number of days written.
        - The horizon is the shorter price series, capped at PREDICTION_DAYS.
        - A day with a missing price is skipped.
        """
        predictions = payload.get("predictions") or {}
        wholesale = predictions.get("avg_ws_price")
        retail = predictions.get("avg_rt_price")
        if wholesale is None or retail is None:
            raise PredictionError("Invalid prediction data structure")

        today = today or date.today()
        horizon = min(len(wholesale), len(retail), PREDICTION_DAYS)

        written = 0
        for index in range(horizon):
            retail_price = _price_at(retail, index)
            wholesale_price = _price_at(wholesale, index)
            if retail_price is None or wholesale_price is None:
                logger.warning("Skipping prediction day %d for %s - undefined prices", index, fish_type.fish_name)
                continue

            self._upsert_prediction(
                db, fish_type.id, today + timedelta(days=index), float(retail_price), float(wholesale_price)
            )
            written += 1
        return written

    def _upsert_prediction(self, db: Session, fish_type_id: int, prediction_date: date, retail_price, wholesale_price):
        prediction = (
            db.query(DailyPricePrediction)
            .filter(
                DailyPricePrediction.fish_type_id == fish_type_id,
                DailyPricePrediction.prediction_date == prediction_date,
            )
            .first()
        )

        if prediction:
            prediction.retail_price = retail_price
            prediction.wholesale_price = wholesale_price
            prediction.confidence = MODEL_CONFIDENCE
        else:
            prediction = DailyPricePrediction(
                fish_type_id=fish_type_id,
                prediction_date=prediction_date,
                retail_price=retail_price,
                wholesale_price=wholesale_price,
                confidence=MODEL_CONFIDENCE,
            )
            db.add(prediction)
        db.flush()
        return prediction

    def get_current_predictions(self, db: Session, fish_type_id: int = None):
        today = date.today()
        query = (
            db.query(DailyPricePrediction)
            .options(selectinload(DailyPricePrediction.fish_type))
            .filter(
                DailyPricePrediction.prediction_date >= today,
                DailyPricePrediction.prediction_date <= today + timedelta(days=PREDICTION_DAYS),
            )
        )
        if fish_type_id:
            query = query.filter(DailyPricePrediction.fish_type_id == fish_type_id)
        return query.order_by(DailyPricePrediction.prediction_date.asc()).all()

import logging
from collections import namedtuple
from datetime import date, datetime, timedelta

import requests
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import WEATHER_API_URL
from ..errors import WeatherFetchError
from ..models import WeatherForecast, utcnow

logger = logging.getLogger(__name__)

Location = namedtuple("Location", ["name", "lat", "lng"])

# Coastal points the forecasts are kept for.
LOCATIONS = [
    Location("Colombo", 6.9271, 79.8612),
    Location("Negombo", 7.2084, 79.8358),
    Location("Galle", 6.0535, 80.2210),
    Location("Trincomalee", 8.5874, 81.2152),
    Location("Jaffna", 9.6615, 80.0255),
    Location("Hambantota", 6.1241, 81.1185),
]

DAILY_FIELDS = [
    "temperature_2m_mean",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "cloud_cover_mean",
    "precipitation_sum",
    "relative_humidity_2m_mean",
]

FORECAST_DAYS = 7
REQUEST_TIMEOUT_SECONDS = 10
TIMEZONE = "Asia/Colombo"

# Stored when the API leaves a value out.
# TODO: store NULL instead once the prediction service accepts gaps in weather_data.
FIELD_DEFAULTS = {
    "temperature_2m_mean": 27.0,
    "wind_speed_10m_max": 15.0,
    "precipitation_sum": 0.0,
    "relative_humidity_2m_mean": 80.0,
}

# Used by the prediction job when no recent forecasts exist.
AVERAGE_DEFAULTS = {
    "temperature_2m_mean": 27.0,
    "wind_speed_10m_max": 15.0,
    "precipitation_sum": 2.0,
    "relative_humidity_2m_mean": 80.0,
}


def _parse_forecast_date(value):
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def _value_at(daily: dict, field: str, index: int, default=None):
    series = daily.get(field) or []
    if index < len(series) and series[index] is not None:
        return series[index]
    return default


class WeatherService:
    """Keeps the weather_forecasts table in sync with the external forecast API."""

    def __init__(self, api_url: str = WEATHER_API_URL, locations=None, http=None):
        self.api_url = api_url.rstrip("/")
        self.locations = locations if locations is not None else LOCATIONS
        self.http = http or requests

    def fetch_and_store_weather_data(self, db: Session) -> dict:
        """
        Refreshes the forecast of every location.
        A failing location is logged and skipped; the others are still processed.
        """
        logger.info("Starting weather data fetch process")
        summary = {"stored": [], "failed": []}

        for location in self.locations:
            try:
                rows = self.fetch_location_weather(db, location)
                db.commit()
                summary["stored"].append(location.name)
                logger.info("Weather data stored for %s (%d days)", location.name, rows)
            except Exception as exc:
                db.rollback()
                summary["failed"].append(location.name)
                logger.error("Failed to fetch weather for %s: %s", location.name, exc)

        logger.info(
            "Weather data fetch process completed: %d stored, %d failed",
            len(summary["stored"]), len(summary["failed"]),
        )
        return summary

    def request_forecast(self, location: Location) -> dict:
        response = self.http.get(
            f"{self.api_url}/forecast",
            params={
                "latitude": location.lat,
                "longitude": location.lng,
                "daily": ",".join(DAILY_FIELDS),
                "forecast_days": FORECAST_DAYS,
                "timezone": TIMEZONE,
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()

    def fetch_location_weather(self, db: Session, location: Location) -> int:
        """Fetches one location and upserts a row per forecast day. Returns the number of days stored."""
        payload = self.request_forecast(location)

        daily = (payload or {}).get("daily") or {}
        times = daily.get("time") or []
        if not times:
            raise WeatherFetchError(f"No weather data received for {location.name}")

        stored = 0
        for index, time_value in enumerate(times):
            if not time_value:
                logger.warning("Skipping weather entry %d for %s - no time value", index, location.name)
                continue

            forecast_date = _parse_forecast_date(time_value)
            if forecast_date is None:
                logger.warning("Invalid date format for %s: %r", location.name, time_value)
                continue

            values = {field: _value_at(daily, field, index, default) for field, default in FIELD_DEFAULTS.items()}
            values["wind_gusts_10m_max"] = _value_at(daily, "wind_gusts_10m_max", index)
            values["cloud_cover_mean"] = _value_at(daily, "cloud_cover_mean", index)

            self._upsert_forecast(db, location, forecast_date, values)
            stored += 1

        return stored

    def _upsert_forecast(self, db: Session, location: Location, forecast_date: date, values: dict):
        forecast = (
            db.query(WeatherForecast)
            .filter(
                WeatherForecast.forecast_date == forecast_date,
                WeatherForecast.latitude == location.lat,
                WeatherForecast.longitude == location.lng,
            )
            .first()
        )

        if forecast:
            for field, value in values.items():
                setattr(forecast, field, value)
        else:
            forecast = WeatherForecast(
                forecast_date=forecast_date,
                location=location.name,
                latitude=location.lat,
                longitude=location.lng,
                **values,
            )
            db.add(forecast)
        db.flush()
        return forecast

    def get_average_weather_data(self, db: Session) -> dict:
        """Mean of each weather metric over forecasts created in the last 7 days."""
        since = utcnow() - timedelta(days=7)
        row = (
            db.query(
                func.avg(WeatherForecast.temperature_2m_mean),
                func.avg(WeatherForecast.wind_speed_10m_max),
                func.avg(WeatherForecast.precipitation_sum),
                func.avg(WeatherForecast.relative_humidity_2m_mean),
            )
            .filter(WeatherForecast.created_at >= since)
            .one()
        )

        averages = {}
        for (field, default), value in zip(AVERAGE_DEFAULTS.items(), row):
            averages[field] = float(value) if value is not None else default
        return averages

    def get_weather_forecasts(self, db: Session, location=None, days: int = 7):
        today = date.today()
        query = db.query(WeatherForecast).filter(
            WeatherForecast.forecast_date >= today,
            WeatherForecast.forecast_date <= today + timedelta(days=days),
        )
        if location:
            query = query.filter(WeatherForecast.location == location)
        return query.order_by(WeatherForecast.forecast_date.asc(), WeatherForecast.location.asc()).all()

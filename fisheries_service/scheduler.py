import logging
import threading

import schedule

from .database import SessionLocal
from .services.predictions import PricePredictionService
from .services.weather import WeatherService

logger = logging.getLogger(__name__)

WEATHER_INTERVAL_HOURS = 6
PREDICTION_RUN_AT = "00:00"
POLL_SECONDS = 1


def run_safely(job_name, job, session_factory=SessionLocal):
    """
    Runs one job with its own DB session.
    Any exception is logged and swallowed so the scheduler keeps going.
    """
    logger.info("Running scheduled %s", job_name)
    db = session_factory()
    try:
        job(db)
        logger.info("Scheduled %s completed", job_name)
        return True
    except Exception:
        logger.exception("Scheduled %s failed", job_name)
        return False
    finally:
        db.close()


class JobScheduler:
    """Fires the weather and price-prediction syncs on their intervals from a background thread."""

    def __init__(self, weather_service=None, prediction_service=None, session_factory=SessionLocal):
        self.weather_service = weather_service or WeatherService()
        self.prediction_service = prediction_service or PricePredictionService(weather_service=self.weather_service)
        self.session_factory = session_factory
        self.scheduler = schedule.Scheduler()
        self._stop_event = threading.Event()
        self._thread = None

    def run_weather_update(self):
        return run_safely(
            "weather data update", self.weather_service.fetch_and_store_weather_data, self.session_factory
        )

    def run_price_predictions(self):
        return run_safely(
            "price predictions generation", self.prediction_service.generate_daily_predictions, self.session_factory
        )

    def configure(self):
        self.scheduler.clear()
        self.scheduler.every(WEATHER_INTERVAL_HOURS).hours.do(self.run_weather_update)
        self.scheduler.every().day.at(PREDICTION_RUN_AT).do(self.run_price_predictions)
        logger.info(
            "Scheduled tasks configured: weather every %dh, predictions daily at %s",
            WEATHER_INTERVAL_HOURS, PREDICTION_RUN_AT,
        )

    def _loop(self):
        while not self._stop_event.is_set():
            try:
                self.scheduler.run_pending()
            except Exception:
                logger.exception("Scheduler loop error")
            self._stop_event.wait(POLL_SECONDS)

    def start(self):
        """Helper to run the scheduler in a background thread."""
        if self._thread and self._thread.is_alive():
            return
        self.configure()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="job-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout=5):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
        self.scheduler.clear()
        logger.info("Scheduler stopped")

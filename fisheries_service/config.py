import os

from dotenv import load_dotenv

# Pick up a local .env file if one exists; real environment variables win.
load_dotenv()

# Get DB connection string from environment variables.
# Defaults to the database service defined in docker-compose.
DATABASE_URL = os.getenv(
    "DATABASE_URL", "postgresql://fisheries_user:fisheries_pass@db:5432/fisheries_db"
)

# External data services.
WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.open-meteo.com/v1")
PREDICTION_API_URL = os.getenv("PREDICTION_API_URL", "http://localhost:8000/api/v1/predictions")

APP_ENV = os.getenv("APP_ENV", "development")
DEBUG_MODE = APP_ENV == "development"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG_MODE else "INFO").upper()

ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "true").lower() == "true"
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGIN", "*").split(",") if origin.strip()]
PORT = int(os.getenv("PORT", "3000"))

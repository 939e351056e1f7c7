import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import APP_ENV, CORS_ORIGINS, ENABLE_SCHEDULER, LOG_LEVEL, PORT
from .database import init_db
from .errors import register_error_handlers
from .routers import blog, dashboard, fish_types, orders, pricing, settings, users, weather
from .scheduler import JobScheduler

# Logging setup
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

job_scheduler = JobScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown hooks."""
    logger.info("Starting Fisheries API v%s (%s)", __version__, APP_ENV)

    # Create database tables on startup if they don't exist.
    init_db()

    if ENABLE_SCHEDULER:
        logger.info("Setting up scheduled tasks...")
        job_scheduler.start()

    logger.info("API available at: http://localhost:%s/api/v1", PORT)
    yield

    logger.info("Shutting down Fisheries API")
    if ENABLE_SCHEDULER:
        job_scheduler.stop()


app = FastAPI(title="Fisheries Management API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


api_router = APIRouter(prefix="/api/v1")


@api_router.get("/health")
def health():
    return {
        "success": True,
        "message": "API is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": APP_ENV,
    }


@api_router.get("/")
def api_index():
    return {
        "success": True,
        "message": "Fisheries Management API v1.0",
        "endpoints": {
            "health": "GET /api/v1/health",
            "orders": "GET/POST /api/v1/orders",
            "pricing": "GET/POST /api/v1/pricing",
            "weather": "GET /api/v1/weather",
            "blog": "GET /api/v1/blog",
            "fishTypes": "GET /api/v1/fish-types",
            "users": "GET /api/v1/users",
            "dashboard": "GET /api/v1/dashboard",
            "settings": "GET/PUT /api/v1/settings",
        },
    }


for module in (orders, pricing, weather, blog, fish_types, users, dashboard, settings):
    api_router.include_router(module.router)

app.include_router(api_router)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"message": "Fisheries service is running"}


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("fisheries_service.main:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()

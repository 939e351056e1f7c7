"""Database seeding utility.

Loads `<kind>.json` files (arrays of objects with camelCase keys) into the
database in foreign-key order, after optionally clearing the tables and
generating sample blog posts and forecasts.

String ids in the source files are remapped to integers. The mapping is kept
per entity kind for the duration of one run, so a reference such as
`"fishTypeId": "FT-001"` in order items resolves to the id assigned to that
fish type when it was inserted.

Usage:
    python -m fisheries_service.seed --data-dir seed_data
    python -m fisheries_service.seed --data-dir seed_data --no-clear --no-samples
"""

import argparse
import enum
import json
import logging
import random
import re
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, Integer, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .database import init_db, session_scope
from .models import (
    BlogPost,
    DailyPricePrediction,
    Driver,
    FishPricing,
    FishType,
    Harbor,
    MarineForecast,
    Order,
    OrderItem,
    OrderStatusHistory,
    Truck,
    User,
    WeatherForecast,
    utcnow,
)
from .services.weather import LOCATIONS

logger = logging.getLogger(__name__)


class EntityKind(enum.Enum):
    """Seedable entities, declared in the order their foreign keys require."""
    FISH_TYPES = "fishTypes"
    HARBORS = "harbors"
    DRIVERS = "drivers"
    TRUCKS = "trucks"
    USERS = "users"
    FISH_PRICING = "fishPricing"
    DAILY_PRICE_PREDICTIONS = "dailyPricePredictions"
    WEATHER_FORECASTS = "weatherForecasts"
    MARINE_FORECASTS = "marineForecasts"
    BLOG_POSTS = "blogPosts"
    ORDERS = "orders"
    ORDER_ITEMS = "orderItems"
    ORDER_STATUS_HISTORY = "orderStatusHistory"

    @property
    def file_name(self):
        return f"{self.value}.json"


MODEL_BY_KIND = {
    EntityKind.FISH_TYPES: FishType,
    EntityKind.HARBORS: Harbor,
    EntityKind.DRIVERS: Driver,
    EntityKind.TRUCKS: Truck,
    EntityKind.USERS: User,
    EntityKind.FISH_PRICING: FishPricing,
    EntityKind.DAILY_PRICE_PREDICTIONS: DailyPricePrediction,
    EntityKind.WEATHER_FORECASTS: WeatherForecast,
    EntityKind.MARINE_FORECASTS: MarineForecast,
    EntityKind.BLOG_POSTS: BlogPost,
    EntityKind.ORDERS: Order,
    EntityKind.ORDER_ITEMS: OrderItem,
    EntityKind.ORDER_STATUS_HISTORY: OrderStatusHistory,
}

SEEDING_ORDER = list(EntityKind)

# Field holding the record's own id in the source files, where it isn't "id".
SOURCE_ID_FIELDS = {
    EntityKind.FISH_TYPES: "fishTypeId",
    EntityKind.HARBORS: "harborId",
    EntityKind.DRIVERS: "driverId",
    EntityKind.FISH_PRICING: "fishPriceId",
    EntityKind.ORDERS: "orderId",
}

# Foreign-key fields and the kind they point at.
REFERENCE_FIELDS = {
    "fishTypeId": EntityKind.FISH_TYPES,
    "harborId": EntityKind.HARBORS,
    "pickupHarborId": EntityKind.HARBORS,
    "driverId": EntityKind.DRIVERS,
    "truckId": EntityKind.TRUCKS,
    "assignedTruckId": EntityKind.TRUCKS,
    "userId": EntityKind.USERS,
    "orderId": EntityKind.ORDERS,
}

# camelCase keys whose snake_case column names keep the digits apart.
COLUMN_RENAMES = {
    "temperature2mMean": "temperature_2m_mean",
    "windSpeed10mMax": "wind_speed_10m_max",
    "windGusts10mMax": "wind_gusts_10m_max",
    "relativeHumidity2mMean": "relative_humidity_2m_mean",
}


class InvalidValue(ValueError):
    pass


class IdRegistry:
    """Maps (entity kind, source id) to the integer id used in the database, and back."""

    def __init__(self):
        self._forward = {}
        self._reverse = {}
        self._highest = {}  # kind -> largest id handed out or recorded

    def resolve(self, kind: EntityKind, source_id) -> int:
        """Integer id for a source id, assigning the next free one on first sight."""
        key = (kind, str(source_id))
        if key not in self._forward:
            self.record(kind, source_id, self._highest.get(kind, 0) + 1)
        return self._forward[key]

    def record(self, kind: EntityKind, source_id, new_id: int):
        self._forward[(kind, str(source_id))] = new_id
        self._reverse[(kind, new_id)] = str(source_id)
        self._highest[kind] = max(self._highest.get(kind, 0), new_id)

    def source_id_for(self, kind: EntityKind, new_id: int):
        return self._reverse.get((kind, new_id))

    def items(self):
        return sorted(self._forward.items(), key=lambda entry: (entry[0][0].value, entry[1]))

    def clear(self):
        self._forward.clear()
        self._reverse.clear()
        self._highest.clear()


def camel_to_snake(name: str) -> str:
    if name in COLUMN_RENAMES:
        return COLUMN_RENAMES[name]
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _parse_datetime(value):
    if isinstance(value, datetime):
        return value
    text = str(value).replace("Z", "+00:00")
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def convert_value(column_type, value):
    """Coerce a JSON value to what the column stores; raises InvalidValue when it can't."""
    if value is None:
        return None
    try:
        if isinstance(column_type, DateTime):
            return _parse_datetime(value)
        if isinstance(column_type, Date):
            return _parse_datetime(value).date() if "T" in str(value) else date.fromisoformat(str(value))
        if isinstance(column_type, Boolean):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes")
            return bool(value)
        if isinstance(column_type, Integer):
            return int(float(value))
        if isinstance(column_type, Float):
            return float(value)
        if isinstance(column_type, JSON) and isinstance(value, str):
            return json.loads(value)
    except (TypeError, ValueError) as exc:
        raise InvalidValue(str(exc)) from exc
    return value


def transform_record(kind: EntityKind, raw: dict, registry: IdRegistry, source_name: str = "", index: int = 0):
    """Build the column values for one source record. Unknown keys are dropped."""
    model = MODEL_BY_KIND[kind]
    columns = model.__table__.columns
    own_id_field = SOURCE_ID_FIELDS.get(kind, "id")

    values = {}
    for key, value in raw.items():
        if key == own_id_field:
            if value is None:
                continue
            values["id"] = value if isinstance(value, int) else registry.resolve(kind, value)
            continue

        if key in REFERENCE_FIELDS and isinstance(value, str):
            value = registry.resolve(REFERENCE_FIELDS[key], value)

        column_name = camel_to_snake(key)
        if column_name not in columns:
            logger.debug("%s[%d]: dropping unknown field %s", source_name, index, key)
            continue

        try:
            values[column_name] = convert_value(columns[column_name].type, value)
        except InvalidValue as exc:
            logger.warning("%s[%d]: invalid value for %s (%r): %s", source_name, index, key, value, exc)
    return values


def load_json_records(path: Path):
    """Reads a seed file; returns None when it is missing or malformed."""
    if not path.exists():
        logger.warning("File %s not found, skipping...", path.name)
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Error parsing JSON in %s: %s", path.name, exc)
        return None

    if not isinstance(data, list):
        logger.error("%s: data must be an array", path.name)
        return None
    if not all(isinstance(item, dict) for item in data):
        logger.error("%s: every item must be an object", path.name)
        return None
    return data


def seed_kind(db: Session, kind: EntityKind, records, registry: IdRegistry) -> int:
    """Inserts records one at a time so a bad record only skips itself. Returns the insert count."""
    model = MODEL_BY_KIND[kind]
    own_id_field = SOURCE_ID_FIELDS.get(kind, "id")
    inserted = 0

    for index, raw in enumerate(records):
        values = transform_record(kind, raw, registry, kind.file_name, index)
        try:
            row = model(**values)
            db.add(row)
            db.commit()
        except (SQLAlchemyError, TypeError) as exc:
            db.rollback()
            logger.warning("Skipped record %d in %s: %s", index + 1, kind.file_name, exc)
            continue

        source_id = raw.get(own_id_field)
        if source_id is not None:
            registry.record(kind, source_id, row.id)
        inserted += 1

    logger.info("Seeded %d/%d records for %s", inserted, len(records), kind.value)
    if inserted < len(records):
        logger.warning("%d records were skipped due to errors", len(records) - inserted)
    return inserted


def delete_all_data(db: Session):
    logger.info("Clearing existing data...")
    for kind in reversed(SEEDING_ORDER):
        model = MODEL_BY_KIND[kind]
        try:
            deleted = db.query(model).delete()
            db.commit()
            logger.info("Cleared %d records from %s", deleted, kind.value)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Error clearing %s: %s", kind.value, exc)


SAMPLE_BLOG_POSTS = [
    {
        "title": "Climate Change Impact on Sri Lankan Fisheries",
        "slug": "climate-change-impact-sri-lankan-fisheries",
        "content": (
            "Rising sea temperatures shift fish migration patterns and changing weather "
            "shortens fishing seasons. This analysis looks at the current situation and "
            "adaptation strategies for coastal communities."
        ),
        "excerpt": "How climate change affects Sri Lankan fisheries and what can be done about it.",
        "category": "climate_change",
        "tags": ["climate", "fisheries", "sri lanka", "adaptation"],
        "author": "Dr. Marine Researcher",
        "published_at": datetime(2024, 1, 15),
        "read_count": 245,
    },
    {
        "title": "Policy Recommendations for Sustainable Fishing",
        "slug": "policy-recommendations-sustainable-fishing",
        "content": (
            "Sustainable fishing needs a policy framework: quotas, seasonal restrictions "
            "and community-based management."
        ),
        "excerpt": "Key policy recommendations for sustainable fishing in Sri Lanka.",
        "category": "policy",
        "tags": ["policy", "sustainability", "management", "governance"],
        "author": "Policy Expert",
        "published_at": datetime(2024, 2, 10),
        "read_count": 189,
    },
    {
        "title": "Combating Overfishing in Coastal Waters",
        "slug": "combating-overfishing-coastal-waters",
        "content": (
            "Overfishing threatens marine ecosystems and livelihoods. This article examines "
            "current trends and evidence-based solutions for coastal water management."
        ),
        "excerpt": "Strategies to combat overfishing and protect marine ecosystems.",
        "category": "overfishing",
        "tags": ["overfishing", "conservation", "marine", "ecosystem"],
        "author": "Marine Biologist",
        "published_at": datetime(2024, 3, 5),
        "read_count": 312,
    },
    {
        "title": "Understanding IUU Fishing: Challenges and Solutions",
        "slug": "understanding-iuu-fishing-challenges-solutions",
        "content": (
            "Illegal, unreported and unregulated fishing undermines conservation and the "
            "economy. This guide covers detection, enforcement and international cooperation."
        ),
        "excerpt": "An overview of IUU fishing and how to address it.",
        "category": "iuu_fishing",
        "tags": ["IUU", "illegal fishing", "enforcement", "monitoring"],
        "author": "Fisheries Inspector",
        "published_at": datetime(2024, 3, 20),
        "read_count": 156,
    },
]

SAMPLE_LOCATIONS = [location for location in LOCATIONS if location.name != "Hambantota"]
COASTAL_LOCATIONS = {"Colombo", "Negombo", "Galle", "Trincomalee"}


def generate_sample_data(db: Session, days: int = 7, rng=None):
    """Sample blog posts plus a week of weather (and marine, for coastal points) forecasts."""
    rng = rng or random.Random()
    logger.info("Generating sample data...")

    try:
        for post in SAMPLE_BLOG_POSTS:
            db.add(BlogPost(is_published=True, **post))
        db.commit()
        logger.info("Created %d sample blog posts", len(SAMPLE_BLOG_POSTS))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating sample blog posts: %s", exc)

    try:
        start = utcnow().date()
        for offset in range(days):
            forecast_date = start + timedelta(days=offset)
            for location in SAMPLE_LOCATIONS:
                db.add(WeatherForecast(
                    forecast_date=forecast_date,
                    location=location.name,
                    latitude=location.lat,
                    longitude=location.lng,
                    temperature_2m_mean=25 + rng.random() * 8,
                    wind_speed_10m_max=10 + rng.random() * 20,
                    wind_gusts_10m_max=20 + rng.random() * 30,
                    cloud_cover_mean=rng.random() * 100,
                    precipitation_sum=rng.random() * 15,
                    relative_humidity_2m_mean=70 + rng.random() * 25,
                ))
                if location.name in COASTAL_LOCATIONS:
                    db.add(MarineForecast(
                        forecast_date=forecast_date,
                        latitude=location.lat,
                        longitude=location.lng,
                        wave_height_max=0.5 + rng.random() * 2.5,
                        wind_wave_height_max=0.2 + rng.random(),
                        swell_wave_height_max=0.5 + rng.random() * 1.5,
                        wave_period_max=6 + rng.random() * 8,
                        wave_direction_dominant=180 + rng.random() * 180,
                    ))
        db.commit()
        logger.info("Created weather and marine forecasts for %d locations over %d days", len(SAMPLE_LOCATIONS), days)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating sample forecasts: %s", exc)


def reset_id_sequences(db: Session):
    """
    Moves each PostgreSQL id sequence past the largest seeded id.
    Rows are inserted with explicit ids, which the sequences never see.
    """
    if db.get_bind().dialect.name != "postgresql":
        return

    for kind in SEEDING_ORDER:
        table = MODEL_BY_KIND[kind].__table__
        if "id" not in table.c:
            continue
        db.execute(
            text(
                f"SELECT setval(pg_get_serial_sequence(:table_name, 'id'), "
                f"COALESCE(MAX(id), 1), MAX(id) IS NOT NULL) FROM {table.name}"
            ),
            {"table_name": table.name},
        )
    db.commit()
    logger.info("Reset id sequences for %d tables", len(SEEDING_ORDER))


def display_final_counts(db: Session):
    logger.info("Final record counts:")
    for kind in SEEDING_ORDER:
        logger.info("  %s: %d", kind.value, db.query(MODEL_BY_KIND[kind]).count())


def run_seed(db: Session, data_dir: Path, clear: bool = True, samples: bool = True, registry: IdRegistry = None):
    registry = registry or IdRegistry()

    if clear:
        delete_all_data(db)
    if samples:
        generate_sample_data(db)

    results = {}
    for kind in SEEDING_ORDER:
        logger.info("Processing %s...", kind.file_name)
        records = load_json_records(data_dir / kind.file_name)
        if records is None:
            continue
        if not records:
            logger.info("%s: no data to seed", kind.file_name)
            continue
        results[kind] = seed_kind(db, kind, records, registry)

    reset_id_sequences(db)
    display_final_counts(db)
    for (kind, source_id), new_id in registry.items():
        logger.debug("  %s: %s -> %d", kind.value, source_id, new_id)
    return results


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the fisheries database from JSON files")
    parser.add_argument("--data-dir", type=Path, default=Path("seed_data"), help="Directory holding <kind>.json files")
    parser.add_argument("--no-clear", action="store_true", help="Keep existing rows")
    parser.add_argument("--no-samples", action="store_true", help="Skip generated blog posts and forecasts")
    parser.add_argument("--verbose", action="store_true", help="Log the id mappings")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    started = datetime.now()
    logger.info("Starting database seeding process...")
    init_db()
    try:
        with session_scope() as db:
            run_seed(db, args.data_dir, clear=not args.no_clear, samples=not args.no_samples)
    except SQLAlchemyError:
        logger.exception("Seeding process failed")
        return 1

    logger.info("Database seeding completed in %.2f seconds", (datetime.now() - started).total_seconds())
    return 0


if __name__ == "__main__":
    sys.exit(main())

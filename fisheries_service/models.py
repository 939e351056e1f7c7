from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base # Import the Base class from our database setup

ORDER_STATUSES = ("pending", "scheduled", "in_progress", "delivered", "completed", "cancelled")
COMPLETED_STATUSES = ("delivered", "completed")
TRUCK_STATUSES = ("available", "in_transit", "maintenance", "unavailable")


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# A customer who places orders.
class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone_number = Column(String(30))
    is_active = Column(Boolean, default=True, nullable=False)

    orders = relationship("Order", back_populates="user")


# Reference data: a kind of fish that can be ordered and priced.
class FishType(Base):
    __tablename__ = "fish_types"

    id = Column(Integer, primary_key=True, index=True)
    fish_name = Column(String(100), unique=True, nullable=False)
    category = Column(String(50))
    average_shelf_life_hours = Column(Integer)
    is_active = Column(Boolean, default=True, nullable=False) # Only active types get predictions.


class Harbor(Base):
    __tablename__ = "harbors"

    id = Column(Integer, primary_key=True, index=True)
    harbor_name = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True)
    driver_name = Column(String(200), nullable=False)
    phone_number = Column(String(30))


class Truck(TimestampMixin, Base):
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True, index=True)
    license_plate = Column(String(20), unique=True, nullable=False)
    capacity_kg = Column(Integer)
    cost_per_km = Column(Float)
    availability_status = Column(String(20), default="available", nullable=False) # One of TRUCK_STATUSES.
    current_latitude = Column(Float)
    current_longitude = Column(Float)
    driver_id = Column(Integer, ForeignKey("drivers.id"))

    driver = relationship("Driver")


# Defines the ORM model for an 'Order' stored in the database.
class Order(TimestampMixin, Base):
    # The name of the database table.
    __tablename__ = "orders"

    # Define the table columns.
    id = Column(Integer, primary_key=True, index=True) # Auto-incrementing primary key.
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    pickup_harbor_id = Column(Integer, ForeignKey("harbors.id"))
    assigned_truck_id = Column(Integer, ForeignKey("trucks.id"))
    delivery_date = Column(DateTime, nullable=False)
    delivery_time_slot = Column(String(50))
    freshness_requirement_hours = Column(Integer, default=24, nullable=False) # Max hours from catch to delivery.
    delivery_latitude = Column(Float, nullable=False)
    delivery_longitude = Column(Float, nullable=False)
    delivery_address = Column(String(500), nullable=False)
    special_instructions = Column(String(500))
    total_amount = Column(Float, nullable=False) # Sum of the item subtotals at creation time.
    status = Column(String(20), default="pending", nullable=False, index=True) # One of ORDER_STATUSES.

    user = relationship("User", back_populates="orders")
    pickup_harbor = relationship("Harbor")
    assigned_truck = relationship("Truck")
    order_items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    status_history = relationship(
        "OrderStatusHistory", back_populates="order", cascade="all, delete-orphan"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    fish_type_id = Column(Integer, ForeignKey("fish_types.id"), nullable=False)
    quantity_kg = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False) # quantity_kg * unit_price

    order = relationship("Order", back_populates="order_items")
    fish_type = relationship("FishType")


# Append-only log of the status changes of an order.
class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    notes = Column(Text)
    status_date = Column(DateTime, default=utcnow, nullable=False)

    order = relationship("Order", back_populates="status_history")


# Observed market prices, entered manually or loaded from seed data.
class FishPricing(Base):
    __tablename__ = "fish_pricing"

    id = Column(Integer, primary_key=True, index=True)
    fish_type_id = Column(Integer, ForeignKey("fish_types.id"), nullable=False, index=True)
    price_date = Column(DateTime, nullable=False)
    retail_price = Column(Float, nullable=False)
    wholesale_price = Column(Float, nullable=False)
    market_demand_level = Column(String(10), default="medium")
    supply_availability = Column(Integer, default=0)
    is_actual = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    fish_type = relationship("FishType")


class DailyPricePrediction(TimestampMixin, Base):
    __tablename__ = "daily_price_predictions"
    __table_args__ = (UniqueConstraint("fish_type_id", "prediction_date"),)

    id = Column(Integer, primary_key=True, index=True)
    fish_type_id = Column(Integer, ForeignKey("fish_types.id"), nullable=False)
    prediction_date = Column(Date, nullable=False)
    retail_price = Column(Float, nullable=False)
    wholesale_price = Column(Float, nullable=False)
    confidence = Column(Float)

    fish_type = relationship("FishType")


class WeatherForecast(TimestampMixin, Base):
    __tablename__ = "weather_forecasts"
    __table_args__ = (UniqueConstraint("forecast_date", "latitude", "longitude"),)

    id = Column(Integer, primary_key=True, index=True)
    forecast_date = Column(Date, nullable=False, index=True)
    location = Column(String(100), nullable=False) # Human readable label, e.g. "Galle".
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    temperature_2m_mean = Column(Float)
    wind_speed_10m_max = Column(Float)
    wind_gusts_10m_max = Column(Float)
    cloud_cover_mean = Column(Float)
    precipitation_sum = Column(Float)
    relative_humidity_2m_mean = Column(Float)


class MarineForecast(Base):
    __tablename__ = "marine_forecasts"

    id = Column(Integer, primary_key=True, index=True)
    forecast_date = Column(Date, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    wave_height_max = Column(Float)
    wind_wave_height_max = Column(Float)
    swell_wave_height_max = Column(Float)
    wave_period_max = Column(Float)
    wave_direction_dominant = Column(Float)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class BlogPost(TimestampMixin, Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(300), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(500))
    category = Column(String(30), nullable=False)
    tags = Column(JSON, default=list)
    author = Column(String(200))
    is_published = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime)
    read_count = Column(Integer, default=0, nullable=False)


# One settings document per user.
class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id = Column(Integer, primary_key=True) # Not a foreign key: settings may precede the user row.
    settings = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

BlogCategory = Literal["policy", "climate_change", "overfishing", "iuu_fishing"]


# Naive datetimes are taken to be UTC already.
def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ApiModel(BaseModel):
    """Request bodies use camelCase keys on the wire; snake_case is accepted too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Order Models ---
class OrderItemRequest(ApiModel):
    """One line of an incoming order."""
    fish_type_id: int = Field(gt=0)
    quantity_kg: float = Field(gt=0, le=1000)
    unit_price: float = Field(gt=0)


class CreateOrderRequest(ApiModel):
    """Defines the data model for an incoming order request."""
    user_id: int = Field(gt=0)
    delivery_date: datetime
    delivery_time_slot: Optional[str] = None
    freshness_requirement_hours: int = Field(24, ge=1, le=168)
    delivery_latitude: float = Field(ge=-90, le=90)
    delivery_longitude: float = Field(ge=-180, le=180)
    delivery_address: str = Field(min_length=10, max_length=500)
    special_instructions: Optional[str] = Field(None, max_length=500)
    order_items: List[OrderItemRequest] = Field(min_length=1, max_length=10)

    @field_validator("delivery_date")
    @classmethod
    def delivery_date_not_in_past(cls, value: datetime) -> datetime:
        value = _as_naive_utc(value)
        if value < datetime.now(timezone.utc).replace(tzinfo=None):
            raise ValueError("delivery date must not be in the past")
        return value


# --- Pricing Models ---
class AddPriceRequest(ApiModel):
    """An observed market price entered by hand."""
    fish_type_id: int = Field(gt=0)
    price_date: datetime
    retail_price: float = Field(gt=0)
    wholesale_price: float = Field(gt=0)
    market_demand_level: Literal["low", "medium", "high"] = "medium"
    supply_availability: int = Field(0, ge=0)

    @field_validator("price_date")
    @classmethod
    def price_date_not_in_future(cls, value: datetime) -> datetime:
        value = _as_naive_utc(value)
        if value > datetime.now(timezone.utc).replace(tzinfo=None):
            raise ValueError("price date must not be in the future")
        return value


# --- Settings Models ---
class NotificationSettings(ApiModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None
    push: Optional[bool] = None


class PreferenceSettings(ApiModel):
    currency: Optional[Literal["LKR", "USD"]] = None
    language: Optional[Literal["en", "si", "ta"]] = None
    timezone: Optional[str] = None


class DeliverySettings(ApiModel):
    default_address: Optional[str] = None
    preferred_time_slot: Optional[Literal["morning", "afternoon", "evening"]] = None
    special_instructions: Optional[str] = Field(None, max_length=500)


class SettingsUpdate(ApiModel):
    """Partial settings document; only the keys that are sent get merged."""
    notifications: Optional[NotificationSettings] = None
    preferences: Optional[PreferenceSettings] = None
    delivery: Optional[DeliverySettings] = None

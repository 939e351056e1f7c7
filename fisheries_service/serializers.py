"""Formatting of ORM rows into the JSON payloads the API returns."""


def _iso(value):
    return value.isoformat() if value is not None else None


def fish_type_to_dict(fish_type):
    return {
        "id": fish_type.id,
        "fishName": fish_type.fish_name,
        "category": fish_type.category,
        "averageShelfLifeHours": fish_type.average_shelf_life_hours,
        "isActive": fish_type.is_active,
    }


def user_to_dict(user):
    return {
        "id": user.id,
        "fullName": user.full_name,
        "email": user.email,
        "phoneNumber": user.phone_number,
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
    }


def driver_to_dict(driver):
    if driver is None:
        return None
    return {"id": driver.id, "driverName": driver.driver_name, "phoneNumber": driver.phone_number}


def truck_to_dict(truck, include_driver=False):
    if truck is None:
        return None
    data = {
        "id": truck.id,
        "licensePlate": truck.license_plate,
        "capacityKg": truck.capacity_kg,
        "availabilityStatus": truck.availability_status,
        "currentLatitude": truck.current_latitude,
        "currentLongitude": truck.current_longitude,
    }
    if include_driver:
        data["driver"] = driver_to_dict(truck.driver)
    return data


def harbor_to_dict(harbor):
    if harbor is None:
        return None
    return {
        "id": harbor.id,
        "harborName": harbor.harbor_name,
        "latitude": harbor.latitude,
        "longitude": harbor.longitude,
    }


def order_item_to_dict(item, include_fish_type=False):
    data = {
        "id": item.id,
        "orderId": item.order_id,
        "fishTypeId": item.fish_type_id,
        "quantityKg": item.quantity_kg,
        "unitPrice": item.unit_price,
        "subtotal": item.subtotal,
    }
    if include_fish_type:
        data["fishType"] = fish_type_to_dict(item.fish_type)
    return data


def order_to_dict(order):
    return {
        "id": order.id,
        "userId": order.user_id,
        "pickupHarborId": order.pickup_harbor_id,
        "assignedTruckId": order.assigned_truck_id,
        "deliveryDate": _iso(order.delivery_date),
        "deliveryTimeSlot": order.delivery_time_slot,
        "freshnessRequirementHours": order.freshness_requirement_hours,
        "deliveryLatitude": order.delivery_latitude,
        "deliveryLongitude": order.delivery_longitude,
        "deliveryAddress": order.delivery_address,
        "specialInstructions": order.special_instructions,
        "totalAmount": order.total_amount,
        "status": order.status,
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
    }


def order_summary_to_dict(order, include_truck=False):
    """Order with its items and customer, as used by the list endpoints."""
    data = order_to_dict(order)
    data["orderItems"] = [order_item_to_dict(item, include_fish_type=True) for item in order.order_items]
    data["user"] = user_to_dict(order.user)
    if include_truck:
        data["assignedTruck"] = truck_to_dict(order.assigned_truck)
    return data


def order_detail_to_dict(order):
    data = order_summary_to_dict(order)
    data["pickupHarbor"] = harbor_to_dict(order.pickup_harbor)
    data["assignedTruck"] = truck_to_dict(order.assigned_truck, include_driver=True)
    history = sorted(order.status_history, key=lambda entry: entry.status_date, reverse=True)
    data["statusHistory"] = [
        {"id": entry.id, "status": entry.status, "notes": entry.notes, "statusDate": _iso(entry.status_date)}
        for entry in history
    ]
    return data


def fish_price_to_dict(price):
    return {
        "id": price.id,
        "fishTypeId": price.fish_type_id,
        "fishType": fish_type_to_dict(price.fish_type) if price.fish_type else None,
        "priceDate": _iso(price.price_date),
        "retailPrice": price.retail_price,
        "wholesalePrice": price.wholesale_price,
        "marketDemandLevel": price.market_demand_level,
        "supplyAvailability": price.supply_availability,
        "isActual": price.is_actual,
    }


def prediction_to_dict(prediction):
    return {
        "id": prediction.id,
        "fishTypeId": prediction.fish_type_id,
        "fishType": fish_type_to_dict(prediction.fish_type),
        "predictionDate": _iso(prediction.prediction_date),
        "retailPrice": prediction.retail_price,
        "wholesalePrice": prediction.wholesale_price,
        "confidence": prediction.confidence,
    }


def weather_to_dict(forecast):
    return {
        "id": forecast.id,
        "forecastDate": _iso(forecast.forecast_date),
        "location": forecast.location,
        "latitude": forecast.latitude,
        "longitude": forecast.longitude,
        "temperature2mMean": forecast.temperature_2m_mean,
        "windSpeed10mMax": forecast.wind_speed_10m_max,
        "windGusts10mMax": forecast.wind_gusts_10m_max,
        "cloudCoverMean": forecast.cloud_cover_mean,
        "precipitationSum": forecast.precipitation_sum,
        "relativeHumidity2mMean": forecast.relative_humidity_2m_mean,
    }


def blog_post_to_dict(post):
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "content": post.content,
        "excerpt": post.excerpt,
        "category": post.category,
        "tags": post.tags or [],
        "author": post.author,
        "publishedAt": _iso(post.published_at),
        "readCount": post.read_count,
    }

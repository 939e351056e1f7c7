"""Order ingestion: derived totals, atomic create, validation and read endpoints."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from fisheries_service import models
from fisheries_service.schemas import CreateOrderRequest
from fisheries_service.services import orders as order_service


def _row_counts(db):
    db.expire_all()
    return (
        db.query(models.Order).count(),
        db.query(models.OrderItem).count(),
        db.query(models.OrderStatusHistory).count(),
    )


class TestCreateOrderService:

    def test_total_is_sum_of_item_subtotals(self, db, reference_data, order_payload):
        order, items = order_service.create_order(db, CreateOrderRequest(**order_payload))

        assert order.total_amount == 2200
        assert sorted(item.subtotal for item in items) == [1000, 1200]
        assert order.total_amount == sum(item.subtotal for item in items)
        assert order.status == "pending"
        assert order.freshness_requirement_hours == 24

    def test_creates_initial_status_history(self, db, reference_data, order_payload):
        order, _ = order_service.create_order(db, CreateOrderRequest(**order_payload))

        history = db.query(models.OrderStatusHistory).filter_by(order_id=order.id).all()
        assert len(history) == 1
        assert history[0].status == "pending"
        assert history[0].notes == "Order created"

    def test_unknown_fish_type_rolls_back_everything(self, db, reference_data, order_payload):
        order_payload["orderItems"][1]["fishTypeId"] = 999

        with pytest.raises(Exception):
            order_service.create_order(db, CreateOrderRequest(**order_payload))

        assert _row_counts(db) == (0, 0, 0)

    def test_unknown_user_rolls_back_everything(self, db, reference_data, order_payload):
        order_payload["userId"] = 42

        with pytest.raises(Exception):
            order_service.create_order(db, CreateOrderRequest(**order_payload))

        assert _row_counts(db) == (0, 0, 0)

    def test_snake_case_keys_are_accepted(self, reference_data, order_payload):
        req = CreateOrderRequest(
            user_id=1,
            delivery_date=order_payload["deliveryDate"],
            delivery_latitude=7.2,
            delivery_longitude=79.8,
            delivery_address="Beach Road, Negombo town",
            order_items=[{"fish_type_id": 1, "quantity_kg": 1.5, "unit_price": 800}],
        )
        assert req.order_items[0].quantity_kg == 1.5

    def test_delivery_time_a_minute_ago_rejected(self, reference_data, order_payload):
        order_payload["deliveryDate"] = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()

        with pytest.raises(ValidationError):
            CreateOrderRequest(**order_payload)

    def test_delivery_time_within_the_hour_accepted(self, reference_data, order_payload):
        later = datetime.now(timezone.utc) + timedelta(hours=1)
        order_payload["deliveryDate"] = later.isoformat()

        req = CreateOrderRequest(**order_payload)

        assert req.delivery_date == later.replace(tzinfo=None)


class TestCreateOrderEndpoint:

    def test_create_order_returns_201_with_items(self, client, reference_data, order_payload):
        response = client.post("/api/v1/orders", json=order_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["order"]["totalAmount"] == 2200
        assert body["data"]["order"]["status"] == "pending"
        assert [item["subtotal"] for item in body["data"]["items"]] == [1000, 1200]

    def test_all_violations_reported_together(self, client, db, reference_data, order_payload):
        order_payload["deliveryLatitude"] = 120
        order_payload["deliveryAddress"] = "short"
        order_payload["orderItems"][0]["quantityKg"] = 0
        order_payload["orderItems"][1]["unitPrice"] = -5

        response = client.post("/api/v1/orders", json=order_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert len(body["errors"]) == 4
        assert _row_counts(db) == (0, 0, 0)

    def test_past_delivery_date_rejected(self, client, reference_data, order_payload):
        order_payload["deliveryDate"] = (date.today() - timedelta(days=3)).isoformat()

        response = client.post("/api/v1/orders", json=order_payload)

        assert response.status_code == 400
        assert any("past" in error for error in response.json()["errors"])

    @pytest.mark.parametrize("count", [0, 11])
    def test_item_count_bounds(self, client, reference_data, order_payload, count):
        order_payload["orderItems"] = [{"fishTypeId": 1, "quantityKg": 1, "unitPrice": 100}] * count

        response = client.post("/api/v1/orders", json=order_payload)

        assert response.status_code == 400

    def test_quantity_above_limit_rejected(self, client, reference_data, order_payload):
        order_payload["orderItems"][0]["quantityKg"] = 1000.5

        assert client.post("/api/v1/orders", json=order_payload).status_code == 400

    def test_persistence_failure_is_generic_error(self, client, db, reference_data, order_payload):
        order_payload["orderItems"][0]["fishTypeId"] = 77

        response = client.post("/api/v1/orders", json=order_payload)

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to create order"}
        assert _row_counts(db) == (0, 0, 0)


class TestOrderReads:

    @pytest.fixture
    def created_order(self, client, reference_data, order_payload):
        return client.post("/api/v1/orders", json=order_payload).json()["data"]["order"]

    def test_get_order_by_id(self, client, created_order):
        response = client.get(f"/api/v1/orders/{created_order['id']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalAmount"] == 2200
        assert len(data["orderItems"]) == 2
        assert data["orderItems"][0]["fishType"]["fishName"] == "Yellowfin Tuna"
        assert data["user"]["email"] == "nimal@example.com"
        assert data["statusHistory"][0]["notes"] == "Order created"
        assert data["assignedTruck"] is None

    def test_missing_order_is_404(self, client, reference_data):
        response = client.get("/api/v1/orders/9999")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Order not found"}

    def test_non_numeric_id_is_400(self, client):
        assert client.get("/api/v1/orders/abc").status_code == 400

    def test_pending_orders_paginated(self, client, created_order, order_payload):
        client.post("/api/v1/orders", json=order_payload)

        response = client.get("/api/v1/orders/pending", params={"page": 1, "limit": 1})

        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}

    def test_latest_transactions_only_completed(self, client, db, created_order):
        assert client.get("/api/v1/orders/transactions/latest").json()["data"] == []

        order = db.get(models.Order, created_order["id"])
        order.status = "delivered"
        db.commit()

        body = client.get("/api/v1/orders/transactions/latest").json()
        assert [o["id"] for o in body["data"]] == [created_order["id"]]

    def test_invalid_pagination_rejected(self, client):
        assert client.get("/api/v1/orders/pending", params={"limit": 500}).status_code == 400

import json
import random
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from fisheries_service import models
from fisheries_service.database import session_scope
from fisheries_service.seed import (
    EntityKind,
    IdRegistry,
    SAMPLE_BLOG_POSTS,
    SEEDING_ORDER,
    camel_to_snake,
    generate_sample_data,
    load_json_records,
    reset_id_sequences,
    run_seed,
    transform_record,
)


def _write(directory, kind, records):
    (directory / kind.file_name).write_text(json.dumps(records), encoding="utf-8")


class TestIdRegistry:

    def test_assigns_sequential_ids_per_kind(self):
        registry = IdRegistry()

        assert registry.resolve(EntityKind.FISH_TYPES, "FT-A") == 1
        assert registry.resolve(EntityKind.FISH_TYPES, "FT-B") == 2
        assert registry.resolve(EntityKind.FISH_TYPES, "FT-A") == 1
        assert registry.resolve(EntityKind.USERS, "U-1") == 1

    def test_reverse_lookup(self):
        registry = IdRegistry()
        registry.record(EntityKind.ORDERS, "ORD-9", 14)

        assert registry.source_id_for(EntityKind.ORDERS, 14) == "ORD-9"
        assert registry.resolve(EntityKind.ORDERS, "ORD-10") == 15

    def test_clear(self):
        registry = IdRegistry()
        registry.resolve(EntityKind.HARBORS, "H1")
        registry.clear()

        assert registry.items() == []


def test_camel_to_snake():
    assert camel_to_snake("fishName") == "fish_name"
    assert camel_to_snake("temperature2mMean") == "temperature_2m_mean"
    assert camel_to_snake("id") == "id"


class TestTransformRecord:

    def test_converts_types_and_drops_unknown_keys(self):
        values = transform_record(
            EntityKind.FISH_TYPES,
            {"fishTypeId": "FT-A", "fishName": "Seer", "averageShelfLifeHours": "36",
             "isActive": "false", "legacyCode": "X1"},
            IdRegistry(),
        )

        assert values == {"id": 1, "fish_name": "Seer", "average_shelf_life_hours": 36, "is_active": False}

    def test_string_references_are_remapped(self):
        registry = IdRegistry()
        registry.record(EntityKind.ORDERS, "ORD-1", 5)
        registry.record(EntityKind.FISH_TYPES, "FT-B", 2)

        values = transform_record(
            EntityKind.ORDER_ITEMS,
            {"orderId": "ORD-1", "fishTypeId": "FT-B", "quantityKg": "2.5", "unitPrice": 900, "subtotal": 2250},
            registry,
        )

        assert values["order_id"] == 5
        assert values["fish_type_id"] == 2
        assert values["quantity_kg"] == 2.5

    def test_dates_are_parsed(self):
        values = transform_record(
            EntityKind.WEATHER_FORECASTS,
            {"forecastDate": "2026-02-01", "location": "Galle", "latitude": 6.05, "longitude": 80.22,
             "temperature2mMean": 28.1, "createdAt": "2026-01-31T10:00:00"},
            IdRegistry(),
        )

        assert values["forecast_date"] == date(2026, 2, 1)
        assert values["temperature_2m_mean"] == 28.1
        assert values["created_at"] == datetime(2026, 1, 31, 10, 0)

    def test_invalid_value_is_dropped(self):
        values = transform_record(
            EntityKind.FISH_TYPES, {"fishName": "Seer", "averageShelfLifeHours": "soon"}, IdRegistry()
        )

        assert values == {"fish_name": "Seer"}


def test_load_json_records_rejects_non_arrays(tmp_path):
    path = tmp_path / "harbors.json"
    path.write_text(json.dumps({"harborName": "Beruwala"}), encoding="utf-8")

    assert load_json_records(path) is None
    assert load_json_records(tmp_path / "missing.json") is None


def test_run_seed_remaps_ids_and_skips_bad_records(db, tmp_path):
    _write(tmp_path, EntityKind.FISH_TYPES, [
        {"fishTypeId": "FT-A", "fishName": "Yellowfin Tuna", "category": "pelagic"},
        {"fishTypeId": "FT-B", "fishName": "Seer", "category": "pelagic"},
    ])
    _write(tmp_path, EntityKind.USERS, [
        {"id": "U-1", "fullName": "Kamala Silva", "email": "kamala@example.com"},
    ])
    _write(tmp_path, EntityKind.ORDERS, [
        {"orderId": "ORD-1", "userId": "U-1", "deliveryDate": "2026-01-10T08:00:00",
         "deliveryLatitude": 6.9, "deliveryLongitude": 79.8, "deliveryAddress": "Marine Drive, Colombo 06",
         "totalAmount": 1800, "status": "delivered"},
    ])
    _write(tmp_path, EntityKind.ORDER_ITEMS, [
        {"orderId": "ORD-1", "fishTypeId": "FT-B", "quantityKg": 2, "unitPrice": 900, "subtotal": 1800},
        {"orderId": "ORD-1", "fishTypeId": "FT-A"},
    ])

    results = run_seed(db, tmp_path, clear=True, samples=False)

    assert results[EntityKind.FISH_TYPES] == 2
    assert results[EntityKind.ORDERS] == 1
    assert results[EntityKind.ORDER_ITEMS] == 1
    assert EntityKind.HARBORS not in results

    item = db.query(models.OrderItem).one()
    assert item.fish_type.fish_name == "Seer"
    assert item.order_id == db.query(models.Order).one().id


def test_generate_sample_data(db):
    generate_sample_data(db, days=2, rng=random.Random(7))

    assert db.query(models.BlogPost).count() == len(SAMPLE_BLOG_POSTS)
    assert db.query(models.WeatherForecast).count() == 2 * 5
    assert db.query(models.MarineForecast).count() == 2 * 4


def test_session_scope_commits_and_rolls_back(session_factory, db):
    with session_scope(session_factory) as session:
        session.add(models.Harbor(harbor_name="Beruwala", latitude=6.47, longitude=79.98))

    with pytest.raises(RuntimeError):
        with session_scope(session_factory) as session:
            session.add(models.Harbor(harbor_name="Mirissa", latitude=5.95, longitude=80.46))
            session.flush()
            raise RuntimeError("abort")

    assert [h.harbor_name for h in db.query(models.Harbor).all()] == ["Beruwala"]


def test_registry_continues_after_highest_recorded_id():
    registry = IdRegistry()
    registry.record(EntityKind.USERS, "U-7", 500)
    registry.record(EntityKind.USERS, "U-3", 12)

    assert registry.resolve(EntityKind.USERS, "U-new") == 501
    registry.clear()
    assert registry.resolve(EntityKind.USERS, "U-new") == 1


class TestResetIdSequences:

    def test_postgres_sequences_moved_past_seeded_ids(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "postgresql"

        reset_id_sequences(session)

        assert session.execute.call_count == len(SEEDING_ORDER)
        statements = [str(call.args[0]) for call in session.execute.call_args_list]
        assert all("setval(pg_get_serial_sequence" in sql for sql in statements)
        assert any(sql.endswith("FROM orders") for sql in statements)
        assert session.execute.call_args_list[0].args[1] == {"table_name": "fish_types"}
        session.commit.assert_called_once()

    def test_other_databases_untouched(self, db):
        db.execute = MagicMock()

        reset_id_sequences(db)

        db.execute.assert_not_called()

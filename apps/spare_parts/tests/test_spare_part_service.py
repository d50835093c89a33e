from __future__ import annotations

import logging

import pytest

from apps.spare_parts.schemas import SparePartCreate, SparePartStockUpdate, SparePartUpdate
from apps.spare_parts.services import SparePartService, is_low_stock
from core.exceptions import ConcurrencyConflict, NotFoundError, ValidationError
from core.locks import KeyedLock, spare_part_key


@pytest.fixture()
def service(storage, cache, locks):
    return SparePartService(storage, cache, locks)


def test_create_lowercases_part_type_and_resolves_relations(service, catalog):
    brand, model = catalog
    part = service.create_spare_part(SparePartCreate(
        name="Galaxy S21 battery",
        part_type=" Battery ",
        brand_id=brand["id"],
        model_id=model["id"],
        quantity=4,
        purchase_price=15,
        selling_price=30,
        low_stock_alert=1,
    ))

    assert part["part_type"] == "battery"
    assert part["brand"]["name"] == "Samsung"
    assert part["model"]["name"] == "Galaxy S21"


def test_update_clears_screen_quality_but_ignores_other_nulls(service, make_part):
    part = make_part()

    updated = service.update_spare_part(
        part["id"], SparePartUpdate(screen_quality=None, name=None, selling_price=75)
    )

    assert updated["screen_quality"] is None
    assert updated["name"] == part["name"]
    assert updated["selling_price"] == 75


def test_update_stock(service, make_part):
    part = make_part(quantity=3)

    assert service.update_stock(part["id"], SparePartStockUpdate(quantity_change=5))["quantity"] == 8
    assert service.update_stock(part["id"], SparePartStockUpdate(quantity_change=-8))["quantity"] == 0

    with pytest.raises(ValidationError):
        service.update_stock(part["id"], SparePartStockUpdate(quantity_change=-1))
    assert service.get_spare_part(part["id"])["quantity"] == 0


def test_stock_edit_waits_for_the_part_lock(storage, cache, make_part):
    part = make_part()
    locks = KeyedLock(timeout=0.05)
    service = SparePartService(storage, cache, locks)

    with locks.hold([spare_part_key(part["id"])]):
        with pytest.raises(ConcurrencyConflict):
            service.update_stock(part["id"], SparePartStockUpdate(quantity_change=1))

    assert service.get_spare_part(part["id"])["quantity"] == 10


def test_filters_and_pagination(service, make_part):
    make_part(name="S21 screen OLED")
    make_part(name="S21 battery", part_type="battery", quantity=1)
    make_part(name="S21 back cover", part_type="cover", quantity=0)

    items, total = service.get_spare_parts(search="s21")
    assert total == 3

    items, total = service.get_spare_parts(part_type="BATTERY")
    assert [p["name"] for p in items] == ["S21 battery"]

    items, total = service.get_spare_parts(low_stock_only=True)
    assert sorted(p["name"] for p in items) == ["S21 back cover", "S21 battery"]

    items, total = service.get_spare_parts(skip=1, limit=1)
    assert total == 3
    assert len(items) == 1

    # screen quality is searchable too
    items, total = service.get_spare_parts(search="original")
    assert [p["name"] for p in items] == ["S21 screen OLED"]


def test_low_stock_alerts(service, make_part, caplog):
    make_part(name="Plenty", quantity=10)
    make_part(name="Borderline", quantity=2)
    make_part(name="Empty", quantity=0)

    alerts = {a.spare_part.name: a for a in service.get_low_stock_items()}

    assert set(alerts) == {"Borderline", "Empty"}
    assert alerts["Empty"].needs_reorder is True
    assert alerts["Borderline"].needs_reorder is False

    with caplog.at_level(logging.WARNING):
        assert service.report_low_stock() == 2
    assert "Low stock: Empty" in caplog.text


def test_part_types_are_unique_and_sorted(service, make_part):
    make_part(part_type="screen")
    make_part(part_type="battery")
    make_part(part_type="screen")

    assert service.get_part_types() == ["battery", "screen"]


def test_delete_and_missing(service, make_part):
    part = make_part()
    assert service.delete_spare_part(part["id"]) is True

    with pytest.raises(NotFoundError):
        service.get_spare_part(part["id"])
    with pytest.raises(NotFoundError):
        service.update_stock(part["id"], SparePartStockUpdate(quantity_change=1))


def test_is_low_stock():
    assert is_low_stock({"quantity": 2, "low_stock_alert": 2})
    assert not is_low_stock({"quantity": 3, "low_stock_alert": 2})

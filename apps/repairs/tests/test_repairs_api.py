from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from core.cache import CollectionCache
from core.storage.factory import get_cache, get_storage
from main import app

API = "/api/v1"


@pytest.fixture()
def client(local_storage):
    cache = CollectionCache(local_storage)
    app.dependency_overrides[get_storage] = lambda: local_storage
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        cache.close()


@pytest.fixture()
def stocked(client):
    brand = client.post(f"{API}/brands/", json={"name": "Apple"}).json()
    model = client.post(f"{API}/brands/models", json={"name": "iPhone 12", "brand_id": brand["id"]}).json()
    part = client.post(f"{API}/spare_parts/", json={
        "name": "iPhone 12 screen",
        "part_type": "Screen",
        "screen_quality": "oled",
        "brand_id": brand["id"],
        "model_id": model["id"],
        "quantity": 10,
        "purchase_price": 40,
        "selling_price": 60,
        "low_stock_alert": 2,
    }).json()
    return brand, model, part


def _ticket(brand, model, part, quantity):
    return {
        "customer_name": "Amina",
        "customer_phone": "0550 12 34 56",
        "device_brand_id": brand["id"],
        "device_model_id": model["id"],
        "issue_type": "screen",
        "labor_cost": 30,
        "used_parts": [{"spare_part_id": part["id"], "quantity_used": quantity}],
    }


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_repair_lifecycle_moves_stock(client, stocked):
    brand, model, part = stocked
    part_url = f"{API}/spare_parts/{part['id']}"

    response = client.post(f"{API}/repairs/", json=_ticket(brand, model, part, 3))
    assert response.status_code == 201
    repair = response.json()
    assert repair["total_cost"] == 210
    assert repair["model"]["name"] == "iPhone 12"
    assert client.get(part_url).json()["quantity"] == 7

    response = client.put(
        f"{API}/repairs/{repair['id']}/parts",
        json={"used_parts": [{"spare_part_id": part["id"], "quantity_used": 5}]},
    )
    assert response.status_code == 200
    assert client.get(part_url).json()["quantity"] == 5

    response = client.patch(f"{API}/repairs/{repair['id']}/status", json={"status": "completed"})
    assert response.json()["completed_at"] is not None

    listing = client.get(f"{API}/repairs/", params={"status": "completed"}).json()
    assert listing["total"] == 1

    assert client.delete(f"{API}/repairs/{repair['id']}").status_code == 200
    assert client.get(part_url).json()["quantity"] == 10
    assert client.get(f"{API}/repairs/{repair['id']}").status_code == 404


def test_errors_are_rendered_as_detail(client, stocked):
    brand, model, part = stocked

    response = client.get(f"{API}/repairs/missing")
    assert response.status_code == 404
    assert response.json() == {"detail": "Repair not found"}

    # brand still has a model
    response = client.delete(f"{API}/brands/{brand['id']}")
    assert response.status_code == 400
    assert "still has 1 model" in response.json()["detail"]

    response = client.patch(f"{API}/spare_parts/{part['id']}/stock", json={"quantity_change": -11})
    assert response.status_code == 400


def test_invalid_payloads_are_rejected(client, stocked):
    brand, model, part = stocked

    response = client.post(f"{API}/repairs/", json=_ticket(brand, model, part, 0))
    assert response.status_code == 422

    response = client.get(f"{API}/dashboard/summary", params={"range": "year"})
    assert response.status_code == 422


def test_dashboard_and_workshop_settings(client, stocked):
    brand, model, part = stocked
    client.post(f"{API}/repairs/", json={**_ticket(brand, model, part, 1), "status": "completed"})

    summary = client.get(f"{API}/dashboard/summary", params={"range": "today"}).json()
    assert summary["stats"]["total_repairs"] == 1
    assert summary["stats"]["total_revenue"] == 90
    assert summary["popular_models"] == [{"name": "iPhone 12", "count": 1}]
    assert len(summary["weekly_profits"]) == 7

    settings = client.patch(f"{API}/workshop/settings", json={"phone": "021 00 00 00"}).json()
    assert settings["phone"] == "021 00 00 00"
    assert client.get(f"{API}/workshop/settings").json()["id"] == settings["id"]

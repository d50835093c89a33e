from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["LOW_STOCK_CHECK_ENABLED"] = "false"

from core.database import Base  # noqa: E402
from core.cache import CollectionCache  # noqa: E402
from core.locks import KeyedLock  # noqa: E402
from core.storage.base import BRANDS, DEVICE_MODELS, SPARE_PARTS  # noqa: E402
from core.storage.local import LocalStorage  # noqa: E402
from core.storage.sql import SqlStorage  # noqa: E402
from apps.brands import models as brand_models  # noqa: E402,F401
from apps.spare_parts import models as spare_part_models  # noqa: E402,F401
from apps.repairs import models as repair_models  # noqa: E402,F401
from apps.workshop import models as workshop_models  # noqa: E402,F401


@pytest.fixture()
def sql_storage():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    storage = SqlStorage(TestingSession)
    try:
        yield storage
    finally:
        storage.close()
        engine.dispose()


@pytest.fixture()
def local_storage(tmp_path):
    storage = LocalStorage(str(tmp_path / "storage"))
    try:
        yield storage
    finally:
        storage.close()


@pytest.fixture(params=["sql", "local"])
def storage(request):
    return request.getfixturevalue(f"{request.param}_storage")


@pytest.fixture()
def cache(storage):
    cache = CollectionCache(storage)
    try:
        yield cache
    finally:
        cache.close()


@pytest.fixture()
def locks():
    return KeyedLock(timeout=2.0)


@pytest.fixture()
def catalog(storage):
    now = datetime.utcnow()
    brand = storage.add(BRANDS, {"name": "Samsung", "created_at": now})
    model = storage.add(DEVICE_MODELS, {"name": "Galaxy S21", "brand_id": brand["id"], "created_at": now})
    return brand, model


@pytest.fixture()
def make_part(storage, catalog):
    brand, model = catalog

    def _make(
        name: str = "Galaxy S21 screen",
        quantity: int = 10,
        purchase_price: float = 40.0,
        selling_price: float = 60.0,
        part_type: str = "screen",
        low_stock_alert: int = 2,
    ) -> dict:
        now = datetime.utcnow()
        return storage.add(SPARE_PARTS, {
            "name": name,
            "part_type": part_type,
            "screen_quality": "original" if part_type == "screen" else None,
            "brand_id": brand["id"],
            "model_id": model["id"],
            "quantity": quantity,
            "purchase_price": purchase_price,
            "selling_price": selling_price,
            "low_stock_alert": low_stock_alert,
            "created_at": now,
            "updated_at": now,
        })

    return _make

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from core.exceptions import BackendError, NotFoundError, PartialWriteError
from core.storage.base import BRANDS, DEVICE_MODELS, SPARE_PARTS
from core.storage.local import LocalStorage


def _brand(storage, name, created_at):
    return storage.add(BRANDS, {"name": name, "created_at": created_at})


def test_add_get_update_delete(storage):
    now = datetime.utcnow()
    brand = _brand(storage, "Apple", now)

    assert len(brand["id"]) == 32
    assert storage.get(BRANDS, brand["id"]) == brand
    assert brand["created_at"] == now

    renamed = storage.update(BRANDS, brand["id"], {"name": "Apple Inc"})
    assert renamed["name"] == "Apple Inc"

    storage.delete(BRANDS, brand["id"])
    assert storage.get(BRANDS, brand["id"]) is None


def test_list_is_newest_first_and_filters(storage):
    now = datetime.utcnow()
    old = _brand(storage, "Nokia", now - timedelta(days=2))
    new = _brand(storage, "Xiaomi", now)
    storage.add(DEVICE_MODELS, {"name": "Redmi 9", "brand_id": new["id"], "created_at": now})
    storage.add(DEVICE_MODELS, {"name": "3310", "brand_id": old["id"], "created_at": now})

    assert [b["name"] for b in storage.list(BRANDS)] == ["Xiaomi", "Nokia"]
    assert [m["name"] for m in storage.list(DEVICE_MODELS, brand_id=old["id"])] == ["3310"]
    assert storage.list(DEVICE_MODELS, brand_id="nobody") == []


def test_missing_record_fails_the_whole_batch(storage):
    now = datetime.utcnow()
    brand = _brand(storage, "Oppo", now)

    batch = storage.batch()
    batch.update(BRANDS, brand["id"], {"name": "OPPO"})
    batch.set(BRANDS, {"name": "Realme", "created_at": now})
    batch.update(BRANDS, "missing", {"name": "x"})

    with pytest.raises(NotFoundError):
        batch.commit()

    assert [b["name"] for b in storage.list(BRANDS)] == ["Oppo"]


def test_batch_cannot_commit_twice(storage):
    batch = storage.batch()
    batch.set(BRANDS, {"name": "Huawei", "created_at": datetime.utcnow()})
    batch.commit()

    with pytest.raises(RuntimeError):
        batch.commit()


def test_subscribers_receive_fresh_lists(storage):
    seen = []
    unsubscribe = storage.subscribe(BRANDS, seen.append)

    _brand(storage, "Tecno", datetime.utcnow())
    storage.add(DEVICE_MODELS, {"name": "Spark", "brand_id": "x", "created_at": datetime.utcnow()})
    unsubscribe()
    _brand(storage, "Infinix", datetime.utcnow())

    assert len(seen) == 1
    assert [b["name"] for b in seen[0]] == ["Tecno"]


def test_sql_write_errors_roll_back(sql_storage):
    now = datetime.utcnow()
    brand = _brand(sql_storage, "Sony", now)

    batch = sql_storage.batch()
    batch.update(BRANDS, brand["id"], {"name": "Sony Mobile"})
    # name is NOT NULL
    batch.set(BRANDS, {"name": None, "created_at": now})

    with pytest.raises(BackendError):
        batch.commit()

    assert sql_storage.get(BRANDS, brand["id"])["name"] == "Sony"


def test_sql_unknown_collection(sql_storage):
    with pytest.raises(BackendError):
        sql_storage.list("invoices")


def test_local_storage_persists_iso_timestamps(tmp_path):
    directory = tmp_path / "kv"
    created = datetime(2026, 10, 18, 9, 30, 15, 123456)
    first = LocalStorage(str(directory))
    part = first.add(SPARE_PARTS, {"name": "Battery", "quantity": 3, "created_at": created})

    raw = (directory / f"{SPARE_PARTS}.json").read_text(encoding="utf-8")
    assert "2026-10-18T09:30:15.123456" in raw

    reopened = LocalStorage(str(directory))
    assert reopened.get(SPARE_PARTS, part["id"])["created_at"] == created


def test_local_partial_write_reports_written_keys(local_storage, monkeypatch):
    now = datetime.utcnow()
    real_write = local_storage._write

    def failing_write(collection, records):
        if collection == DEVICE_MODELS:
            raise OSError("read-only file system")
        return real_write(collection, records)

    monkeypatch.setattr(local_storage, "_write", failing_write)
    batch = local_storage.batch()
    brand_id = batch.set(BRANDS, {"name": "Vivo", "created_at": now})
    batch.set(DEVICE_MODELS, {"name": "Y20", "brand_id": brand_id, "created_at": now})

    with pytest.raises(PartialWriteError) as excinfo:
        batch.commit()

    assert excinfo.value.written == [BRANDS]
    assert local_storage.get(BRANDS, brand_id) is not None
    assert local_storage.list(DEVICE_MODELS) == []


def test_local_first_write_failure_is_plain_backend_error(local_storage, monkeypatch):
    def failing_write(collection, records):
        raise OSError("no space left on device")

    monkeypatch.setattr(local_storage, "_write", failing_write)

    with pytest.raises(BackendError) as excinfo:
        local_storage.add(BRANDS, {"name": "LG", "created_at": datetime.utcnow()})

    assert not isinstance(excinfo.value, PartialWriteError)

from typing import Dict, List, Optional
from datetime import datetime
from fastapi import Depends
import logging

from apps.brands.schemas import BrandCreate, BrandUpdate, DeviceModelCreate, DeviceModelUpdate
from core.cache import CollectionCache
from core.exceptions import NotFoundError, ValidationError
from core.storage.base import BRANDS, DEVICE_MODELS, StorageBackend
from core.storage.factory import get_cache, get_storage

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, storage: StorageBackend, cache: CollectionCache):
        self.storage = storage
        self.cache = cache

    # ---- brands ----

    def get_brands(self) -> List[Dict]:
        """All brands, newest first"""
        return self.cache.all(BRANDS)

    def get_brand(self, brand_id: str) -> Dict:
        brand = self.storage.get(BRANDS, brand_id)
        if not brand:
            raise NotFoundError(BRANDS, brand_id, "Brand not found")
        return brand

    def get_brand_with_models(self, brand_id: str) -> Dict:
        brand = self.get_brand(brand_id)
        return {**brand, "models": self.get_models(brand_id=brand_id)}

    def create_brand(self, brand: BrandCreate) -> Dict:
        db_brand = self.storage.add(BRANDS, {
            "name": brand.name.strip(),
            "created_at": datetime.utcnow(),
        })
        logger.info(f"Created brand: {db_brand['name']} (ID: {db_brand['id']})")
        return db_brand

    def rename_brand(self, brand_id: str, brand_update: BrandUpdate) -> Dict:
        self.get_brand(brand_id)
        db_brand = self.storage.update(BRANDS, brand_id, {"name": brand_update.name.strip()})
        logger.info(f"Renamed brand {brand_id} to {db_brand['name']}")
        return db_brand

    def delete_brand(self, brand_id: str) -> None:
        """Delete a brand that no device model refers to any more"""
        brand = self.get_brand(brand_id)
        models = self.storage.list(DEVICE_MODELS, brand_id=brand_id)
        if models:
            raise ValidationError(
                f"Brand '{brand['name']}' still has {len(models)} model(s); delete them first"
            )
        self.storage.delete(BRANDS, brand_id)
        logger.info(f"Deleted brand: {brand['name']} (ID: {brand_id})")

    # ---- device models ----

    def _with_brand(self, model: Dict) -> Dict:
        return {**model, "brand": self.cache.find(BRANDS, model.get("brand_id"))}

    def get_models(self, brand_id: Optional[str] = None) -> List[Dict]:
        models = self.cache.all(DEVICE_MODELS)
        if brand_id:
            models = [m for m in models if m.get("brand_id") == brand_id]
        return [self._with_brand(m) for m in models]

    def get_model(self, model_id: str) -> Dict:
        model = self.storage.get(DEVICE_MODELS, model_id)
        if not model:
            raise NotFoundError(DEVICE_MODELS, model_id, "Device model not found")
        return self._with_brand(model)

    def create_model(self, model: DeviceModelCreate) -> Dict:
        self.get_brand(model.brand_id)
        db_model = self.storage.add(DEVICE_MODELS, {
            "name": model.name.strip(),
            "brand_id": model.brand_id,
            "created_at": datetime.utcnow(),
        })
        logger.info(f"Created model: {db_model['name']} (ID: {db_model['id']})")
        return self._with_brand(db_model)

    def update_model(self, model_id: str, model_update: DeviceModelUpdate) -> Dict:
        self.get_model(model_id)
        update_data = model_update.model_dump(exclude_unset=True, exclude_none=True)
        if "brand_id" in update_data:
            self.get_brand(update_data["brand_id"])
        if "name" in update_data:
            update_data["name"] = update_data["name"].strip()
        if not update_data:
            return self.get_model(model_id)
        db_model = self.storage.update(DEVICE_MODELS, model_id, update_data)
        logger.info(f"Updated model: {db_model['name']} (ID: {model_id})")
        return self._with_brand(db_model)

    def delete_model(self, model_id: str) -> None:
        model = self.get_model(model_id)
        self.storage.delete(DEVICE_MODELS, model_id)
        logger.info(f"Deleted model: {model['name']} (ID: {model_id})")


# Dependency injection
def get_catalog_service(
    storage: StorageBackend = Depends(get_storage),
    cache: CollectionCache = Depends(get_cache),
) -> CatalogService:
    return CatalogService(storage, cache)

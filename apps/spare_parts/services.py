from typing import Dict, List, Optional, Tuple
from datetime import datetime
from fastapi import Depends
import logging

from apps.spare_parts.schemas import (
    SparePartCreate,
    SparePartUpdate,
    SparePartStockUpdate,
    LowStockAlert
)
from core.cache import CollectionCache
from core.exceptions import NotFoundError, ValidationError
from core.locks import KeyedLock, record_locks, spare_part_key
from core.storage.base import BRANDS, DEVICE_MODELS, SPARE_PARTS, StorageBackend
from core.storage.factory import get_cache, get_storage

logger = logging.getLogger(__name__)


def is_low_stock(part: Dict) -> bool:
    return part.get("quantity", 0) <= part.get("low_stock_alert", 0)


class SparePartService:
    def __init__(self, storage: StorageBackend, cache: CollectionCache, locks: KeyedLock = record_locks):
        self.storage = storage
        self.cache = cache
        self.locks = locks

    def _with_relations(self, part: Dict) -> Dict:
        return {
            **part,
            "brand": self.cache.find(BRANDS, part.get("brand_id")),
            "model": self.cache.find(DEVICE_MODELS, part.get("model_id")),
        }

    def get_spare_part(self, spare_part_id: str) -> Dict:
        """Get spare part by ID"""
        part = self.storage.get(SPARE_PARTS, spare_part_id)
        if not part:
            raise NotFoundError(SPARE_PARTS, spare_part_id, "Spare part not found")
        return self._with_relations(part)

    def get_spare_parts(
        self,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        part_type: Optional[str] = None,
        brand_id: Optional[str] = None,
        model_id: Optional[str] = None,
        low_stock_only: bool = False
    ) -> Tuple[List[Dict], int]:
        """Get spare parts with filtering and pagination"""
        parts = self.cache.all(SPARE_PARTS)

        # Apply filters
        if search:
            needle = search.lower()
            parts = [
                p for p in parts
                if needle in p["name"].lower()
                or needle in p["part_type"].lower()
                or needle in (p.get("screen_quality") or "").lower()
            ]

        if part_type:
            parts = [p for p in parts if p["part_type"] == part_type.lower()]

        if brand_id:
            parts = [p for p in parts if p["brand_id"] == brand_id]

        if model_id:
            parts = [p for p in parts if p["model_id"] == model_id]

        if low_stock_only:
            parts = [p for p in parts if is_low_stock(p)]

        # Get total count before pagination
        total = len(parts)

        return [self._with_relations(p) for p in parts[skip:skip + limit]], total

    def create_spare_part(self, spare_part: SparePartCreate) -> Dict:
        """Create a new spare part"""
        now = datetime.utcnow()
        db_spare_part = self.storage.add(SPARE_PARTS, {
            **spare_part.model_dump(),
            "created_at": now,
            "updated_at": now,
        })

        logger.info(f"Created spare part: {db_spare_part['name']} (ID: {db_spare_part['id']})")
        return self._with_relations(db_spare_part)

    def update_spare_part(self, spare_part_id: str, spare_part_update: SparePartUpdate) -> Dict:
        """Update an existing spare part"""
        update_data = spare_part_update.model_dump(exclude_unset=True)
        # screen_quality is the only field that may be cleared
        update_data = {
            k: v for k, v in update_data.items() if v is not None or k == "screen_quality"
        }
        update_data["updated_at"] = datetime.utcnow()

        # quantity edits race with the repair ledger
        with self.locks.hold([spare_part_key(spare_part_id)]):
            self.get_spare_part(spare_part_id)
            db_spare_part = self.storage.update(SPARE_PARTS, spare_part_id, update_data)

        logger.info(f"Updated spare part: {db_spare_part['name']} (ID: {spare_part_id})")
        return self._with_relations(db_spare_part)

    def delete_spare_part(self, spare_part_id: str) -> bool:
        """Delete a spare part; repair records keep their reference to it"""
        with self.locks.hold([spare_part_key(spare_part_id)]):
            db_spare_part = self.get_spare_part(spare_part_id)
            self.storage.delete(SPARE_PARTS, spare_part_id)

        logger.info(f"Deleted spare part: {db_spare_part['name']} (ID: {spare_part_id})")
        return True

    def update_stock(self, spare_part_id: str, stock_update: SparePartStockUpdate) -> Dict:
        """Update spare part stock quantity"""
        with self.locks.hold([spare_part_key(spare_part_id)]):
            db_spare_part = self.get_spare_part(spare_part_id)
            new_quantity = db_spare_part["quantity"] + stock_update.quantity_change

            if new_quantity < 0:
                raise ValidationError(
                    f"Insufficient stock. Current: {db_spare_part['quantity']}, "
                    f"Requested reduction: {abs(stock_update.quantity_change)}"
                )

            db_spare_part = self.storage.update(SPARE_PARTS, spare_part_id, {
                "quantity": new_quantity,
                "updated_at": datetime.utcnow(),
            })

        logger.info(
            f"Updated stock for {db_spare_part['name']}: "
            f"{stock_update.quantity_change} (Reason: {stock_update.reason})"
        )
        return self._with_relations(db_spare_part)

    def get_low_stock_items(self) -> List[LowStockAlert]:
        """Get items at or below their alert level"""
        alerts = []
        for item in self.cache.all(SPARE_PARTS):
            if not is_low_stock(item):
                continue
            alerts.append(LowStockAlert(
                spare_part=self._with_relations(item),
                current_stock=item["quantity"],
                minimum_level=item["low_stock_alert"],
                needs_reorder=item["quantity"] == 0
            ))

        return alerts

    def get_part_types(self) -> List[str]:
        """Get all unique part types"""
        return sorted({p["part_type"] for p in self.cache.all(SPARE_PARTS) if p.get("part_type")})

    def report_low_stock(self) -> int:
        """Log one warning per low-stock item; run daily by the scheduler"""
        alerts = self.get_low_stock_items()
        for alert in alerts:
            logger.warning(
                f"Low stock: {alert.spare_part.name} has {alert.current_stock} left "
                f"(alert level {alert.minimum_level})"
            )
        if not alerts:
            logger.info("Low stock check: all spare parts above their alert level")
        return len(alerts)


# Dependency injection
def get_spare_part_service(
    storage: StorageBackend = Depends(get_storage),
    cache: CollectionCache = Depends(get_cache),
) -> SparePartService:
    return SparePartService(storage, cache)

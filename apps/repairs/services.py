from typing import Callable, Dict, Iterable, List, Optional, Tuple
from datetime import datetime
from fastapi import Depends
import logging

from apps.repairs.inventory import plan_stock, quantities_by_part
from apps.repairs.models import RepairStatus, STATUS_FLOW
from apps.repairs.schemas import (
    RepairCreate, RepairUpdate, RepairStatusUpdate, RepairPartsUpdate, RepairPartIn
)
from core.cache import CollectionCache
from core.config import Settings, settings
from core.exceptions import NotFoundError, ValidationError
from core.locks import KeyedLock, record_locks, repair_key, spare_part_key
from core.storage.base import (
    BRANDS, DEVICE_MODELS, REPAIR_PARTS, REPAIR_REQUESTS, SPARE_PARTS,
    StorageBackend, WriteBatch, new_id
)
from core.storage.factory import get_cache, get_storage

logger = logging.getLogger(__name__)


class RepairService:
    """Repair tickets and the spare-part stock they consume.

    Every mutation holds the ticket lock, then the locks of the spare parts it
    touches, and writes ticket, part usages and stock in one batch. Stock
    decreases are queued before the ticket writes and stock returns after
    them, so a backend without atomic batches never shows stock that is not
    on the shelf.
    """

    def __init__(
        self,
        storage: StorageBackend,
        cache: CollectionCache,
        locks: KeyedLock = record_locks,
        config: Settings = settings,
    ):
        self.storage = storage
        self.cache = cache
        self.locks = locks
        self.config = config

    # ---- helpers ----

    def _get_record(self, repair_id: str) -> Dict:
        repair = self.storage.get(REPAIR_REQUESTS, repair_id)
        if not repair:
            raise NotFoundError(REPAIR_REQUESTS, repair_id, "Repair not found")
        return repair

    def _load_parts(self, part_ids: Iterable[str]) -> Dict[str, Dict]:
        parts = {}
        for part_id in part_ids:
            part = self.storage.get(SPARE_PARTS, part_id)
            if part:
                parts[part_id] = part
        return parts

    @staticmethod
    def _require_parts(used_parts: List[RepairPartIn], parts: Dict[str, Dict]) -> None:
        for usage in used_parts:
            if usage.spare_part_id not in parts:
                raise NotFoundError(SPARE_PARTS, usage.spare_part_id, "Spare part not found")

    @staticmethod
    def _returnable(old_rows: List[Dict], parts: Dict[str, Dict]) -> List[Dict]:
        kept = []
        for row in old_rows:
            if row["spare_part_id"] in parts:
                kept.append(row)
            else:
                logger.warning(
                    f"Spare part {row['spare_part_id']} no longer exists; "
                    f"{row['quantity_used']} unit(s) from repair {row['repair_id']} not returned to stock"
                )
        return kept

    @staticmethod
    def _usage_rows(repair_id: str, used_parts: List[RepairPartIn], parts: Dict[str, Dict], now: datetime) -> List[Dict]:
        rows = []
        for usage in used_parts:
            price = usage.price_at_time
            if price is None:
                price = parts[usage.spare_part_id]["selling_price"]
            rows.append({
                "id": new_id(),
                "repair_id": repair_id,
                "spare_part_id": usage.spare_part_id,
                "quantity_used": usage.quantity_used,
                "price_at_time": price,
                "created_at": now,
            })
        return rows

    def _commit(
        self,
        parts: Dict[str, Dict],
        new_quantities: Dict[str, int],
        write_records: Callable[[WriteBatch], None],
        now: datetime,
    ) -> None:
        """Stock decreases, then the repair records, then stock returns."""
        decreases, increases = [], []
        for part_id in sorted(new_quantities):
            old = parts[part_id]["quantity"]
            new = new_quantities[part_id]
            if new < old:
                decreases.append((part_id, new))
            elif new > old:
                increases.append((part_id, new))

        batch = self.storage.batch()
        for part_id, quantity in decreases:
            batch.update(SPARE_PARTS, part_id, {"quantity": quantity, "updated_at": now})
        write_records(batch)
        for part_id, quantity in increases:
            batch.update(SPARE_PARTS, part_id, {"quantity": quantity, "updated_at": now})
        batch.commit()

        for part_id, quantity in decreases + increases:
            logger.info(
                f"Stock for spare part {part_id}: {parts[part_id]['quantity']} -> {quantity}"
            )

    # ---- read model ----

    def _to_response(
        self,
        repair: Dict,
        rows: List[Dict],
        parts_index: Dict[str, Dict],
    ) -> Dict:
        repair_parts = [
            {**row, "spare_part": parts_index.get(row["spare_part_id"])}
            for row in sorted(rows, key=lambda r: r["created_at"])
        ]
        return {
            **repair,
            "status": RepairStatus(repair["status"]),
            "brand": self.cache.find(BRANDS, repair.get("device_brand_id")),
            "model": self.cache.find(DEVICE_MODELS, repair.get("device_model_id")),
            "repair_parts": repair_parts,
        }

    def get_repair(self, repair_id: str) -> Dict:
        """Get repair by ID with its parts, brand and model resolved"""
        repair = self._get_record(repair_id)
        rows = self.storage.list(REPAIR_PARTS, repair_id=repair_id)
        return self._to_response(repair, rows, self.cache.index(SPARE_PARTS))

    def list_repairs(self) -> List[Dict]:
        """Every repair, newest first, as served to the dashboard"""
        rows_by_repair: Dict[str, List[Dict]] = {}
        for row in self.cache.all(REPAIR_PARTS):
            rows_by_repair.setdefault(row["repair_id"], []).append(row)
        parts_index = self.cache.index(SPARE_PARTS)
        return [
            self._to_response(repair, rows_by_repair.get(repair["id"], []), parts_index)
            for repair in self.cache.all(REPAIR_REQUESTS)
        ]

    def get_repairs(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[RepairStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict], int]:
        """Get repairs with filtering and pagination"""
        repairs = self.list_repairs()

        if status:
            repairs = [r for r in repairs if r["status"] == status]

        if search:
            needle = search.lower()
            repairs = [
                r for r in repairs
                if needle in r["customer_name"].lower()
                or needle in r["customer_phone"].lower()
                or needle in r["issue_type"].lower()
                or needle in (r.get("description") or "").lower()
                or (r["model"] and needle in r["model"]["name"].lower())
            ]

        total = len(repairs)
        return repairs[skip:skip + limit], total

    # ---- mutations ----

    def create_repair(self, repair_data: RepairCreate) -> Dict:
        """Create a repair, record its parts and take them out of stock"""
        repair_id = new_id()
        used_parts = repair_data.used_parts
        part_ids = {usage.spare_part_id for usage in used_parts}
        keys = [repair_key(repair_id)] + [spare_part_key(pid) for pid in part_ids]

        with self.locks.hold(keys):
            parts = self._load_parts(part_ids)
            self._require_parts(used_parts, parts)

            now = datetime.utcnow()
            rows = self._usage_rows(repair_id, used_parts, parts, now)
            new_quantities = plan_stock(
                {pid: part["quantity"] for pid, part in parts.items()},
                {},
                quantities_by_part(used_parts),
            )

            parts_price = sum(row["price_at_time"] * row["quantity_used"] for row in rows)
            parts_purchase = sum(
                parts[row["spare_part_id"]]["purchase_price"] * row["quantity_used"] for row in rows
            )
            total_cost = repair_data.total_cost
            if total_cost is None:
                total_cost = repair_data.labor_cost + parts_price
            profit = repair_data.profit
            if profit is None:
                profit = total_cost - parts_purchase

            record = repair_data.model_dump(exclude={"used_parts"})
            record.update({
                "total_cost": total_cost,
                "profit": profit,
                "created_at": now,
                "updated_at": now,
                "completed_at": now if repair_data.status == RepairStatus.COMPLETED else None,
            })

            def write_records(batch: WriteBatch) -> None:
                batch.set(REPAIR_REQUESTS, record, repair_id)
                for row in rows:
                    batch.set(REPAIR_PARTS, row)

            self._commit(parts, new_quantities, write_records, now)

        logger.info(
            f"Created repair {repair_id} for customer: {repair_data.customer_name} "
            f"with {len(rows)} part line(s)"
        )
        return self.get_repair(repair_id)

    def update_repair(self, repair_id: str, repair_update: RepairUpdate) -> Dict:
        """Update repair details that do not affect stock"""
        update_data = {
            k: v for k, v in repair_update.model_dump(exclude_unset=True).items()
            if v is not None or k == "description"
        }
        with self.locks.hold([repair_key(repair_id)]):
            self._get_record(repair_id)
            update_data["updated_at"] = datetime.utcnow()
            self.storage.update(REPAIR_REQUESTS, repair_id, update_data)

        logger.info(f"Updated repair {repair_id}: {sorted(update_data)}")
        return self.get_repair(repair_id)

    def update_repair_status(self, repair_id: str, status_update: RepairStatusUpdate) -> Dict:
        """Update repair status; completing a repair stamps completed_at"""
        new_status = status_update.status
        with self.locks.hold([repair_key(repair_id)]):
            repair = self._get_record(repair_id)
            current = RepairStatus(repair["status"])

            if (
                self.config.STRICT_STATUS_TRANSITIONS
                and STATUS_FLOW.index(new_status) < STATUS_FLOW.index(current)
            ):
                raise ValidationError(
                    f"Cannot move repair from '{current.value}' back to '{new_status.value}'"
                )

            now = datetime.utcnow()
            updates = {"status": new_status, "updated_at": now}
            if new_status == RepairStatus.COMPLETED:
                updates["completed_at"] = now
            self.storage.update(REPAIR_REQUESTS, repair_id, updates)

        logger.info(f"Updated repair {repair_id} status: {current.value} -> {new_status.value}")
        return self.get_repair(repair_id)

    def update_repair_parts(self, repair_id: str, parts_update: RepairPartsUpdate) -> Dict:
        """Replace the parts of a repair: old usages go back to stock, new ones are taken out"""
        used_parts = parts_update.used_parts
        with self.locks.hold([repair_key(repair_id)]):
            self._get_record(repair_id)
            old_rows = self.storage.list(REPAIR_PARTS, repair_id=repair_id)
            part_ids = {row["spare_part_id"] for row in old_rows} | {u.spare_part_id for u in used_parts}

            with self.locks.hold([spare_part_key(pid) for pid in part_ids]):
                parts = self._load_parts(part_ids)
                self._require_parts(used_parts, parts)

                now = datetime.utcnow()
                rows = self._usage_rows(repair_id, used_parts, parts, now)
                new_quantities = plan_stock(
                    {pid: part["quantity"] for pid, part in parts.items()},
                    quantities_by_part(self._returnable(old_rows, parts)),
                    quantities_by_part(used_parts),
                )

                updates = {"updated_at": now}
                if parts_update.total_cost is not None:
                    updates["total_cost"] = parts_update.total_cost
                if parts_update.profit is not None:
                    updates["profit"] = parts_update.profit

                def write_records(batch: WriteBatch) -> None:
                    for row in old_rows:
                        batch.delete(REPAIR_PARTS, row["id"])
                    for row in rows:
                        batch.set(REPAIR_PARTS, row)
                    batch.update(REPAIR_REQUESTS, repair_id, updates)

                self._commit(parts, new_quantities, write_records, now)

        logger.info(
            f"Replaced parts of repair {repair_id}: {len(old_rows)} line(s) returned, "
            f"{len(rows)} line(s) taken"
        )
        return self.get_repair(repair_id)

    def delete_repair(self, repair_id: str) -> None:
        """Delete a repair and return the parts it used to stock"""
        with self.locks.hold([repair_key(repair_id)]):
            self._get_record(repair_id)
            old_rows = self.storage.list(REPAIR_PARTS, repair_id=repair_id)
            part_ids = {row["spare_part_id"] for row in old_rows}

            with self.locks.hold([spare_part_key(pid) for pid in part_ids]):
                parts = self._load_parts(part_ids)
                new_quantities = plan_stock(
                    {pid: part["quantity"] for pid, part in parts.items()},
                    quantities_by_part(self._returnable(old_rows, parts)),
                    {},
                )

                def write_records(batch: WriteBatch) -> None:
                    for row in old_rows:
                        batch.delete(REPAIR_PARTS, row["id"])
                    batch.delete(REPAIR_REQUESTS, repair_id)

                self._commit(parts, new_quantities, write_records, datetime.utcnow())

        logger.info(f"Deleted repair {repair_id}, returned {len(old_rows)} part line(s) to stock")


# Dependency injection
def get_repair_service(
    storage: StorageBackend = Depends(get_storage),
    cache: CollectionCache = Depends(get_cache),
) -> RepairService:
    return RepairService(storage, cache)

"""Backend-neutral record storage.

Records are plain dicts keyed by column name. Every backend lists records
newest first (by ``created_at``) and supports a write batch; whether a batch
is atomic depends on the backend (see ``ATOMIC_BATCHES``).
"""
import threading
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import PartialWriteError

BRANDS = "brands"
DEVICE_MODELS = "device_models"
SPARE_PARTS = "spare_parts"
REPAIR_REQUESTS = "repair_requests"
REPAIR_PARTS = "repair_parts"
WORKSHOP_SETTINGS = "workshop_settings"

COLLECTIONS = (BRANDS, DEVICE_MODELS, SPARE_PARTS, REPAIR_REQUESTS, REPAIR_PARTS, WORKSHOP_SETTINGS)

Record = Dict[str, Any]
Listener = Callable[[List[Record]], None]


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class WriteOp:
    action: str  # "set", "update" or "delete"
    collection: str
    record_id: str
    data: Record = field(default_factory=dict)


class WriteBatch:
    """Collects writes and hands them to the backend in the order they were added."""

    def __init__(self, storage: "StorageBackend"):
        self._storage = storage
        self.ops: List[WriteOp] = []
        self._committed = False

    def set(self, collection: str, data: Record, record_id: Optional[str] = None) -> str:
        record_id = record_id or data.get("id") or new_id()
        self.ops.append(WriteOp("set", collection, record_id, {**data, "id": record_id}))
        return record_id

    def update(self, collection: str, record_id: str, changes: Record) -> None:
        changes = {k: v for k, v in changes.items() if k != "id"}
        self.ops.append(WriteOp("update", collection, record_id, changes))

    def delete(self, collection: str, record_id: str) -> None:
        self.ops.append(WriteOp("delete", collection, record_id))

    def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._committed = True
        if not self.ops:
            return
        self._storage.commit(self.ops)


class StorageBackend(ABC):
    ATOMIC_BATCHES = True

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._listeners_lock = threading.Lock()
        self._notify_locks: Dict[str, threading.RLock] = {}

    @abstractmethod
    def list(self, collection: str, **filters: Any) -> List[Record]:
        """Records matching all equality filters, newest first."""

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    def _apply(self, ops: List[WriteOp]) -> None:
        ...

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def commit(self, ops: List[WriteOp]) -> None:
        touched = list(dict.fromkeys(op.collection for op in ops))
        try:
            self._apply(ops)
        except PartialWriteError:
            # Readers must see what did reach the disk
            self._notify(touched)
            raise
        self._notify(touched)

    def add(self, collection: str, data: Record) -> Record:
        batch = self.batch()
        record_id = batch.set(collection, data)
        batch.commit()
        return self.get(collection, record_id)

    def update(self, collection: str, record_id: str, changes: Record) -> Record:
        batch = self.batch()
        batch.update(collection, record_id, changes)
        batch.commit()
        return self.get(collection, record_id)

    def delete(self, collection: str, record_id: str) -> None:
        batch = self.batch()
        batch.delete(collection, record_id)
        batch.commit()

    def _notify_lock(self, collection: str) -> threading.RLock:
        with self._listeners_lock:
            lock = self._notify_locks.get(collection)
            if lock is None:
                lock = self._notify_locks[collection] = threading.RLock()
            return lock

    def subscribe(self, collection: str, listener: Listener, replay: bool = False) -> Callable[[], None]:
        """Call ``listener`` with the fresh record list after each write to ``collection``.

        With ``replay`` the listener also receives the current list right away.
        Deliveries for one collection are serialized, each one listing the
        records after taking the collection's notify lock, so a listener never
        receives an older list after a newer one.
        """
        with self._notify_lock(collection):
            with self._listeners_lock:
                self._listeners[collection].append(listener)
            if replay:
                listener(self.list(collection))

        def unsubscribe() -> None:
            # Waits for a delivery in progress
            with self._notify_lock(collection):
                with self._listeners_lock:
                    if listener in self._listeners[collection]:
                        self._listeners[collection].remove(listener)

        return unsubscribe

    def deliver(self, collection: str, listener: Listener) -> List[Record]:
        """Call ``listener`` with the current list, ordered with change notifications."""
        with self._notify_lock(collection):
            records = self.list(collection)
            listener(records)
        return records

    def _notify(self, collections: List[str]) -> None:
        for collection in collections:
            with self._notify_lock(collection):
                with self._listeners_lock:
                    listeners = list(self._listeners.get(collection, ()))
                if not listeners:
                    continue
                records = self.list(collection)
                for listener in listeners:
                    listener(records)

    def close(self) -> None:
        with self._listeners_lock:
            self._listeners.clear()

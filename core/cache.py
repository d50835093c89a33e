import logging
import threading
from typing import Callable, Dict, List, Optional

from core.storage.base import Record, StorageBackend

logger = logging.getLogger(__name__)


class CollectionCache:
    """Read-through cache of whole collections, newest first.

    The first read of a collection subscribes to its changes and loads it in
    the same step; after that every committed write replaces the cached list.
    ``refresh`` reloads explicitly, ``close`` drops every subscription.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage
        self._lists: Dict[str, List[Record]] = {}
        self._unsubscribe: Dict[str, Callable[[], None]] = {}
        self._lock = threading.Lock()
        # Never held while a storage delivery waits for self._lock
        self._subscribe_lock = threading.Lock()

    def all(self, collection: str) -> List[Record]:
        with self._lock:
            cached = self._lists.get(collection)
        if cached is not None:
            return list(cached)
        return self.refresh(collection)

    def refresh(self, collection: str) -> List[Record]:
        def replace(fresh: List[Record]) -> None:
            self._replace(collection, fresh)

        with self._subscribe_lock:
            if collection not in self._unsubscribe:
                self._unsubscribe[collection] = self.storage.subscribe(collection, replace, replay=True)
                with self._lock:
                    return list(self._lists[collection])
        return list(self.storage.deliver(collection, replace))

    def find(self, collection: str, record_id: Optional[str]) -> Optional[Record]:
        if not record_id:
            return None
        return next((r for r in self.all(collection) if r.get("id") == record_id), None)

    def index(self, collection: str) -> Dict[str, Record]:
        return {r["id"]: r for r in self.all(collection)}

    def _replace(self, collection: str, records: List[Record]) -> None:
        with self._lock:
            self._lists[collection] = records
        logger.debug(f"Cache refreshed {collection}: {len(records)} records")

    def close(self) -> None:
        with self._subscribe_lock:
            for unsubscribe in self._unsubscribe.values():
                unsubscribe()
            self._unsubscribe.clear()
            with self._lock:
                self._lists.clear()

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from core.config import settings
from core.exceptions import ConcurrencyConflict

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock:
    """Mutual exclusion per string key (``repair:<id>``, ``spare_part:<id>``).

    Keys passed to a single :meth:`hold` call are acquired in sorted order, so
    two callers holding overlapping key sets cannot deadlock. Entries are
    dropped once nobody holds or waits for them.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._entries: Dict[str, _Entry] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._entries[key]
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, keys: Iterable[str], timeout: Optional[float] = None) -> Iterator[None]:
        wait = self.timeout if timeout is None else timeout
        ordered = sorted(set(keys))
        acquired: List[Tuple[str, _Entry]] = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                if not entry.lock.acquire(timeout=wait):
                    self._checkin(key)
                    logger.warning(f"Timed out after {wait}s waiting for lock {key}")
                    raise ConcurrencyConflict(
                        f"'{key}' is being modified by another request, try again"
                    )
                acquired.append((key, entry))
            yield
        finally:
            for key, entry in reversed(acquired):
                entry.lock.release()
                self._checkin(key)

    def is_held(self, key: str) -> bool:
        with self._guard:
            entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()


def repair_key(repair_id: str) -> str:
    return f"repair:{repair_id}"


def spare_part_key(spare_part_id: str) -> str:
    return f"spare_part:{spare_part_id}"


# Shared by the repair ledger and manual stock adjustments
record_locks = KeyedLock(timeout=settings.LOCK_TIMEOUT_SECONDS)

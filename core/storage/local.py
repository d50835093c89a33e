import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.exceptions import BackendError, NotFoundError, PartialWriteError
from core.storage.base import Record, StorageBackend, WriteOp

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("created_at", "updated_at", "completed_at")


def _encode(value: Any):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode(record: Record) -> Record:
    for name in TIMESTAMP_FIELDS:
        if isinstance(record.get(name), str):
            record[name] = datetime.fromisoformat(record[name])
    return record


class LocalStorage(StorageBackend):
    """One JSON document per collection under ``directory``.

    Each key is replaced atomically (temp file + rename) but there is no
    atomicity across keys: a batch is persisted one group of consecutive
    same-collection operations at a time, in batch order. Callers order their
    operations so that an interrupted batch fails safe.
    """

    ATOMIC_BATCHES = False

    def __init__(self, directory: str):
        super().__init__()
        self.directory = Path(directory)
        self._lock = threading.RLock()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendError(f"Cannot use local storage directory {directory}: {e}") from e

    def _path(self, collection: str) -> Path:
        return self.directory / f"{collection}.json"

    def _read(self, collection: str) -> List[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                return [_decode(record) for record in json.load(f)]
        except (OSError, ValueError) as e:
            raise BackendError(f"Failed to read {collection} from {path}: {e}") from e

    def _write(self, collection: str, records: List[Record]) -> None:
        path = self._path(collection)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{collection}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, default=_encode, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def _newest_first(records: List[Record]) -> List[Record]:
        return sorted(records, key=lambda r: r.get("created_at") or datetime.min, reverse=True)

    def list(self, collection: str, **filters: Any) -> List[Record]:
        with self._lock:
            records = self._read(collection)
        matching = [r for r in records if all(r.get(k) == v for k, v in filters.items())]
        return self._newest_first(matching)

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        with self._lock:
            for record in self._read(collection):
                if record.get("id") == record_id:
                    return record
        return None

    @staticmethod
    def _apply_op(records: List[Record], op: WriteOp) -> None:
        index = next((i for i, r in enumerate(records) if r.get("id") == op.record_id), None)
        if op.action == "set":
            if index is None:
                records.append(dict(op.data))
            else:
                records[index] = dict(op.data)
        elif index is None:
            raise NotFoundError(op.collection, op.record_id)
        elif op.action == "update":
            records[index] = {**records[index], **op.data}
        else:
            del records[index]

    def _apply(self, ops: List[WriteOp]) -> None:
        with self._lock:
            # Apply everything in memory first so a missing record fails the
            # batch before anything reaches the disk.
            state: Dict[str, List[Record]] = {}
            groups: List[tuple] = []
            for op in ops:
                if op.collection not in state:
                    state[op.collection] = self._read(op.collection)
                self._apply_op(state[op.collection], op)
                snapshot = [dict(r) for r in state[op.collection]]
                if groups and groups[-1][0] == op.collection:
                    groups[-1] = (op.collection, snapshot)
                else:
                    groups.append((op.collection, snapshot))

            written: List[str] = []
            for collection, records in groups:
                try:
                    self._write(collection, records)
                except OSError as e:
                    if written:
                        logger.error(
                            f"Batch interrupted after writing {written}; {collection} not written: {e}"
                        )
                        raise PartialWriteError(
                            f"Storage failed while writing {collection} after {', '.join(written)} "
                            f"were saved",
                            written,
                        ) from e
                    raise BackendError(f"Failed to write {collection}: {e}") from e
                written.append(collection)

import logging
from functools import lru_cache

from core.cache import CollectionCache
from core.config import Settings, settings
from core.storage.base import StorageBackend
from core.storage.local import LocalStorage
from core.storage.sql import SqlStorage

logger = logging.getLogger(__name__)


def build_storage(config: Settings) -> StorageBackend:
    """Pick the storage implementation named by ``STORAGE_BACKEND``."""
    if config.STORAGE_BACKEND == "local":
        logger.info(f"Using local JSON storage in {config.LOCAL_STORAGE_DIR}")
        return LocalStorage(config.LOCAL_STORAGE_DIR)

    from core.database import SessionLocal

    logger.info("Using SQL storage")
    return SqlStorage(SessionLocal)


# Dependency injection
@lru_cache(maxsize=None)
def get_storage() -> StorageBackend:
    return build_storage(settings)


@lru_cache(maxsize=None)
def get_cache() -> CollectionCache:
    return CollectionCache(get_storage())

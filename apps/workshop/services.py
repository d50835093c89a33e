from typing import Dict
from datetime import datetime
from fastapi import Depends
import logging

from apps.workshop.schemas import WorkshopSettingsUpdate
from core.config import Settings, settings
from core.locks import KeyedLock, record_locks
from core.storage.base import WORKSHOP_SETTINGS, StorageBackend
from core.storage.factory import get_storage

logger = logging.getLogger(__name__)

SETTINGS_LOCK = "workshop_settings"


class WorkshopSettingsService:
    def __init__(self, storage: StorageBackend, config: Settings = settings, locks: KeyedLock = record_locks):
        self.storage = storage
        self.config = config
        self.locks = locks

    def _defaults(self) -> Dict:
        now = datetime.utcnow()
        return {
            "name": self.config.DEFAULT_WORKSHOP_NAME,
            "address": "",
            "phone": "",
            "thank_you_message": self.config.DEFAULT_THANK_YOU_MESSAGE,
            "created_at": now,
            "updated_at": now,
        }

    def get_settings(self) -> Dict:
        """Return the workshop settings, creating the defaults on first use"""
        with self.locks.hold([SETTINGS_LOCK]):
            existing = self.storage.list(WORKSHOP_SETTINGS)
            if existing:
                # Oldest row wins if a second one ever slipped in
                return existing[-1]
            created = self.storage.add(WORKSHOP_SETTINGS, self._defaults())
        logger.info(f"Created default workshop settings (ID: {created['id']})")
        return created

    def update_settings(self, settings_update: WorkshopSettingsUpdate) -> Dict:
        current = self.get_settings()
        update_data = settings_update.model_dump(exclude_unset=True, exclude_none=True)
        update_data["updated_at"] = datetime.utcnow()
        with self.locks.hold([SETTINGS_LOCK]):
            updated = self.storage.update(WORKSHOP_SETTINGS, current["id"], update_data)
        logger.info(f"Updated workshop settings: {sorted(update_data)}")
        return updated


# Dependency injection
def get_workshop_settings_service(storage: StorageBackend = Depends(get_storage)) -> WorkshopSettingsService:
    return WorkshopSettingsService(storage)

"""Errors raised by the storage layer and the services.

Each error carries the HTTP status the API answers with; ``main.py`` renders
them as ``{"detail": message}``.
"""
from typing import List, Optional


class WorkshopError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkshopError):
    """Input is well-formed JSON but not acceptable for the operation."""

    status_code = 400


class NotFoundError(WorkshopError):
    status_code = 404

    def __init__(self, collection: str, record_id: str, message: Optional[str] = None):
        super().__init__(message or f"{collection} record '{record_id}' not found")
        self.collection = collection
        self.record_id = record_id


class ConcurrencyConflict(WorkshopError):
    """Another mutation held the same ticket or spare part for too long."""

    status_code = 409


class BackendError(WorkshopError):
    status_code = 503


class PartialWriteError(BackendError):
    """Some groups of a batch were persisted before the backend failed.

    Only raised by backends without multi-key atomicity. ``written`` lists the
    collections already persisted, in write order, so the caller can retry or
    alert.
    """

    def __init__(self, message: str, written: List[str]):
        super().__init__(message)
        self.written = written

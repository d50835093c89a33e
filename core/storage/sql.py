import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from core.database import Base
from core.exceptions import BackendError, NotFoundError
from core.storage.base import Record, StorageBackend, WriteOp

logger = logging.getLogger(__name__)


class SqlStorage(StorageBackend):
    """Records kept in SQLAlchemy tables; a collection is the model's ``__tablename__``.

    A batch runs in one transaction: every operation is flushed in order and
    any failure rolls the whole batch back.
    """

    ATOMIC_BATCHES = True

    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self.session_factory = session_factory
        self._models: Dict[str, Any] = {}

    def _model(self, collection: str):
        model = self._models.get(collection)
        if model is None:
            for mapper in Base.registry.mappers:
                if getattr(mapper.class_, "__tablename__", None) == collection:
                    model = self._models[collection] = mapper.class_
                    break
            else:
                raise BackendError(f"No table is mapped for collection '{collection}'")
        return model

    @staticmethod
    def _to_dict(obj) -> Record:
        return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}

    def _find(self, db: Session, collection: str, record_id: str):
        model = self._model(collection)
        return db.query(model).filter(model.id == record_id).first()

    def list(self, collection: str, **filters: Any) -> List[Record]:
        model = self._model(collection)
        db = self.session_factory()
        try:
            query = db.query(model)
            for name, value in filters.items():
                query = query.filter(getattr(model, name) == value)
            return [self._to_dict(obj) for obj in query.order_by(model.created_at.desc()).all()]
        except SQLAlchemyError as e:
            raise BackendError(f"Failed to read {collection}: {e}") from e
        finally:
            db.close()

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        db = self.session_factory()
        try:
            obj = self._find(db, collection, record_id)
            return self._to_dict(obj) if obj else None
        except SQLAlchemyError as e:
            raise BackendError(f"Failed to read {collection}/{record_id}: {e}") from e
        finally:
            db.close()

    def _apply(self, ops: List[WriteOp]) -> None:
        db = self.session_factory()
        try:
            for op in ops:
                if op.action == "set":
                    existing = self._find(db, op.collection, op.record_id)
                    if existing is not None:
                        db.delete(existing)
                        db.flush()
                    db.add(self._model(op.collection)(**op.data))
                else:
                    obj = self._find(db, op.collection, op.record_id)
                    if obj is None:
                        raise NotFoundError(op.collection, op.record_id)
                    if op.action == "update":
                        for name, value in op.data.items():
                            setattr(obj, name, value)
                    else:
                        db.delete(obj)
                # Keep statement order equal to batch order
                db.flush()
            db.commit()
        except NotFoundError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Rolled back batch of {len(ops)} writes")
            raise BackendError(f"Database write failed: {e}") from e
        finally:
            db.close()

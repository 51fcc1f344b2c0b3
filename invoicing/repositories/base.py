"""Lifecycle operations shared by every persisted entity.

Entities move between three states:

* active    -> ``deleted_at`` is NULL and ``is_deleted`` is False
* archived  -> ``deleted_at`` is set, ``is_deleted`` is False
* deleted   -> ``is_deleted`` is True (``deleted_at`` is set as well)

Deletion is one-way: ``restore`` only brings back archived entities.
"""
from __future__ import annotations

import enum
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from invoicing.utils import get_logger
from invoicing.utils.time import utc_now

logger = get_logger(__name__)


class BulkAction(str, enum.Enum):
    ARCHIVE = "archive"
    RESTORE = "restore"
    DELETE = "delete"


class BaseRepository:
    entity_name = "entity"

    def actions(self) -> Dict[BulkAction, Callable[[Session, Any], Any]]:
        return {
            BulkAction.ARCHIVE: self.archive,
            BulkAction.RESTORE: self.restore,
            BulkAction.DELETE: self.delete,
        }

    def apply(self, db: Session, action: BulkAction, entity: Any) -> Any:
        handler = self.actions()[BulkAction(action)]
        return handler(db, entity)

    def archive(self, db: Session, entity: Any) -> Any:
        if entity.deleted_at is not None or entity.is_deleted:
            return entity
        entity.deleted_at = utc_now()
        db.commit()
        db.refresh(entity)
        logger.info(f"{self.entity_name} archived", entity_id=entity.id)
        return entity

    def restore(self, db: Session, entity: Any) -> Any:
        if entity.is_deleted or entity.deleted_at is None:
            return entity
        entity.deleted_at = None
        db.commit()
        db.refresh(entity)
        logger.info(f"{self.entity_name} restored", entity_id=entity.id)
        return entity

    def delete(self, db: Session, entity: Any) -> Any:
        if entity.is_deleted:
            return entity
        self._mark_deleted(db, entity)
        return entity

    def _mark_deleted(self, db: Session, entity: Any) -> None:
        entity.is_deleted = True
        db.commit()
        if entity.deleted_at is None:
            entity.deleted_at = utc_now()
            db.commit()
        db.refresh(entity)
        logger.info(f"{self.entity_name} deleted", entity_id=entity.id)


__all__ = ["BulkAction", "BaseRepository"]

"""
Generic resource endpoint handler.

Holds the operations every entity endpoint shares (scoping, resolution of
external ids, listing, bulk actions, single-entity actions) so that routers
only wire HTTP concerns and the per-entity repository/transformer pair.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Query, Session

from invoicing.filters import QueryFilters
from invoicing.repositories.base import BaseRepository, BulkAction
from invoicing.services.authorization import Ability, can, visible
from invoicing.services.context import RequestContext
from invoicing.transformers.base import EntityTransformer
from invoicing.utils import get_logger, log_business_event
from invoicing.utils.errors import EntityForbidden, EntityNotFound, InvalidIdentifier

logger = get_logger(__name__)

ActionHandler = Callable[[Session, Any], Any]


class ResourceHandler:
    def __init__(
        self,
        model: Any,
        entity_name: str,
        repository: BaseRepository,
        transformer: EntityTransformer,
    ):
        self.model = model
        self.entity_name = entity_name
        self.repository = repository
        self.transformer = transformer

    @property
    def encoder(self):
        return self.transformer.encoder

    def scoped_query(self, ctx: RequestContext, db: Session) -> Query:
        """Company-scoped query; archived and deleted rows are included."""
        return db.query(self.model).filter(self.model.company_id == ctx.company_id)

    def resolve(self, ctx: RequestContext, db: Session, external_id: str, ability: Ability = Ability.VIEW) -> Any:
        try:
            entity_id = self.encoder.decode(external_id)
        except InvalidIdentifier:
            raise EntityNotFound(self.entity_name, external_id) from None

        entity = self.scoped_query(ctx, db).filter(self.model.id == entity_id).first()
        if entity is None:
            raise EntityNotFound(self.entity_name, external_id)

        if not can(ctx.user, ability, entity, self.entity_name):
            logger.warning(
                "Access denied",
                entity=self.entity_name,
                entity_id=entity.id,
                ability=Ability(ability).value,
                user_id=ctx.user_id,
                request_id=ctx.request_id,
            )
            raise EntityForbidden(self.entity_name, external_id, Ability(ability).value)
        return entity

    def item(self, entity: Any, includes: Iterable[str] = ()) -> Dict[str, Any]:
        return {"data": self.transformer.transform_with_includes(entity, includes)}

    def list(
        self,
        ctx: RequestContext,
        db: Session,
        filters: QueryFilters,
        page: int = 1,
        per_page: int = 20,
        includes: Sequence[str] = (),
    ) -> Dict[str, Any]:
        query = filters.apply(self.scoped_query(ctx, db), self.encoder)
        query = visible(query, ctx.user, self.model, self.entity_name)

        total = query.order_by(None).count()
        rows = filters.order(query).offset((page - 1) * per_page).limit(per_page).all()

        return {
            "data": [self.transformer.transform_with_includes(row, includes) for row in rows],
            "meta": {
                "pagination": {
                    "total": total,
                    "count": len(rows),
                    "per_page": per_page,
                    "current_page": page,
                    "total_pages": max(1, math.ceil(total / per_page)),
                }
            },
        }

    def bulk(self, ctx: RequestContext, db: Session, action: BulkAction, ids: Iterable[str]) -> Dict[str, Any]:
        """Apply ``action`` to every referenced entity the caller may edit.

        Malformed ids and ids of other companies are ignored; entities the
        caller may not edit are left untouched but still reported.
        """
        entity_ids = self.encoder.decode_many(ids)
        if not entity_ids:
            return {"data": []}

        entities = (
            self.scoped_query(ctx, db)
            .filter(self.model.id.in_(entity_ids))
            .order_by(self.model.id.asc())
            .all()
        )

        applied: List[int] = []
        skipped: List[int] = []
        for entity in entities:
            if can(ctx.user, Ability.EDIT, entity, self.entity_name):
                self.repository.apply(db, action, entity)
                applied.append(entity.id)
            else:
                skipped.append(entity.id)

        log_business_event(
            event_type="bulk_action",
            details={
                "entity": self.entity_name,
                "action": BulkAction(action).value,
                "requested": len(entity_ids),
                "applied_ids": applied,
                "skipped_ids": skipped,
            },
            user_id=ctx.user_id,
            request_id=ctx.request_id,
        )

        for entity in entities:
            db.refresh(entity)
        return {"data": [self.transformer.transform(entity) for entity in entities]}

    def run_action(
        self,
        ctx: RequestContext,
        db: Session,
        entity: Any,
        action: Any,
        table: Mapping[Any, ActionHandler],
    ) -> Any:
        handler: Optional[ActionHandler] = table.get(action)
        if handler is None:
            # Unknown names are rejected at the routing layer; a missing entry is a wiring error
            raise KeyError(f"No handler registered for {self.entity_name} action {action!r}")
        result = handler(db, entity)
        log_business_event(
            event_type=f"{self.entity_name}_action",
            details={"action": getattr(action, "value", action), "entity_id": entity.id},
            user_id=ctx.user_id,
            request_id=ctx.request_id,
        )
        return result if result is not None else entity


__all__ = ["ResourceHandler", "ActionHandler"]

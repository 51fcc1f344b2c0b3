"""
List filters applied to company-scoped queries.

``status`` selects lifecycle states (any of active, archived, deleted; the
union of the selected states is returned). ``sort`` takes ``column|asc`` or
``column|desc`` over a per-entity whitelist.
"""
from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query

from invoicing.models.db import Document, EntityState, Payment
from invoicing.utils import IdentifierEncoder
from invoicing.utils.errors import FilterValidationError, InvalidIdentifier


class QueryFilters:
    model = None
    searchable: Tuple[str, ...] = ()
    sortable: Tuple[str, ...] = ("id", "created_at", "updated_at")
    default_sort = ("id", "desc")

    def __init__(
        self,
        filter: Optional[str] = None,
        status: Optional[str] = EntityState.ACTIVE.value,
        client_id: Optional[str] = None,
        sort: Optional[str] = None,
    ):
        self.filter = (filter or "").strip()
        self.states = self._parse_states(status)
        self.client_id = client_id
        self.sort = self._parse_sort(sort)

    def _parse_states(self, raw: Optional[str]) -> set[EntityState]:
        if not raw:
            return {EntityState.ACTIVE}
        states: set[EntityState] = set()
        for part in raw.split(","):
            part = part.strip().lower()
            if not part:
                continue
            try:
                states.add(EntityState(part))
            except ValueError:
                raise FilterValidationError.single("status", f"Unknown status '{part}'.") from None
        return states or {EntityState.ACTIVE}

    def _parse_sort(self, raw: Optional[str]) -> Tuple[str, str]:
        if not raw:
            return self.default_sort
        column, _, direction = raw.partition("|")
        column = column.strip()
        direction = (direction or "asc").strip().lower()
        if column not in self.sortable:
            raise FilterValidationError.single("sort", f"Cannot sort by '{column}'.")
        if direction not in ("asc", "desc"):
            raise FilterValidationError.single("sort", f"Unknown sort direction '{direction}'.")
        return column, direction

    def _state_clause(self, state: EntityState):
        model = self.model
        if state == EntityState.ACTIVE:
            return and_(model.deleted_at.is_(None), model.is_deleted.is_(False))
        if state == EntityState.ARCHIVED:
            return and_(model.deleted_at.is_not(None), model.is_deleted.is_(False))
        return model.is_deleted.is_(True)

    def apply(self, query: Query, encoder: IdentifierEncoder) -> Query:
        model = self.model
        if self.filter and self.searchable:
            pattern = f"%{self.filter}%"
            query = query.filter(or_(*[getattr(model, col).ilike(pattern) for col in self.searchable]))

        if len(self.states) < len(EntityState):
            query = query.filter(or_(*[self._state_clause(s) for s in sorted(self.states, key=lambda s: s.value)]))

        if self.client_id:
            if not hasattr(model, "client_id"):
                raise FilterValidationError.single("client_id", "This list cannot be filtered by client.")
            try:
                client_id = encoder.decode(self.client_id)
            except InvalidIdentifier:
                raise FilterValidationError.single("client_id", "The selected client is invalid.") from None
            query = query.filter(model.client_id == client_id)

        return query

    def order(self, query: Query) -> Query:
        column, direction = self.sort
        attr = getattr(self.model, column)
        ordering = attr.desc() if direction == "desc" else attr.asc()
        if column == "id":
            return query.order_by(ordering)
        return query.order_by(ordering, self.model.id.desc() if direction == "desc" else self.model.id.asc())


class PaymentFilters(QueryFilters):
    model = Payment
    searchable = ("number", "transaction_reference", "private_notes")
    sortable = ("id", "number", "amount", "date", "created_at", "updated_at")


class DocumentFilters(QueryFilters):
    model = Document
    searchable = ("name", "type")
    sortable = ("id", "name", "size", "created_at", "updated_at")


__all__ = ["QueryFilters", "PaymentFilters", "DocumentFilters"]

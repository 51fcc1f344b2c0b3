"""
Ability checks for company users.

Admins may do anything inside their company. Other users need either the
named permission (``"<ability>_<entity>"``, e.g. ``edit_payment``) or to own
the entity (creator or assignee). Nothing crosses company boundaries.
"""
from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Query

from invoicing.models.db import User


class Ability(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"
    CREATE = "create"


def _owns(user: User, entity: Any) -> bool:
    return user.id in (getattr(entity, "user_id", None), getattr(entity, "assigned_user_id", None))


def can(user: User, ability: Ability, entity: Any, entity_name: str) -> bool:
    if getattr(entity, "company_id", None) != user.company_id:
        return False
    if user.is_admin:
        return True
    if user.has_permission(f"{Ability(ability).value}_{entity_name}"):
        return True
    return _owns(user, entity)


def can_create(user: User, entity_name: str) -> bool:
    return user.is_admin or user.has_permission(f"{Ability.CREATE.value}_{entity_name}")


def visible(query: Query, user: User, model: Any, entity_name: str) -> Query:
    """Restrict a company-scoped list query to rows the user may view."""
    if user.is_admin or user.has_permission(f"{Ability.VIEW.value}_{entity_name}"):
        return query
    clauses = [model.user_id == user.id]
    if hasattr(model, "assigned_user_id"):
        clauses.append(model.assigned_user_id == user.id)
    return query.filter(or_(*clauses))


__all__ = ["Ability", "can", "can_create", "visible"]

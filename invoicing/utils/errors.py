"""Domain exceptions raised below the HTTP layer.

`invoicing.main` maps them to responses: EntityNotFound -> 404,
EntityForbidden -> 403, ValidationFailed -> 422.
"""
from __future__ import annotations

from typing import Dict, List, Optional


class InvalidIdentifier(ValueError):
    """An external identifier that is not a token this service issued."""

    def __init__(self, value: object):
        super().__init__(f"Invalid identifier: {value!r}")
        self.value = value


class EntityNotFound(Exception):
    def __init__(self, entity_name: str, identifier: object):
        super().__init__(f"{entity_name} {identifier} not found")
        self.entity_name = entity_name
        self.identifier = identifier


class EntityForbidden(Exception):
    def __init__(self, entity_name: str, identifier: object, ability: str):
        super().__init__(f"Not allowed to {ability} {entity_name} {identifier}")
        self.entity_name = entity_name
        self.identifier = identifier
        self.ability = ability


class ValidationFailed(Exception):
    """Input is well-formed but violates a business or referential rule."""

    message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message or self.message)
        self.errors = errors
        if message:
            self.message = message

    @classmethod
    def single(cls, field: str, error: str) -> "ValidationFailed":
        return cls({field: [error]})


class FilterValidationError(ValidationFailed):
    message = "Invalid list filter."


# Raised by handlers and repositories; endpoints re-raise these for the app-level handlers
DOMAIN_ERRORS = (EntityNotFound, EntityForbidden, ValidationFailed)


__all__ = [
    "InvalidIdentifier",
    "EntityNotFound",
    "EntityForbidden",
    "ValidationFailed",
    "FilterValidationError",
    "DOMAIN_ERRORS",
]

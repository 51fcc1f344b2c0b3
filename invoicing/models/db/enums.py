"""Central Enum definitions for entity states.

Status columns are stored as integers (``status_id``) so that the values
exposed over the API stay stable when labels change.
"""
from __future__ import annotations
import enum


class InvoiceStatus(enum.IntEnum):
    DRAFT = 1
    SENT = 2
    PARTIAL = 3
    PAID = 4
    CANCELLED = 5


class QuoteStatus(enum.IntEnum):
    DRAFT = 1
    SENT = 2
    APPROVED = 3
    CONVERTED = 4


class PaymentStatus(enum.IntEnum):
    PENDING = 1
    VOIDED = 2
    FAILED = 3
    COMPLETED = 4
    PARTIALLY_REFUNDED = 5
    REFUNDED = 6


class PaymentType(enum.IntEnum):
    BANK_TRANSFER = 1
    CASH = 2
    CREDIT_CARD = 3
    CHECK = 4
    OTHER = 5


class EntityState(str, enum.Enum):
    """Lifecycle state as exposed to list filters."""
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


__all__ = [
    "InvoiceStatus",
    "QuoteStatus",
    "PaymentStatus",
    "PaymentType",
    "EntityState",
]

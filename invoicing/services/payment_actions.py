"""
Single-payment actions reachable through ``GET /payments/{id}/{action}``.

Only ``archive`` and ``delete`` change state today. The remaining actions are
registered so clients can rely on the names; they log the request and hand
the payment back unchanged.
"""
from __future__ import annotations

import enum
from typing import Dict

from sqlalchemy.orm import Session

from invoicing.models.db import Payment
from invoicing.repositories.payments import PaymentRepository
from invoicing.services.resource_handler import ActionHandler
from invoicing.utils import get_logger

logger = get_logger(__name__)


class PaymentAction(str, enum.Enum):
    CLONE_TO_INVOICE = "clone_to_invoice"
    CLONE_TO_QUOTE = "clone_to_quote"
    HISTORY = "history"
    DELIVERY_NOTE = "delivery_note"
    MARK_PAID = "mark_paid"
    DOWNLOAD = "download"
    ARCHIVE = "archive"
    DELETE = "delete"
    EMAIL = "email"


def _unchanged(action: PaymentAction) -> ActionHandler:
    def handler(db: Session, payment: Payment) -> Payment:
        logger.info("Payment action has no effect", action=action.value, payment_id=payment.id)
        return payment
    return handler


def payment_action_table(repository: PaymentRepository) -> Dict[PaymentAction, ActionHandler]:
    table: Dict[PaymentAction, ActionHandler] = {action: _unchanged(action) for action in PaymentAction}
    table[PaymentAction.ARCHIVE] = repository.archive
    table[PaymentAction.DELETE] = repository.delete
    return table


__all__ = ["PaymentAction", "payment_action_table"]

"""Blank, unsaved entities used as templates for ``create`` and ``store``."""
from __future__ import annotations

from decimal import Decimal

from invoicing.models.db import Payment, PaymentStatus


class PaymentFactory:
    @staticmethod
    def create(company_id: int, user_id: int) -> Payment:
        return Payment(
            company_id=company_id,
            user_id=user_id,
            status_id=PaymentStatus.COMPLETED.value,
            amount=Decimal("0"),
            applied=Decimal("0"),
            refunded=Decimal("0"),
            is_manual=True,
            is_deleted=False,
        )


__all__ = ["PaymentFactory"]

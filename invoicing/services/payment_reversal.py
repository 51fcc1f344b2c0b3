"""
Reversal of a payment's effect on invoices and the client ledger.

Runs synchronously before a payment is deleted so that balances never show
the payment as both applied and deleted.
"""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from invoicing.models.db import Payment, InvoiceStatus
from invoicing.utils import get_logger, log_business_event

logger = get_logger(__name__)

ZERO = Decimal("0")


def reverse_invoice_payment(db: Session, payment: Payment) -> Decimal:
    """Give back every allocation of ``payment`` and return the total restored.

    The caller guarantees the payment has not been reversed already.
    """
    restored = ZERO
    client = payment.client

    for paymentable in payment.paymentables:
        net = Decimal(paymentable.amount or 0) - Decimal(paymentable.refunded or 0)
        if net <= ZERO:
            continue
        invoice = paymentable.invoice
        invoice.balance = Decimal(invoice.balance or 0) + net
        if invoice.balance >= Decimal(invoice.amount or 0):
            invoice.status_id = InvoiceStatus.SENT.value
        else:
            invoice.status_id = InvoiceStatus.PARTIAL.value
        if client is not None:
            client.balance = Decimal(client.balance or 0) + net
        restored += net

    if client is not None:
        client.paid_to_date = Decimal(client.paid_to_date or 0) - (
            Decimal(payment.amount or 0) - Decimal(payment.refunded or 0)
        )

    db.commit()

    log_business_event(
        event_type="payment_reversed",
        details={
            "payment_id": payment.id,
            "restored_amount": str(restored),
            "invoice_count": len(payment.paymentables),
        },
        user_id=payment.user_id,
    )
    return restored


__all__ = ["reverse_invoice_payment"]

"""
Payment persistence: creation with invoice allocations, descriptive updates,
and deletion preceded by a ledger reversal.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from invoicing.models.db import Client, ClientContact, Invoice, InvoiceStatus, Payment, Paymentable, User
from invoicing.models.schemas.payments import PaymentCreate, PaymentUpdate
from invoicing.repositories.base import BaseRepository
from invoicing.services.payment_reversal import reverse_invoice_payment
from invoicing.utils import get_logger, IdentifierEncoder
from invoicing.utils.errors import InvalidIdentifier, ValidationFailed

logger = get_logger(__name__)

# Fields PaymentUpdate may touch; amounts and allocations are immutable after create
UPDATABLE_FIELDS = ("date", "type_id", "transaction_reference", "number", "private_notes")


class PaymentRepository(BaseRepository):
    entity_name = "payment"

    def __init__(self, encoder: IdentifierEncoder):
        self.encoder = encoder

    def save(self, db: Session, data: PaymentCreate | PaymentUpdate, payment: Payment) -> Payment:
        if payment.id is None:
            return self._create(db, data, payment)
        return self._update(db, data, payment)

    def delete(self, db: Session, payment: Payment) -> Payment:
        if payment.is_deleted:
            return payment
        reverse_invoice_payment(db, payment)
        self._mark_deleted(db, payment)
        return payment

    # ------------------------------------------------------------------ #

    def _decode(self, field: str, token: str) -> int:
        try:
            return self.encoder.decode(token)
        except InvalidIdentifier:
            raise ValidationFailed.single(field, "The selected identifier is invalid.")

    def _resolve_assigned_user(self, db: Session, token: Optional[str], company_id: int) -> Optional[int]:
        if not token:
            return None
        user_id = self._decode("assigned_user_id", token)
        user = db.get(User, user_id)
        if user is None or user.company_id != company_id:
            raise ValidationFailed.single("assigned_user_id", "The selected user is invalid.")
        return user.id

    def _create(self, db: Session, data: PaymentCreate, payment: Payment) -> Payment:
        company_id = payment.company_id

        client = db.get(Client, self._decode("client_id", data.client_id))
        if client is None or client.company_id != company_id or client.is_deleted:
            raise ValidationFailed.single("client_id", "The selected client is invalid.")

        contact_id = None
        if data.client_contact_id:
            contact = db.get(ClientContact, self._decode("client_contact_id", data.client_contact_id))
            if contact is None or contact.client_id != client.id:
                raise ValidationFailed.single("client_contact_id", "The selected contact is invalid.")
            contact_id = contact.id

        allocations = self._validate_allocations(db, data, client)

        payment.client_id = client.id
        payment.client_contact_id = contact_id
        payment.assigned_user_id = self._resolve_assigned_user(db, data.assigned_user_id, company_id)
        payment.amount = data.amount
        payment.date = data.date
        payment.type_id = int(data.type_id) if data.type_id is not None else None
        payment.transaction_reference = data.transaction_reference
        payment.number = data.number
        payment.private_notes = data.private_notes
        db.add(payment)
        db.flush()

        applied = Decimal("0")
        for invoice, amount in allocations:
            db.add(Paymentable(payment_id=payment.id, invoice_id=invoice.id, amount=amount, refunded=Decimal("0")))
            invoice.balance = Decimal(invoice.balance or 0) - amount
            if invoice.balance <= 0:
                invoice.status_id = InvoiceStatus.PAID.value
            else:
                invoice.status_id = InvoiceStatus.PARTIAL.value
            client.balance = Decimal(client.balance or 0) - amount
            applied += amount

        payment.applied = applied
        client.paid_to_date = Decimal(client.paid_to_date or 0) + Decimal(data.amount)

        db.commit()
        db.refresh(payment)
        logger.info(
            "Payment stored",
            payment_id=payment.id,
            client_id=client.id,
            amount=str(payment.amount),
            applied=str(applied),
            invoice_count=len(allocations),
        )
        return payment

    def _validate_allocations(self, db: Session, data: PaymentCreate, client: Client) -> List[tuple[Invoice, Decimal]]:
        errors: Dict[str, List[str]] = {}
        allocations: List[tuple[Invoice, Decimal]] = []
        seen: set[int] = set()

        for index, line in enumerate(data.invoices):
            key = f"invoices.{index}.invoice_id"
            try:
                invoice_id = self.encoder.decode(line.invoice_id)
            except InvalidIdentifier:
                errors[key] = ["The selected invoice is invalid."]
                continue
            invoice = db.get(Invoice, invoice_id)
            if invoice is None or invoice.company_id != client.company_id or invoice.client_id != client.id or invoice.is_deleted:
                errors[key] = ["The selected invoice is invalid."]
                continue
            if invoice.id in seen:
                errors[key] = ["The invoice is listed more than once."]
                continue
            seen.add(invoice.id)
            if line.amount > Decimal(invoice.balance or 0):
                errors[f"invoices.{index}.amount"] = ["Amount exceeds the invoice balance."]
                continue
            allocations.append((invoice, line.amount))

        if errors:
            raise ValidationFailed(errors)
        return allocations

    def _update(self, db: Session, data: PaymentUpdate, payment: Payment) -> Payment:
        changes = data.model_dump(exclude_unset=True)
        changed: List[str] = []

        if "assigned_user_id" in changes:
            assigned = self._resolve_assigned_user(db, changes["assigned_user_id"], payment.company_id)
            if payment.assigned_user_id != assigned:
                payment.assigned_user_id = assigned
                changed.append("assigned_user_id")

        for field in UPDATABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "type_id" and value is not None:
                value = int(value)
            # Unchanged values are not assigned so no UPDATE (and no updated_at bump) is issued
            if getattr(payment, field) != value:
                setattr(payment, field, value)
                changed.append(field)

        if changed:
            db.commit()
            db.refresh(payment)
            logger.info("Payment updated", payment_id=payment.id, changed_fields=changed)
        return payment


__all__ = ["PaymentRepository", "UPDATABLE_FIELDS"]

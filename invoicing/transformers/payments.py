"""Payment representations.

``paymentables`` and ``documents`` are opt-in includes; they read the lazy
relationships of the payment, so they require an attached session.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

from invoicing.models.db import Payment
from invoicing.transformers.base import EntityTransformer, Field, FieldKind
from invoicing.transformers.documents import DocumentTransformer


class PaymentableTransformer(EntityTransformer):
    fields = (
        Field("id", FieldKind.ID),
        Field("invoice_id", FieldKind.ID),
        Field("amount", FieldKind.FLOAT),
        Field("refunded", FieldKind.FLOAT),
        Field("created_at", FieldKind.TIMESTAMP),
        Field("updated_at", FieldKind.TIMESTAMP),
    )


class PaymentTransformer(EntityTransformer):
    fields = (
        Field("id", FieldKind.ID),
        Field("user_id", FieldKind.ID),
        Field("assigned_user_id", FieldKind.ID),
        Field("client_id", FieldKind.ID),
        Field("client_contact_id", FieldKind.ID),
        Field("status_id", FieldKind.STRING),
        Field("type_id", FieldKind.STRING),
        Field("number", FieldKind.STRING),
        Field("transaction_reference", FieldKind.STRING),
        Field("private_notes", FieldKind.STRING),
        Field("amount", FieldKind.FLOAT),
        Field("applied", FieldKind.FLOAT),
        Field("refunded", FieldKind.FLOAT),
        Field("date", FieldKind.DATE),
        Field("is_manual", FieldKind.BOOL),
        Field("is_deleted", FieldKind.BOOL),
        Field("created_at", FieldKind.TIMESTAMP),
        Field("updated_at", FieldKind.TIMESTAMP),
        Field("archived_at", FieldKind.TIMESTAMP, source="deleted_at"),
    )
    available_includes = ("paymentables", "documents")

    def include_handlers(self) -> Mapping[str, Callable[[Any], Any]]:
        return {
            "paymentables": self.include_paymentables,
            "documents": self.include_documents,
        }

    def include_paymentables(self, payment: Payment) -> List[Dict[str, Any]]:
        transformer = PaymentableTransformer(self.encoder)
        return [transformer.transform(p) for p in payment.paymentables]

    def include_documents(self, payment: Payment) -> List[Dict[str, Any]]:
        transformer = DocumentTransformer(self.encoder)
        return [transformer.transform(d) for d in payment.documents]


__all__ = ["PaymentTransformer", "PaymentableTransformer"]

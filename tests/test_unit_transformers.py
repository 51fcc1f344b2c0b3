from datetime import date, datetime, timezone
from decimal import Decimal

from invoicing.models.db import Document, Payment, Paymentable
from invoicing.transformers import DocumentTransformer, PaymentTransformer, parse_includes
from invoicing.utils.hashing import IdentifierEncoder

ENC = IdentifierEncoder("transformer-salt")

DOCUMENT_KEYS = [
    "id", "user_id", "assigned_user_id", "project_id", "vendor_id",
    "path", "preview", "name", "type", "disk", "hash",
    "size", "width", "height", "is_default", "updated_at", "archived_at",
]


def test_document_keys_in_order():
    assert DocumentTransformer(ENC).keys() == DOCUMENT_KEYS


def test_document_defaults_for_missing_values():
    data = DocumentTransformer(ENC).transform(Document(id=3, user_id=9))
    assert list(data) == DOCUMENT_KEYS
    assert data["id"] == ENC.encode(3)
    assert data["user_id"] == ENC.encode(9)
    for key in ("assigned_user_id", "project_id", "vendor_id", "path", "preview", "name", "type", "disk", "hash"):
        assert data[key] == ""
    for key in ("size", "width", "height", "updated_at", "archived_at"):
        assert data[key] == 0
    assert data["is_default"] is False


def test_document_full_values():
    updated = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    archived = datetime(2024, 6, 1, tzinfo=timezone.utc)
    doc = Document(
        id=1, user_id=2, assigned_user_id=4, project_id=5, vendor_id=6,
        path="/docs/a.pdf", preview="/docs/a.png", name="a.pdf", type="pdf", disk="local",
        hash="abc123", size=2048, width=800, height=600, is_default=True,
        updated_at=updated, deleted_at=archived,
    )
    data = DocumentTransformer(ENC).transform(doc)
    assert ENC.decode(data["project_id"]) == 5
    assert ENC.decode(data["vendor_id"]) == 6
    assert data["size"] == 2048 and isinstance(data["size"], int)
    assert data["is_default"] is True
    assert data["updated_at"] == int(updated.timestamp())
    assert data["archived_at"] == int(archived.timestamp())


def test_naive_timestamps_are_read_as_utc():
    naive = datetime(2024, 1, 1, 0, 0, 0)
    data = DocumentTransformer(ENC).transform(Document(id=1, user_id=1, updated_at=naive))
    assert data["updated_at"] == int(naive.replace(tzinfo=timezone.utc).timestamp())


def test_payment_representation_types():
    payment = Payment(
        id=10, user_id=1, client_id=2, status_id=4, type_id=1,
        amount=Decimal("125.5000"), applied=Decimal("100"), refunded=None,
        date=date(2025, 3, 1), is_manual=True, is_deleted=False,
    )
    data = PaymentTransformer(ENC).transform(payment)
    assert data["id"] == ENC.encode(10)
    assert data["client_contact_id"] == ""
    assert data["assigned_user_id"] == ""
    assert data["status_id"] == "4"
    assert data["type_id"] == "1"
    assert data["amount"] == 125.5
    assert data["refunded"] == 0.0
    assert data["date"] == "2025-03-01"
    assert data["number"] == ""
    assert data["archived_at"] == 0
    assert "paymentables" not in data


def test_includes_are_opt_in_and_unknown_names_ignored():
    payment = Payment(id=10, user_id=1, is_deleted=False)
    payment.paymentables = [Paymentable(id=7, invoice_id=3, amount=Decimal("20"), refunded=Decimal("0"))]
    data = PaymentTransformer(ENC).transform_with_includes(payment, ["paymentables", "bogus"])
    assert "bogus" not in data
    assert data["paymentables"] == [{
        "id": ENC.encode(7),
        "invoice_id": ENC.encode(3),
        "amount": 20.0,
        "refunded": 0.0,
        "created_at": 0,
        "updated_at": 0,
    }]


def test_parse_includes():
    assert parse_includes(None) == []
    assert parse_includes("paymentables, documents,paymentables,") == ["paymentables", "documents"]

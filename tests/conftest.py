import os
import secrets
import sys
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'invoicing' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from invoicing.main import app  # type: ignore
from invoicing.database import Base  # type: ignore
from invoicing.api import deps  # type: ignore
"""Pytest fixtures and factories.

Every model module must be imported before Base.metadata.create_all() so that
relationship targets exist; importing the package does that.
"""
from invoicing.models.db import (
    Company, User, Client, ClientContact, Invoice, InvoiceStatus, Document,
    InvoiceInvitation, QuoteInvitation, Quote,
)
from invoicing.jobs.queue import PriorityDelayQueue

# File-based SQLite so the test thread and any worker share one database
SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_invoicing.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Jobs resolve their session factory at run time through invoicing.database
import invoicing.database as _invoicing_database  # noqa: E402
_invoicing_database.SessionLocal = TestingSessionLocal  # type: ignore


@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_invoicing.db")
    except OSError:
        pass


@pytest.fixture(scope="session", autouse=True)
def job_queue(create_test_db):
    """Queue on app.state as the lifespan would install it.

    No worker thread is started; tests drive jobs explicitly.
    """
    queue = PriorityDelayQueue()
    app.state.job_queue = queue  # type: ignore[attr-defined]
    yield queue
    queue.shutdown()


@pytest.fixture(autouse=True)
def _isolate_queue(job_queue):
    job_queue.purge()
    yield
    job_queue.purge()


@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[deps.get_db] = _override_get_db


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def encoder():
    return deps.get_identifier_encoder()


# ---------- Data factory helpers ----------

@pytest.fixture()
def company_factory(db_session):
    def _create(name: str | None = None):
        company = Company(name=name or f"Company {secrets.token_hex(3)}")
        db_session.add(company)
        db_session.commit()
        db_session.refresh(company)
        return company
    return _create


@pytest.fixture()
def user_factory(db_session):
    def _create(company, *, is_admin: bool = True, permissions: str = ""):
        user = User(
            company_id=company.id,
            first_name="Test",
            last_name="User",
            email=f"{secrets.token_hex(5)}@example.com",
            api_key=f"key_{secrets.token_hex(12)}",
            is_admin=is_admin,
            permissions=permissions,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture()
def client_factory(db_session):
    def _create(company, user, *, balance: str = "0", name: str | None = None):
        record = Client(
            company_id=company.id,
            user_id=user.id,
            name=name or f"Client {secrets.token_hex(3)}",
            balance=Decimal(balance),
            paid_to_date=Decimal("0"),
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _create


@pytest.fixture()
def contact_factory(db_session):
    def _create(client_record):
        contact = ClientContact(
            company_id=client_record.company_id,
            client_id=client_record.id,
            first_name="Jo",
            last_name="Contact",
            email=f"{secrets.token_hex(4)}@client.example",
        )
        db_session.add(contact)
        db_session.commit()
        db_session.refresh(contact)
        return contact
    return _create


@pytest.fixture()
def invoice_factory(db_session):
    def _create(client_record, *, amount: str = "100", balance: str | None = None, number: str | None = None):
        invoice = Invoice(
            company_id=client_record.company_id,
            user_id=client_record.user_id,
            client_id=client_record.id,
            number=number or f"INV-{secrets.token_hex(3)}",
            status_id=InvoiceStatus.SENT.value,
            amount=Decimal(amount),
            balance=Decimal(balance if balance is not None else amount),
        )
        db_session.add(invoice)
        client_record.balance = Decimal(client_record.balance or 0) + invoice.balance
        db_session.commit()
        db_session.refresh(invoice)
        return invoice
    return _create


@pytest.fixture()
def quote_factory(db_session):
    def _create(client_record, *, amount: str = "50"):
        quote = Quote(
            company_id=client_record.company_id,
            user_id=client_record.user_id,
            client_id=client_record.id,
            number=f"Q-{secrets.token_hex(3)}",
            amount=Decimal(amount),
        )
        db_session.add(quote)
        db_session.commit()
        db_session.refresh(quote)
        return quote
    return _create


@pytest.fixture()
def document_factory(db_session):
    def _create(company, user, *, payment=None, name: str | None = None, **fields):
        document = Document(
            company_id=company.id,
            user_id=user.id,
            documentable_type="payments" if payment is not None else None,
            documentable_id=payment.id if payment is not None else None,
            name=name or f"receipt-{secrets.token_hex(3)}.pdf",
            **fields,
        )
        db_session.add(document)
        db_session.commit()
        db_session.refresh(document)
        return document
    return _create


@pytest.fixture()
def invitation_factory(db_session):
    def _create(contact, record, *, message_id: str | None = None, model=InvoiceInvitation):
        fields = {"invoice_id": record.id} if model is InvoiceInvitation else {"quote_id": record.id}
        invitation = model(
            company_id=contact.company_id,
            user_id=record.user_id,
            client_contact_id=contact.id,
            key=secrets.token_hex(16),
            message_id=message_id or secrets.token_hex(12),
            **fields,
        )
        db_session.add(invitation)
        db_session.commit()
        db_session.refresh(invitation)
        return invitation
    return _create


@pytest.fixture()
def account(company_factory, user_factory, client_factory):
    """Company with an admin user, a client and ready-to-use auth headers."""
    company = company_factory()
    admin = user_factory(company)
    client_record = client_factory(company, admin)
    return SimpleNamespace(
        company=company,
        user=admin,
        client=client_record,
        headers={"Authorization": f"Bearer {admin.api_key}"},
    )


@pytest.fixture()
def create_payment(client, encoder):
    """Store a payment through the API and return its representation."""
    def _create(account, *, amount: str = "100", invoices=(), **fields):
        payload = {
            "client_id": encoder.encode(account.client.id),
            "amount": amount,
            "invoices": [
                {"invoice_id": encoder.encode(inv.id), "amount": str(alloc)} for inv, alloc in invoices
            ],
            **fields,
        }
        resp = client.post("/api/v1/payments/", json=payload, headers=account.headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]
    return _create

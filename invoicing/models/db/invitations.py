from __future__ import annotations
"""SQLAlchemy models for emailed invitations (one row per contact per invoice/quote).

``message_id`` is the identifier returned by the mail provider when the
invitation email is sent; provider callbacks (opened, bounced) reference it.
"""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
    from .clients import ClientContact
    from .invoices import Invoice, Quote
from sqlalchemy.sql import func
from invoicing.database import Base


class InvoiceInvitation(Base):
    __tablename__ = "invoice_invitations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    client_contact_id: Mapped[int] = mapped_column(Integer, ForeignKey("client_contacts.id"), nullable=False)
    invoice_id: Mapped[int] = mapped_column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String, unique=True, index=True)
    message_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    email_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    viewed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    opened_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User")
    contact: Mapped["ClientContact"] = relationship("ClientContact")
    invoice: Mapped["Invoice"] = relationship("Invoice")


class QuoteInvitation(Base):
    __tablename__ = "quote_invitations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    client_contact_id: Mapped[int] = mapped_column(Integer, ForeignKey("client_contacts.id"), nullable=False)
    quote_id: Mapped[int] = mapped_column(Integer, ForeignKey("quotes.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String, unique=True, index=True)
    message_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    email_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    viewed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    opened_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User")
    contact: Mapped["ClientContact"] = relationship("ClientContact")
    quote: Mapped["Quote"] = relationship("Quote")

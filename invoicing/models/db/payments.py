from __future__ import annotations
"""SQLAlchemy models for payments and their applications to invoices."""
import datetime as dt
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Date, DateTime, Boolean, Numeric, ForeignKey, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .clients import Client
    from .invoices import Invoice
    from .documents import Document
from sqlalchemy.sql import func
from invoicing.database import Base
from .enums import PaymentStatus


class Payment(Base):
    __tablename__ = "payments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    client_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    client_contact_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("client_contacts.id"), nullable=True)

    status_id: Mapped[int] = mapped_column(Integer, default=PaymentStatus.COMPLETED.value, index=True)
    type_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    # Portion of amount allocated to invoices through paymentables
    applied: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    refunded: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    transaction_reference: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    number: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    private_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_manual: Mapped[bool] = mapped_column(Boolean, default=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    # Set when archived or deleted; cleared on restore
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    client: Mapped["Client | None"] = relationship("Client")
    paymentables: Mapped[list["Paymentable"]] = relationship(
        "Paymentable", back_populates="payment", order_by="Paymentable.id"
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document",
        primaryjoin="and_(Payment.id == foreign(Document.documentable_id), Document.documentable_type == 'payments')",
        viewonly=True,
        order_by="Document.id",
    )


class Paymentable(Base):
    __tablename__ = "paymentables"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    payment_id: Mapped[int] = mapped_column(Integer, ForeignKey("payments.id"), nullable=False, index=True)
    invoice_id: Mapped[int] = mapped_column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    refunded: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    payment: Mapped["Payment"] = relationship("Payment", back_populates="paymentables")
    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="paymentables")

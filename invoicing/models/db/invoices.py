from __future__ import annotations
"""SQLAlchemy models for invoices and quotes."""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .clients import Client
    from .payments import Paymentable
from sqlalchemy.sql import func
from invoicing.database import Base
from .enums import InvoiceStatus, QuoteStatus


class Invoice(Base):
    __tablename__ = "invoices"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    number: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    status_id: Mapped[int] = mapped_column(Integer, default=InvoiceStatus.DRAFT.value, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    balance: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    client: Mapped["Client"] = relationship("Client", back_populates="invoices")
    paymentables: Mapped[list["Paymentable"]] = relationship("Paymentable", back_populates="invoice")


class Quote(Base):
    __tablename__ = "quotes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    number: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    status_id: Mapped[int] = mapped_column(Integer, default=QuoteStatus.DRAFT.value)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 4), default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    client: Mapped["Client"] = relationship("Client")

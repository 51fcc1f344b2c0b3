"""
Pydantic schemas for payment input.

Identifiers (client_id, invoice_id, ...) are external hashed ids; they are
decoded and checked against the caller's company by the repository.
"""
import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator
from ..db.enums import PaymentType


class PaymentInvoiceAllocation(BaseModel):
    invoice_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=16, decimal_places=4)


class PaymentCreate(BaseModel):
    client_id: str = Field(min_length=1)
    client_contact_id: Optional[str] = None
    assigned_user_id: Optional[str] = None
    amount: Decimal = Field(ge=0, max_digits=16, decimal_places=4)
    date: Optional[datetime.date] = None
    type_id: Optional[PaymentType] = None
    transaction_reference: Optional[str] = Field(None, max_length=255)
    number: Optional[str] = Field(None, max_length=100)
    private_notes: Optional[str] = Field(None, max_length=5000)
    invoices: List[PaymentInvoiceAllocation] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "client_id": "k3Jx9QE",
            "amount": 150.00,
            "date": "2025-03-01",
            "type_id": 1,
            "transaction_reference": "BANK-REF-0042",
            "invoices": [{"invoice_id": "p0Qw2ZA", "amount": 150.00}]
        }
    })

    @model_validator(mode="after")
    def _allocations_within_amount(self) -> "PaymentCreate":
        allocated = sum((line.amount for line in self.invoices), Decimal("0"))
        if allocated > self.amount:
            raise ValueError("Sum of invoice allocations exceeds the payment amount")
        return self


class PaymentUpdate(BaseModel):
    """Descriptive fields only; amounts and allocations are fixed once stored."""
    assigned_user_id: Optional[str] = None
    date: Optional[datetime.date] = None
    type_id: Optional[PaymentType] = None
    transaction_reference: Optional[str] = Field(None, max_length=255)
    number: Optional[str] = Field(None, max_length=100)
    private_notes: Optional[str] = Field(None, max_length=5000)

from .companies import Company
from .users import User
from .clients import Client, ClientContact
from .invoices import Invoice, Quote
from .payments import Payment, Paymentable
from .projects import Project, Vendor
from .documents import Document
from .invitations import InvoiceInvitation, QuoteInvitation
from .enums import InvoiceStatus, QuoteStatus, PaymentStatus, PaymentType, EntityState

__all__ = [
    "Company",
    "User",
    "Client",
    "ClientContact",
    "Invoice",
    "Quote",
    "Payment",
    "Paymentable",
    "Project",
    "Vendor",
    "Document",
    "InvoiceInvitation",
    "QuoteInvitation",
    "InvoiceStatus",
    "QuoteStatus",
    "PaymentStatus",
    "PaymentType",
    "EntityState",
]

from .base import ResponseBase, Pagination, ListMeta, ItemResponse, ListResponse, ErrorResponse
from .payments import PaymentCreate, PaymentUpdate, PaymentInvoiceAllocation

__all__ = [
    # Base
    "ResponseBase",
    "Pagination",
    "ListMeta",
    "ItemResponse",
    "ListResponse",
    "ErrorResponse",

    # Payments
    "PaymentCreate",
    "PaymentUpdate",
    "PaymentInvoiceAllocation",
]

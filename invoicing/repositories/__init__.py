from .base import BulkAction, BaseRepository
from .documents import DocumentRepository
from .payments import PaymentRepository

__all__ = [
    "BulkAction",
    "BaseRepository",
    "DocumentRepository",
    "PaymentRepository",
]

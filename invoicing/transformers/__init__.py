from .base import EntityTransformer, Field, FieldKind, parse_includes
from .documents import DocumentTransformer
from .payments import PaymentTransformer, PaymentableTransformer

__all__ = [
    "EntityTransformer",
    "Field",
    "FieldKind",
    "parse_includes",
    "DocumentTransformer",
    "PaymentTransformer",
    "PaymentableTransformer",
]

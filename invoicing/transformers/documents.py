"""Document representation."""
from __future__ import annotations

from invoicing.transformers.base import EntityTransformer, Field, FieldKind


class DocumentTransformer(EntityTransformer):
    fields = (
        Field("id", FieldKind.ID),
        Field("user_id", FieldKind.ID),
        Field("assigned_user_id", FieldKind.ID),
        Field("project_id", FieldKind.ID),
        Field("vendor_id", FieldKind.ID),
        Field("path", FieldKind.STRING),
        Field("preview", FieldKind.STRING),
        Field("name", FieldKind.STRING),
        Field("type", FieldKind.STRING),
        Field("disk", FieldKind.STRING),
        Field("hash", FieldKind.STRING),
        Field("size", FieldKind.INT),
        Field("width", FieldKind.INT),
        Field("height", FieldKind.INT),
        Field("is_default", FieldKind.BOOL),
        Field("updated_at", FieldKind.TIMESTAMP),
        Field("archived_at", FieldKind.TIMESTAMP, source="deleted_at"),
    )


__all__ = ["DocumentTransformer"]

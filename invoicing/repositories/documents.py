from __future__ import annotations

from invoicing.repositories.base import BaseRepository


class DocumentRepository(BaseRepository):
    entity_name = "document"


__all__ = ["DocumentRepository"]

"""
Base schemas used across the application.

Entity payloads are produced by transformers as plain dicts, so the response
envelopes below type ``data`` loosely and document the pagination block.
"""
from datetime import datetime, timezone
from typing import Optional, Any, Dict, List
from pydantic import BaseModel, Field, ConfigDict


class ResponseBase(BaseModel):
    """Base response format for acknowledgement-style endpoints."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Pagination(BaseModel):
    total: int = Field(ge=0, description="Rows matching the filters")
    count: int = Field(ge=0, description="Rows in this page")
    per_page: int
    current_page: int
    total_pages: int


class ListMeta(BaseModel):
    pagination: Optional[Pagination] = None


class ItemResponse(BaseModel):
    """Single transformed entity."""
    data: Dict[str, Any]


class ListResponse(BaseModel):
    """Transformed entities with optional pagination metadata."""
    data: List[Dict[str, Any]]
    meta: ListMeta = Field(default_factory=ListMeta)


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[Dict[str, List[str]]] = None
    request_id: Optional[str] = None

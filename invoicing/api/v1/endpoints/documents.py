"""
Document endpoints (listing, lookup and lifecycle; uploads are handled elsewhere).
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from invoicing.api.deps import get_db, get_request_context, get_document_handler, PaginationParams
from invoicing.filters import DocumentFilters
from invoicing.models.schemas.base import ItemResponse, ListResponse
from invoicing.models.schemas.bulk import BulkRequest
from invoicing.services.authorization import Ability
from invoicing.services.context import RequestContext
from invoicing.services.resource_handler import ResourceHandler
from invoicing.utils import get_logger, log_business_event
from invoicing.utils.errors import DOMAIN_ERRORS

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_model=ListResponse, summary="List documents")
async def list_documents(
    ctx: RequestContext = Depends(get_request_context),
    pagination: PaginationParams = Depends(),
    filter: Optional[str] = Query(None, max_length=255, description="Free text over name and type"),
    status_filter: Optional[str] = Query("active", alias="status"),
    sort: Optional[str] = Query(None),
    handler: ResourceHandler = Depends(get_document_handler),
    db: Session = Depends(get_db)
):
    filters = DocumentFilters(filter=filter, status=status_filter, sort=sort)
    return handler.list(ctx, db, filters, pagination.page, pagination.per_page)


@router.get("/{document_id}", response_model=ItemResponse, summary="Show document")
async def show_document(
    document_id: str,
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_document_handler),
    db: Session = Depends(get_db)
):
    document = handler.resolve(ctx, db, document_id, Ability.VIEW)
    return handler.item(document)


@router.delete("/{document_id}", response_model=ItemResponse, summary="Delete document")
async def destroy_document(
    document_id: str,
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_document_handler),
    db: Session = Depends(get_db)
):
    logger.info("Document deletion started", document_id=document_id, user_id=ctx.user_id, request_id=ctx.request_id)
    try:
        document = handler.resolve(ctx, db, document_id, Ability.EDIT)
        document = handler.repository.delete(db, document)
        log_business_event(
            event_type="document_deleted",
            details={"document_id": document.id},
            user_id=ctx.user_id,
            request_id=ctx.request_id
        )
        return handler.item(document)
    except DOMAIN_ERRORS:
        raise
    except Exception as e:
        db.rollback()
        logger.error("Document deletion failed", error=str(e), document_id=document_id, request_id=ctx.request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete document"
        )


@router.post("/bulk", response_model=ListResponse, summary="Bulk document action")
async def bulk_documents(
    bulk: BulkRequest,
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_document_handler),
    db: Session = Depends(get_db)
):
    return handler.bulk(ctx, db, bulk.action, bulk.ids)

"""
Payment endpoints.

Identifiers in paths and payloads are external hashed ids. Lookups are
scoped to the caller's company; a token that does not decode, or that points
at another company's payment, is reported as 404.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import time
from invoicing.api.deps import (
    get_db, get_request_context, get_payment_handler, get_payment_repository,
    PaginationParams, parse_include_param,
)
from invoicing.factories import PaymentFactory
from invoicing.filters import PaymentFilters
from invoicing.models.schemas.base import ItemResponse, ListResponse, ErrorResponse
from invoicing.models.schemas.bulk import BulkRequest
from invoicing.models.schemas.payments import PaymentCreate, PaymentUpdate
from invoicing.repositories.payments import PaymentRepository
from invoicing.services.authorization import Ability, can_create
from invoicing.services.context import RequestContext
from invoicing.services.payment_actions import PaymentAction, payment_action_table
from invoicing.services.resource_handler import ResourceHandler
from invoicing.utils import get_logger, log_business_event, log_performance
from invoicing.utils.errors import DOMAIN_ERRORS, EntityForbidden

router = APIRouter()
logger = get_logger(__name__)


def _unexpected(operation: str, error: Exception, ctx: RequestContext, **fields) -> HTTPException:
    logger.error(
        f"Payment {operation} failed with unexpected error",
        error=str(error),
        request_id=ctx.request_id,
        exc_info=True,
        **fields
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {operation} payment"
    )


@router.get(
    "/",
    response_model=ListResponse,
    summary="List payments",
    description="Paginated payments of the caller's company, filtered by text, lifecycle status and client"
)
async def list_payments(
    ctx: RequestContext = Depends(get_request_context),
    pagination: PaginationParams = Depends(),
    filter: Optional[str] = Query(None, max_length=255, description="Free text over number, reference and notes"),
    status_filter: Optional[str] = Query("active", alias="status", description="Comma list of active, archived, deleted"),
    client_id: Optional[str] = Query(None, description="External client id"),
    sort: Optional[str] = Query(None, description="column|asc or column|desc"),
    includes: List[str] = Depends(parse_include_param),
    handler: ResourceHandler = Depends(get_payment_handler),
    db: Session = Depends(get_db)
):
    start_time = time.time()
    logger.info(
        "Payment list request started",
        user_id=ctx.user_id,
        page=pagination.page,
        per_page=pagination.per_page,
        request_id=ctx.request_id
    )

    try:
        filters = PaymentFilters(filter=filter, status=status_filter, client_id=client_id, sort=sort)
        result = handler.list(ctx, db, filters, pagination.page, pagination.per_page, includes)

        log_performance(
            operation="list_payments",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"result_count": len(result["data"])}
        )
        return result

    except DOMAIN_ERRORS:
        raise
    except HTTPException:
        raise
    except Exception as e:
        raise _unexpected("list", e, ctx)


@router.get(
    "/create",
    response_model=ItemResponse,
    summary="Blank payment",
    description="Unsaved payment template with defaults for the caller's company"
)
async def create_payment(
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_payment_handler)
):
    if not can_create(ctx.user, "payment"):
        raise EntityForbidden("payment", "new", Ability.CREATE.value)
    payment = PaymentFactory.create(ctx.company_id, ctx.user_id)
    return handler.item(payment)


@router.post(
    "/",
    response_model=ItemResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Store payment",
    description="Record a payment and apply it to the listed invoices"
)
async def store_payment(
    payment_data: PaymentCreate,
    ctx: RequestContext = Depends(get_request_context),
    includes: List[str] = Depends(parse_include_param),
    handler: ResourceHandler = Depends(get_payment_handler),
    repository: PaymentRepository = Depends(get_payment_repository),
    db: Session = Depends(get_db)
):
    start_time = time.time()
    logger.info(
        "Payment creation started",
        user_id=ctx.user_id,
        amount=str(payment_data.amount),
        invoice_count=len(payment_data.invoices),
        request_id=ctx.request_id
    )

    try:
        if not can_create(ctx.user, "payment"):
            raise EntityForbidden("payment", "new", Ability.CREATE.value)

        payment = repository.save(db, payment_data, PaymentFactory.create(ctx.company_id, ctx.user_id))

        log_business_event(
            event_type="payment_created",
            details={
                "payment_id": payment.id,
                "client_id": payment.client_id,
                "amount": str(payment.amount),
                "applied": str(payment.applied),
            },
            user_id=ctx.user_id,
            request_id=ctx.request_id
        )
        log_performance(
            operation="store_payment",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"payment_id": payment.id}
        )
        return handler.item(payment, includes)

    except DOMAIN_ERRORS:
        db.rollback()
        raise
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise _unexpected("store", e, ctx)


@router.get(
    "/{payment_id}",
    response_model=ItemResponse,
    summary="Show payment"
)
async def show_payment(
    payment_id: str,
    ctx: RequestContext = Depends(get_request_context),
    includes: List[str] = Depends(parse_include_param),
    handler: ResourceHandler = Depends(get_payment_handler),
    db: Session = Depends(get_db)
):
    payment = handler.resolve(ctx, db, payment_id, Ability.VIEW)
    return handler.item(payment, includes)


@router.get(
    "/{payment_id}/edit",
    response_model=ItemResponse,
    summary="Edit payment",
    description="Payment representation for editing; requires the edit ability"
)
async def edit_payment(
    payment_id: str,
    ctx: RequestContext = Depends(get_request_context),
    includes: List[str] = Depends(parse_include_param),
    handler: ResourceHandler = Depends(get_payment_handler),
    db: Session = Depends(get_db)
):
    payment = handler.resolve(ctx, db, payment_id, Ability.EDIT)
    return handler.item(payment, includes)


@router.put(
    "/{payment_id}",
    response_model=ItemResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Update payment",
    description="Update descriptive fields; deleted payments cannot be updated"
)
async def update_payment(
    payment_id: str,
    payment_data: PaymentUpdate,
    ctx: RequestContext = Depends(get_request_context),
    includes: List[str] = Depends(parse_include_param),
    handler: ResourceHandler = Depends(get_payment_handler),
    repository: PaymentRepository = Depends(get_payment_repository),
    db: Session = Depends(get_db)
):
    logger.info("Payment update started", payment_id=payment_id, user_id=ctx.user_id, request_id=ctx.request_id)

    try:
        payment = handler.resolve(ctx, db, payment_id, Ability.EDIT)

        if payment.is_deleted:
            logger.warning("Update rejected: payment is deleted", payment_id=payment.id, request_id=ctx.request_id)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "success": False,
                    "message": "Record is deleted and cannot be updated.",
                    "request_id": ctx.request_id
                }
            )

        payment = repository.save(db, payment_data, payment)

        log_business_event(
            event_type="payment_updated",
            details={
                "payment_id": payment.id,
                "fields": sorted(payment_data.model_dump(exclude_unset=True)),
            },
            user_id=ctx.user_id,
            request_id=ctx.request_id
        )
        return handler.item(payment, includes)

    except DOMAIN_ERRORS:
        db.rollback()
        raise
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise _unexpected("update", e, ctx, payment_id=payment_id)


@router.delete(
    "/{payment_id}",
    response_model=ItemResponse,
    summary="Delete payment",
    description="Reverse the payment's invoice allocations, then delete it"
)
async def destroy_payment(
    payment_id: str,
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_payment_handler),
    repository: PaymentRepository = Depends(get_payment_repository),
    db: Session = Depends(get_db)
):
    start_time = time.time()
    logger.info("Payment deletion started", payment_id=payment_id, user_id=ctx.user_id, request_id=ctx.request_id)

    try:
        payment = handler.resolve(ctx, db, payment_id, Ability.EDIT)
        already_deleted = payment.is_deleted
        payment = repository.delete(db, payment)

        if not already_deleted:
            log_business_event(
                event_type="payment_deleted",
                details={"payment_id": payment.id, "amount": str(payment.amount)},
                user_id=ctx.user_id,
                request_id=ctx.request_id
            )
        log_performance(
            operation="destroy_payment",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"payment_id": payment.id}
        )
        return handler.item(payment)

    except DOMAIN_ERRORS:
        db.rollback()
        raise
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise _unexpected("delete", e, ctx, payment_id=payment_id)


@router.post(
    "/bulk",
    response_model=ListResponse,
    summary="Bulk payment action",
    description="Archive, restore or delete several payments; unknown or foreign ids are ignored"
)
async def bulk_payments(
    bulk: BulkRequest,
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_payment_handler),
    db: Session = Depends(get_db)
):
    logger.info(
        "Payment bulk action started",
        action=bulk.action.value,
        id_count=len(bulk.ids),
        user_id=ctx.user_id,
        request_id=ctx.request_id
    )

    try:
        return handler.bulk(ctx, db, bulk.action, bulk.ids)
    except DOMAIN_ERRORS:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise _unexpected("bulk update", e, ctx, action=bulk.action.value)


@router.get(
    "/{payment_id}/{action}",
    response_model=ItemResponse,
    summary="Run payment action",
    description="Single payment action such as archive or delete"
)
async def payment_action(
    payment_id: str,
    action: PaymentAction,
    ctx: RequestContext = Depends(get_request_context),
    handler: ResourceHandler = Depends(get_payment_handler),
    repository: PaymentRepository = Depends(get_payment_repository),
    db: Session = Depends(get_db)
):
    logger.info(
        "Payment action started",
        payment_id=payment_id,
        action=action.value,
        user_id=ctx.user_id,
        request_id=ctx.request_id
    )

    try:
        payment = handler.resolve(ctx, db, payment_id, Ability.EDIT)
        payment = handler.run_action(ctx, db, payment, action, payment_action_table(repository))
        return handler.item(payment)
    except DOMAIN_ERRORS:
        db.rollback()
        raise
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise _unexpected(action.value, e, ctx, payment_id=payment_id)

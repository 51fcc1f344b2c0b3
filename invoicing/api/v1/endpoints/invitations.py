"""
Mail provider callbacks for invitation emails.

Events are acknowledged immediately and applied by the background worker,
so a slow database never delays the provider's webhook delivery.
"""
import hmac
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from invoicing import config
from invoicing.api.deps import get_job_queue
from invoicing.jobs.invitation_jobs import MarkBounced, MarkOpened
from invoicing.models.schemas.base import ResponseBase
from invoicing.models.schemas.invitations import InvitationEvent, InvitationEventType
from invoicing.utils import get_logger, log_business_event

router = APIRouter()
logger = get_logger(__name__)


def verify_webhook_token(x_webhook_token: Optional[str] = Header(None, alias="X-Webhook-Token")) -> None:
    expected = config.WEBHOOK_TOKEN
    if expected is None:
        return
    # bytes comparison: str inputs must be ASCII for compare_digest
    if not x_webhook_token or not hmac.compare_digest(x_webhook_token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Webhook rejected: invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook token"
        )


@router.post(
    "/events",
    response_model=ResponseBase,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Invitation email event",
    description="Record an opened or bounced invitation email reported by the mail provider"
)
async def invitation_event(
    event: InvitationEvent,
    request: Request,
    _: None = Depends(verify_webhook_token),
    queue=Depends(get_job_queue)
) -> ResponseBase:
    request_id = getattr(request.state, "request_id", "unknown")

    if event.event == InvitationEventType.OPENED:
        job = MarkOpened(message_id=event.message_id, entity=event.entity.value, db=event.db)
    else:
        job = MarkBounced(message_id=event.message_id, entity=event.entity.value, error=event.error or "", db=event.db)

    try:
        queue.enqueue(job, priority="low")
    except (OverflowError, RuntimeError) as e:
        logger.error("Invitation event not queued", error=str(e), request_id=request_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Event queue unavailable"
        )

    logger.info(
        "Invitation event queued",
        event=event.event.value,
        entity=event.entity.value,
        message_id=event.message_id,
        request_id=request_id
    )
    log_business_event(
        event_type="invitation_event_queued",
        details={
            "event": event.event.value,
            "entity": event.entity.value,
            "message_id": event.message_id,
            "db": event.db,
        },
        request_id=request_id
    )
    return ResponseBase(
        message="Event accepted",
        data={"job_type": type(job).__name__, "message_id": event.message_id}
    )

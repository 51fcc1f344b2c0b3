"""Invitation email tracking jobs.

Mail provider callbacks reference an invitation by the provider ``message_id``.
Each job overwrites a single tracking field on the matching invitation; when
no invitation matches (unknown id, or already purged) the job is a logged
no-op. Repeated delivery is harmless and the last write wins.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from invoicing.models.db import InvoiceInvitation, QuoteInvitation
from invoicing.utils import get_logger
from invoicing.utils.time import utc_now

logger = get_logger(__name__)


class InvitationEntity(str, enum.Enum):
    INVOICE = "invoice"
    QUOTE = "quote"


INVITATION_MODELS = {
    InvitationEntity.INVOICE: InvoiceInvitation,
    InvitationEntity.QUOTE: QuoteInvitation,
}

Invitation = Union[InvoiceInvitation, QuoteInvitation]


def find_invitation(session: Session, entity: InvitationEntity | str, message_id: str) -> Optional[Invitation]:
    model = INVITATION_MODELS[InvitationEntity(entity)]
    stmt = (
        select(model)
        .options(selectinload(model.user), selectinload(model.contact))
        .where(model.message_id == message_id)
        .order_by(model.id)
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


@dataclass(frozen=True, slots=True)
class MarkOpened:
    message_id: str
    entity: str = InvitationEntity.INVOICE.value
    db: Optional[str] = None  # data partition; None = primary database

    def handle(self, session: Session) -> bool:
        invitation = find_invitation(session, self.entity, self.message_id)
        if invitation is None:
            logger.info("No invitation for opened event", message_id=self.message_id, entity=str(self.entity))
            return False
        invitation.opened_date = utc_now()
        session.commit()
        logger.info(
            "Invitation marked opened",
            invitation_id=invitation.id,
            message_id=self.message_id,
            contact_id=invitation.client_contact_id,
        )
        return True


@dataclass(frozen=True, slots=True)
class MarkBounced:
    message_id: str
    entity: str = InvitationEntity.INVOICE.value
    error: str = ""
    db: Optional[str] = None

    def handle(self, session: Session) -> bool:
        invitation = find_invitation(session, self.entity, self.message_id)
        if invitation is None:
            logger.info("No invitation for bounce event", message_id=self.message_id, entity=str(self.entity))
            return False
        invitation.email_error = self.error
        session.commit()
        logger.warning(
            "Invitation email bounced",
            invitation_id=invitation.id,
            message_id=self.message_id,
            contact_id=invitation.client_contact_id,
        )
        return True


__all__ = ["InvitationEntity", "INVITATION_MODELS", "find_invitation", "MarkOpened", "MarkBounced"]

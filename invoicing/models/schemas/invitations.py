"""
Pydantic schemas for mail provider callbacks about invitation emails.
"""
import enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator
from invoicing.jobs.invitation_jobs import InvitationEntity


class InvitationEventType(str, enum.Enum):
    OPENED = "opened"
    BOUNCED = "bounced"


class InvitationEvent(BaseModel):
    event: InvitationEventType
    message_id: str = Field(min_length=1, max_length=255)
    entity: InvitationEntity = InvitationEntity.INVOICE
    error: Optional[str] = Field(None, max_length=2000, description="Provider bounce description")
    db: Optional[str] = Field(None, max_length=100, description="Data partition the invitation lives in")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "event": "opened",
            "message_id": "a8c1f3e2-0d4b-4f57-9d2e-7f0b6f1d2c11",
            "entity": "invoice"
        }
    })

    @model_validator(mode="after")
    def _bounce_needs_error(self) -> "InvitationEvent":
        if self.event == InvitationEventType.BOUNCED and not self.error:
            raise ValueError("Bounce events require an error description")
        return self

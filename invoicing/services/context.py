"""Per-request caller context passed explicitly into handlers."""
from __future__ import annotations

from dataclasses import dataclass

from invoicing.models.db import User


@dataclass(frozen=True)
class RequestContext:
    user: User
    company_id: int
    request_id: str = "unknown"

    @property
    def user_id(self) -> int:
        return self.user.id


__all__ = ["RequestContext"]

"""
Pydantic schema for bulk entity actions.
"""
from typing import List
from pydantic import BaseModel, Field, ConfigDict
from invoicing.repositories.base import BulkAction


class BulkRequest(BaseModel):
    action: BulkAction
    ids: List[str] = Field(min_length=1, max_length=500, description="External (hashed) ids")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "action": "archive",
            "ids": ["k3Jx9QE", "p0Qw2ZA"]
        }
    })

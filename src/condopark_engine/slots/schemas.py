"""Pydantic schemas for slot endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


class SlotCreate(BaseModel):
    slot_number: str = Field(..., min_length=1, max_length=50)
    rate_per_hour: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str = ""


class SlotUpdate(BaseModel):
    """Community and owner are not updatable; unknown fields are ignored."""

    rate_per_hour: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    status: Optional[Literal["active", "maintenance", "disabled"]] = None
    description: Optional[str] = None


class SlotResponse(BaseModel):
    id: str
    community_code: str
    owner_id: str
    slot_number: str
    description: str
    rate_per_hour: Decimal
    status: str
    created_at: datetime

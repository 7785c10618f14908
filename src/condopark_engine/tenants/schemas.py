"""Pydantic schemas for operator tenant endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: Optional[str] = Field(
        default=None, min_length=2, max_length=64, pattern=r"^[A-Za-z0-9_-]+$"
    )


class TenantResponse(BaseModel):
    code: str
    name: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TenantStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


class RotateRequest(BaseModel):
    new_code: Optional[str] = None
    dry_run: bool = False


class RotationResponse(BaseModel):
    old_code: str
    new_code: str
    dry_run: bool
    principals: int
    slots: int
    bookings: int
    rotated_at: Optional[datetime] = None
    rollback_sql: str

"""Pydantic schemas for booking endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, field_validator

from condopark_engine.common.models import as_utc


class BookingCreate(BaseModel):
    """Price is never accepted from the client; extra fields are dropped."""

    slot_id: str
    start_time: datetime
    end_time: datetime


class BookingResponse(BaseModel):
    id: str
    slot_id: str
    renter_id: str
    community_code: str
    start_time: datetime
    end_time: datetime
    total_price: Decimal
    status: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


BookingRole = Literal["renter", "owner"]
BookingStatus = Literal["pending", "confirmed", "completed", "cancelled", "no_show"]

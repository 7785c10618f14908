"""Booking API router, scoped to ``/communities/{community_code}``.

The reservation engine manages its own transactions, so handlers here do
not open a session.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from condopark_engine.access.guard import CallerContext
from condopark_engine.bookings.models import BookingModel
from condopark_engine.bookings.schemas import (
    BookingCreate,
    BookingResponse,
    BookingRole,
    BookingStatus,
)
from condopark_engine.common.exceptions import CondoParkError, PersistenceFailure
from condopark_engine.common.schemas import to_http_exception
from condopark_engine.common.security import require_community_caller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/communities/{community_code}", tags=["bookings"])


def _get_engine():
    from condopark_engine.deps import get_reservation_engine
    return get_reservation_engine()


def _to_response(booking: BookingModel) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        slot_id=booking.slot_id,
        renter_id=booking.renter_id,
        community_code=booking.tenant_code,
        start_time=booking.start_time,
        end_time=booking.end_time,
        total_price=booking.total_price,
        status=booking.status,
    )


def _http_error(e: CondoParkError):
    if isinstance(e, PersistenceFailure):
        logger.error("booking request failed: %s", e.message)
    return to_http_exception(e)


@router.post("/bookings", response_model=BookingResponse, status_code=201)
async def create_booking(
    body: BookingCreate,
    caller: CallerContext = Depends(require_community_caller),
):
    try:
        booking = await _get_engine().reserve(
            caller, body.slot_id, body.start_time, body.end_time
        )
    except CondoParkError as e:
        raise _http_error(e)
    return _to_response(booking)


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    role: BookingRole = Query("renter"),
    status: Optional[BookingStatus] = Query(None),
    caller: CallerContext = Depends(require_community_caller),
):
    bookings = await _get_engine().list_bookings(caller, role=role, status=status)
    return [_to_response(b) for b in bookings]


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    caller: CallerContext = Depends(require_community_caller),
):
    try:
        booking = await _get_engine().get_booking(caller, booking_id)
    except CondoParkError as e:
        raise _http_error(e)
    return _to_response(booking)


@router.get("/slots/{slot_id}/schedule", response_model=list[BookingResponse])
async def slot_schedule(
    slot_id: str,
    caller: CallerContext = Depends(require_community_caller),
):
    try:
        bookings = await _get_engine().slot_schedule(caller, slot_id)
    except CondoParkError as e:
        raise _http_error(e)
    return [_to_response(b) for b in bookings]


async def _transition(caller: CallerContext, booking_id: str, target: str) -> BookingResponse:
    try:
        booking = await _get_engine().transition(caller, booking_id, target)
    except CondoParkError as e:
        raise _http_error(e)
    return _to_response(booking)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str, caller: CallerContext = Depends(require_community_caller)
):
    return await _transition(caller, booking_id, "cancelled")


@router.post("/bookings/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str, caller: CallerContext = Depends(require_community_caller)
):
    return await _transition(caller, booking_id, "confirmed")


@router.post("/bookings/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str, caller: CallerContext = Depends(require_community_caller)
):
    return await _transition(caller, booking_id, "completed")


@router.post("/bookings/{booking_id}/no-show", response_model=BookingResponse)
async def no_show_booking(
    booking_id: str, caller: CallerContext = Depends(require_community_caller)
):
    return await _transition(caller, booking_id, "no_show")

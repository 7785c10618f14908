"""Booking reservation engine: allocation, state transitions and scoped reads.

Overlap check and insert for a slot run under that slot's lock and inside
one transaction that commits before the lock is released, so concurrent
``reserve()`` calls for the same window produce exactly one booking. The
slot row is also locked with ``SELECT ... FOR UPDATE`` on dialects that
support it, which serializes writers across processes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy import select, text, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from condopark_engine.access.guard import CallerContext, authorize_tenant
from condopark_engine.bookings.models import ACTIVE_STATUSES, BookingModel
from condopark_engine.common.config import CondoParkSettings
from condopark_engine.common.database import DatabaseManager
from condopark_engine.common.exceptions import (
    BookingNotFoundError,
    CondoParkError,
    InvalidIntervalError,
    InvalidTransitionError,
    NotBookingPartyError,
    NotSlotOwnerError,
    PersistenceFailure,
    ReservationBusyError,
    ResourceUnavailableError,
    SlotConflictError,
    SlotNotFoundError,
)
from condopark_engine.common.models import as_utc, utcnow
from condopark_engine.pricing.calculator import calculate_price
from condopark_engine.slots.models import SlotModel

logger = logging.getLogger(__name__)

# target status -> (required current status, who may perform it)
TRANSITIONS: dict[str, tuple[str, str]] = {
    "confirmed": ("pending", "owner"),
    "cancelled": ("pending", "renter"),
    "completed": ("confirmed", "owner"),
    "no_show": ("confirmed", "owner"),
}

RETRY_BACKOFF = 0.05  # seconds, multiplied by the attempt number


def can_transition(current: str, target: str) -> bool:
    rule = TRANSITIONS.get(target)
    return rule is not None and rule[0] == current


class SlotLockRegistry:
    """One asyncio.Lock per slot id, kept only while someone holds or awaits it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, slot_id: str, timeout: float) -> AsyncGenerator[None, None]:
        lock = self._locks.setdefault(slot_id, asyncio.Lock())
        self._users[slot_id] = self._users.get(slot_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("slot lock wait timed out", extra={"slot_id": slot_id})
                raise ReservationBusyError()
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[slot_id] -= 1
            if not self._users[slot_id]:
                del self._users[slot_id]
                del self._locks[slot_id]


class ReservationEngine:
    """Concurrency-safe booking of slot time windows."""

    def __init__(
        self,
        settings: CondoParkSettings,
        db: DatabaseManager,
        locks: SlotLockRegistry | None = None,
    ):
        self.settings = settings
        self.db = db
        self.locks = locks or SlotLockRegistry()

    # ── Reserve ──

    async def reserve(
        self,
        caller: CallerContext,
        slot_id: str,
        start: datetime,
        end: datetime,
    ) -> BookingModel:
        """Book ``[start, end)`` on a slot as ``pending``.

        Raises CrossTenantAccessDeniedError, SlotNotFoundError,
        ResourceUnavailableError, InvalidIntervalError, DurationTooLongError,
        SlotConflictError, ReservationBusyError or PersistenceFailure.
        """
        if start is None or end is None:
            raise InvalidIntervalError("Start and end time are required")
        start, end = as_utc(start), as_utc(end)

        # Unknown and foreign slots are rejected before any lock is taken;
        # the transaction below checks again under the lock.
        async with self.db.get_session() as session:
            await self._load_slot(session, caller, slot_id)

        return await self._locked_write(
            slot_id, lambda session: self._reserve_in_tx(session, caller, slot_id, start, end)
        )

    async def _reserve_in_tx(
        self,
        session: AsyncSession,
        caller: CallerContext,
        slot_id: str,
        start: datetime,
        end: datetime,
    ) -> BookingModel:
        slot = await self._load_slot(session, caller, slot_id, for_update=True)
        if slot.status != "active":
            raise ResourceUnavailableError(f"Slot is currently {slot.status}")

        price = calculate_price(
            slot.rate_per_hour,
            start,
            end,
            max_hours=self.settings.max_booking_hours,
            decimals=self.settings.currency_decimals,
        )

        # Half-open overlap: existing.start < end AND existing.end > start.
        clash = await session.execute(
            select(BookingModel.id)
            .where(
                BookingModel.slot_id == slot.id,
                BookingModel.status.in_(ACTIVE_STATUSES),
                BookingModel.start_time < end,
                BookingModel.end_time > start,
            )
            .limit(1)
        )
        if clash.scalar_one_or_none() is not None:
            raise SlotConflictError()

        booking = BookingModel(
            slot_id=slot.id,
            renter_id=caller.principal_id,
            tenant_code=slot.tenant_code,
            start_time=start,
            end_time=end,
            total_price=price,
            status="pending",
        )
        session.add(booking)
        await session.flush()
        logger.info(
            "booking reserved",
            extra={"booking_id": booking.id, "slot_id": slot.id},
        )
        return booking

    # ── Transitions ──

    async def cancel(self, caller: CallerContext, booking_id: str) -> BookingModel:
        """Renter cancels a pending booking."""
        return await self.transition(caller, booking_id, "cancelled")

    async def confirm(self, caller: CallerContext, booking_id: str) -> BookingModel:
        return await self.transition(caller, booking_id, "confirmed")

    async def complete(self, caller: CallerContext, booking_id: str) -> BookingModel:
        return await self.transition(caller, booking_id, "completed")

    async def mark_no_show(self, caller: CallerContext, booking_id: str) -> BookingModel:
        return await self.transition(caller, booking_id, "no_show")

    async def transition(
        self, caller: CallerContext, booking_id: str, target: str
    ) -> BookingModel:
        """Move a booking along the state machine.

        The status change is a conditional update on the expected current
        status, so of two racing transitions only the first to commit wins;
        the other sees InvalidTransitionError.
        """
        if target not in TRANSITIONS:
            raise InvalidTransitionError(f"Unknown booking status: {target}")

        async with self.db.get_session() as session:
            booking = await self._load_booking(session, caller, booking_id)
            slot_id = booking.slot_id

        return await self._locked_write(
            slot_id,
            lambda session: self._transition_in_tx(session, caller, booking_id, target),
        )

    async def _transition_in_tx(
        self,
        session: AsyncSession,
        caller: CallerContext,
        booking_id: str,
        target: str,
    ) -> BookingModel:
        required, party = TRANSITIONS[target]
        booking = await self._load_booking(session, caller, booking_id)

        if party == "renter":
            if booking.renter_id != caller.principal_id:
                raise NotBookingPartyError("Only the renter can cancel this booking")
        else:
            slot = await session.get(SlotModel, booking.slot_id)
            if slot is None or slot.owner_id != caller.principal_id:
                raise NotSlotOwnerError()

        result = await session.execute(
            update(BookingModel)
            .where(BookingModel.id == booking.id, BookingModel.status == required)
            .values(status=target, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError(f"Booking is no longer {required}")

        await session.refresh(booking)
        logger.info(
            "booking status changed",
            extra={"booking_id": booking.id, "status": target},
        )
        return booking

    # ── Reads ──

    async def get_booking(self, caller: CallerContext, booking_id: str) -> BookingModel:
        """A booking visible to its renter or the slot owner."""
        async with self.db.get_session() as session:
            booking = await self._load_booking(session, caller, booking_id)
            if booking.renter_id != caller.principal_id:
                slot = await session.get(SlotModel, booking.slot_id)
                if slot is None or slot.owner_id != caller.principal_id:
                    raise NotBookingPartyError()
            return booking

    async def list_bookings(
        self,
        caller: CallerContext,
        role: str = "renter",
        status: str | None = None,
    ) -> list[BookingModel]:
        """Bookings the caller made (``renter``) or received (``owner``)."""
        query = select(BookingModel).where(BookingModel.tenant_code == caller.tenant_code)
        if role == "owner":
            query = query.join(SlotModel, SlotModel.id == BookingModel.slot_id).where(
                SlotModel.owner_id == caller.principal_id,
                SlotModel.tenant_code == caller.tenant_code,
            )
        else:
            query = query.where(BookingModel.renter_id == caller.principal_id)
        if status:
            query = query.where(BookingModel.status == status)

        async with self.db.get_session() as session:
            result = await session.execute(query.order_by(BookingModel.start_time))
            return list(result.scalars().all())

    async def slot_schedule(
        self, caller: CallerContext, slot_id: str
    ) -> list[BookingModel]:
        """Pending and confirmed bookings holding a slot, earliest first."""
        async with self.db.get_session() as session:
            slot = await self._load_slot(session, caller, slot_id)
            result = await session.execute(
                select(BookingModel)
                .where(
                    BookingModel.slot_id == slot.id,
                    BookingModel.tenant_code == caller.tenant_code,
                    BookingModel.status.in_(ACTIVE_STATUSES),
                )
                .order_by(BookingModel.start_time)
            )
            return list(result.scalars().all())

    # ── Internal helpers ──

    async def _locked_write(self, slot_id: str, work):
        """Run ``work(session)`` in a transaction while holding the slot lock.

        Lock waits and transient database lock errors are retried a bounded
        number of times and then reported as ReservationBusyError.
        """
        retries = max(0, self.settings.reservation_retries)
        for attempt in range(retries + 1):
            try:
                async with self.locks.hold(slot_id, self.settings.reservation_lock_timeout):
                    async with self.db.get_session() as session:
                        await self._apply_lock_timeout(session)
                        return await work(session)
            except CondoParkError:
                raise
            except OperationalError as exc:
                if attempt >= retries:
                    logger.warning(
                        "slot write gave up after retries",
                        extra={"slot_id": slot_id, "attempts": attempt + 1},
                    )
                    raise ReservationBusyError() from exc
                logger.info("retrying slot write", extra={"slot_id": slot_id, "attempt": attempt + 1})
                await asyncio.sleep(RETRY_BACKOFF * (attempt + 1))
            except SQLAlchemyError as exc:
                logger.exception("slot write failed", extra={"slot_id": slot_id})
                raise PersistenceFailure() from exc
        raise ReservationBusyError()

    async def _apply_lock_timeout(self, session: AsyncSession) -> None:
        if self.db.dialect_name == "postgresql":
            ms = int(self.settings.reservation_lock_timeout * 1000)
            await session.execute(text(f"SET LOCAL lock_timeout = '{ms}ms'"))

    async def _load_slot(
        self,
        session: AsyncSession,
        caller: CallerContext,
        slot_id: str,
        for_update: bool = False,
    ) -> SlotModel:
        query = select(SlotModel).where(SlotModel.id == slot_id)
        if for_update:
            query = query.with_for_update()
        slot = (await session.execute(query)).scalar_one_or_none()
        if slot is None:
            raise SlotNotFoundError()
        authorize_tenant(slot.tenant_code, caller.tenant_code)
        return slot

    async def _load_booking(
        self, session: AsyncSession, caller: CallerContext, booking_id: str
    ) -> BookingModel:
        booking = await session.get(BookingModel, booking_id)
        if booking is None:
            raise BookingNotFoundError()
        authorize_tenant(booking.tenant_code, caller.tenant_code)
        return booking

"""Parking slot management, always scoped to the caller's community."""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from condopark_engine.access.guard import CallerContext, authorize_tenant
from condopark_engine.common.exceptions import (
    DuplicateSlotNumberError,
    InvalidRateError,
    InvalidStatusError,
    NotSlotOwnerError,
    SlotNotFoundError,
)
from condopark_engine.slots.models import SLOT_STATUSES, SlotModel


def _validate_rate(rate: Decimal | int | float | str) -> Decimal:
    value = Decimal(str(rate))
    if not value.is_finite() or value <= 0:
        raise InvalidRateError()
    return value


class SlotService:
    """Slot CRUD. Owner and community always come from the caller."""

    async def create_slot(
        self,
        session: AsyncSession,
        caller: CallerContext,
        slot_number: str,
        rate_per_hour: Decimal | int | float | str,
        description: str = "",
    ) -> SlotModel:
        slot = SlotModel(
            tenant_code=caller.tenant_code,
            owner_id=caller.principal_id,
            slot_number=slot_number,
            rate_per_hour=_validate_rate(rate_per_hour),
            description=description,
            status="active",
        )
        session.add(slot)
        try:
            await session.flush()
        except IntegrityError:
            raise DuplicateSlotNumberError()
        return slot

    async def get_slot(
        self, session: AsyncSession, caller: CallerContext, slot_id: str
    ) -> SlotModel:
        """Fetch a slot, rejecting slots that belong to another community."""
        slot = await session.get(SlotModel, slot_id)
        if slot is None:
            raise SlotNotFoundError()
        authorize_tenant(slot.tenant_code, caller.tenant_code)
        return slot

    async def list_slots(
        self,
        session: AsyncSession,
        caller: CallerContext,
        include_inactive: bool = False,
        owned_only: bool = False,
    ) -> list[SlotModel]:
        query = select(SlotModel).where(SlotModel.tenant_code == caller.tenant_code)
        if not include_inactive:
            query = query.where(SlotModel.status == "active")
        if owned_only:
            query = query.where(SlotModel.owner_id == caller.principal_id)
        result = await session.execute(query.order_by(SlotModel.slot_number))
        return list(result.scalars().all())

    async def update_slot(
        self,
        session: AsyncSession,
        caller: CallerContext,
        slot_id: str,
        **updates,
    ) -> SlotModel:
        """Owner-only partial update of rate, status or description."""
        slot = await self.get_slot(session, caller, slot_id)
        if slot.owner_id != caller.principal_id:
            raise NotSlotOwnerError()

        if updates.get("rate_per_hour") is not None:
            slot.rate_per_hour = _validate_rate(updates["rate_per_hour"])
        if updates.get("status") is not None:
            if updates["status"] not in SLOT_STATUSES:
                raise InvalidStatusError(f"Invalid slot status: {updates['status']}")
            slot.status = updates["status"]
        if updates.get("description") is not None:
            slot.description = updates["description"]
        await session.flush()
        return slot

"""Slot API router, scoped to ``/communities/{community_code}``."""

from fastapi import APIRouter, Depends, Query

from condopark_engine.access.guard import CallerContext
from condopark_engine.common.exceptions import CondoParkError
from condopark_engine.common.schemas import to_http_exception
from condopark_engine.common.security import require_community_caller
from condopark_engine.slots.models import SlotModel
from condopark_engine.slots.schemas import SlotCreate, SlotResponse, SlotUpdate

router = APIRouter(prefix="/communities/{community_code}/slots", tags=["slots"])


def _get_service():
    from condopark_engine.deps import get_slot_service
    return get_slot_service()


def _get_db():
    from condopark_engine.deps import get_db
    return get_db()


def _to_response(slot: SlotModel) -> SlotResponse:
    return SlotResponse(
        id=slot.id,
        community_code=slot.tenant_code,
        owner_id=slot.owner_id,
        slot_number=slot.slot_number,
        description=slot.description or "",
        rate_per_hour=slot.rate_per_hour,
        status=slot.status,
        created_at=slot.created_at,
    )


@router.get("", response_model=list[SlotResponse])
async def list_slots(
    include_inactive: bool = Query(False),
    mine: bool = Query(False),
    caller: CallerContext = Depends(require_community_caller),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        slots = await svc.list_slots(
            session, caller, include_inactive=include_inactive, owned_only=mine
        )
        return [_to_response(s) for s in slots]


@router.post("", response_model=SlotResponse, status_code=201)
async def create_slot(
    body: SlotCreate,
    caller: CallerContext = Depends(require_community_caller),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            slot = await svc.create_slot(
                session,
                caller,
                slot_number=body.slot_number,
                rate_per_hour=body.rate_per_hour,
                description=body.description,
            )
            return _to_response(slot)
    except CondoParkError as e:
        raise to_http_exception(e)


@router.get("/{slot_id}", response_model=SlotResponse)
async def get_slot(
    slot_id: str,
    caller: CallerContext = Depends(require_community_caller),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            slot = await svc.get_slot(session, caller, slot_id)
            return _to_response(slot)
    except CondoParkError as e:
        raise to_http_exception(e)


@router.patch("/{slot_id}", response_model=SlotResponse)
async def update_slot(
    slot_id: str,
    body: SlotUpdate,
    caller: CallerContext = Depends(require_community_caller),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            slot = await svc.update_slot(
                session, caller, slot_id, **body.model_dump(exclude_none=True)
            )
            return _to_response(slot)
    except CondoParkError as e:
        raise to_http_exception(e)

"""Tests for tenant-scoped slot management."""

from decimal import Decimal

import pytest

from condopark_engine.access.guard import CallerContext
from condopark_engine.auth.models import PrincipalModel
from condopark_engine.common.config import CondoParkSettings
from condopark_engine.common.database import DatabaseManager
from condopark_engine.common.exceptions import (
    CrossTenantAccessDeniedError,
    DuplicateSlotNumberError,
    InvalidRateError,
    InvalidStatusError,
    NotSlotOwnerError,
    SlotNotFoundError,
)
from condopark_engine.slots.service import SlotService
from condopark_engine.tenants.models import TenantModel


def make_settings(**overrides) -> CondoParkSettings:
    defaults = {"secret_key": "test-secret-key", "db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return CondoParkSettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def svc():
    return SlotService()


@pytest.fixture
async def callers(db):
    """Owner and neighbour in one community, plus an outsider."""
    async with db.get_session() as session:
        session.add_all([
            TenantModel(code="lmr_x7k9p2", name="Lakeview"),
            TenantModel(code="oak_abc123", name="Oak Park"),
        ])
        await session.flush()
        owner = PrincipalModel(tenant_code="lmr_x7k9p2", email="owner@example.com", unit_id="1", password_hash="x")
        neighbour = PrincipalModel(tenant_code="lmr_x7k9p2", email="n@example.com", unit_id="2", password_hash="x")
        outsider = PrincipalModel(tenant_code="oak_abc123", email="o@example.com", unit_id="1", password_hash="x")
        session.add_all([owner, neighbour, outsider])
        await session.flush()
        return (
            CallerContext(owner.id, owner.tenant_code),
            CallerContext(neighbour.id, neighbour.tenant_code),
            CallerContext(outsider.id, outsider.tenant_code),
        )


class TestCreateSlot:
    async def test_owner_and_tenant_from_caller(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", "5.50", "Covered")
        assert slot.owner_id == owner.principal_id
        assert slot.tenant_code == "lmr_x7k9p2"
        assert slot.rate_per_hour == Decimal("5.50")
        assert slot.status == "active"

    async def test_non_positive_rate_rejected(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            with pytest.raises(InvalidRateError):
                await svc.create_slot(session, owner, "A-12", 0)

    async def test_duplicate_number_in_community(self, db, svc, callers):
        owner, neighbour, _ = callers
        async with db.get_session() as session:
            await svc.create_slot(session, owner, "A-12", 5)
        with pytest.raises(DuplicateSlotNumberError):
            async with db.get_session() as session:
                await svc.create_slot(session, neighbour, "A-12", 5)

    async def test_same_number_in_other_community(self, db, svc, callers):
        owner, _, outsider = callers
        async with db.get_session() as session:
            await svc.create_slot(session, owner, "A-12", 5)
            slot = await svc.create_slot(session, outsider, "A-12", 5)
        assert slot.tenant_code == "oak_abc123"


class TestReadSlots:
    async def test_get_slot_same_community(self, db, svc, callers):
        owner, neighbour, _ = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", 5)
        async with db.get_session() as session:
            found = await svc.get_slot(session, neighbour, slot.id)
        assert found.id == slot.id

    async def test_get_slot_other_community_denied(self, db, svc, callers):
        owner, _, outsider = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", 5)
        async with db.get_session() as session:
            with pytest.raises(CrossTenantAccessDeniedError):
                await svc.get_slot(session, outsider, slot.id)

    async def test_get_missing_slot(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            with pytest.raises(SlotNotFoundError):
                await svc.get_slot(session, owner, "missing")

    async def test_list_scoped_to_community(self, db, svc, callers):
        owner, _, outsider = callers
        async with db.get_session() as session:
            await svc.create_slot(session, owner, "A-12", 5)
            await svc.create_slot(session, outsider, "B-1", 5)
        async with db.get_session() as session:
            slots = await svc.list_slots(session, owner)
        assert [s.slot_number for s in slots] == ["A-12"]

    async def test_list_hides_inactive_by_default(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            await svc.create_slot(session, owner, "A-1", 5)
            slot = await svc.create_slot(session, owner, "A-2", 5)
            await svc.update_slot(session, owner, slot.id, status="maintenance")
        async with db.get_session() as session:
            visible = await svc.list_slots(session, owner)
            everything = await svc.list_slots(session, owner, include_inactive=True)
        assert [s.slot_number for s in visible] == ["A-1"]
        assert len(everything) == 2

    async def test_list_owned_only(self, db, svc, callers):
        owner, neighbour, _ = callers
        async with db.get_session() as session:
            await svc.create_slot(session, owner, "A-1", 5)
            await svc.create_slot(session, neighbour, "A-2", 5)
        async with db.get_session() as session:
            mine = await svc.list_slots(session, neighbour, owned_only=True)
        assert [s.slot_number for s in mine] == ["A-2"]


class TestUpdateSlot:
    async def test_owner_updates(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", 5)
        async with db.get_session() as session:
            updated = await svc.update_slot(
                session, owner, slot.id, rate_per_hour="7.25", description="Near lift"
            )
        assert updated.rate_per_hour == Decimal("7.25")
        assert updated.description == "Near lift"

    async def test_non_owner_rejected(self, db, svc, callers):
        owner, neighbour, _ = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", 5)
        async with db.get_session() as session:
            with pytest.raises(NotSlotOwnerError):
                await svc.update_slot(session, neighbour, slot.id, rate_per_hour=1)

    async def test_invalid_status(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", 5)
            with pytest.raises(InvalidStatusError) as exc_info:
                await svc.update_slot(session, owner, slot.id, status="gone")
        assert exc_info.value.status_code == 422

    async def test_tenant_code_not_updatable(self, db, svc, callers):
        owner, _, _ = callers
        async with db.get_session() as session:
            slot = await svc.create_slot(session, owner, "A-12", 5)
            updated = await svc.update_slot(session, owner, slot.id, tenant_code="oak_abc123")
        assert updated.tenant_code == "lmr_x7k9p2"

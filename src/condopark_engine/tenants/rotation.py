"""Community code rotation.

Replaces a community's code (its primary key and shared secret) in one
transaction. Principals, slots and bookings reference the code with
``ON UPDATE CASCADE``, so the database carries the new value to every
dependent row; the manager only verifies that it did. Sessions issued under
the old code stop resolving (see ``TenantAccessGuard.ensure_current``).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from condopark_engine.auth.models import PrincipalModel
from condopark_engine.bookings.models import BookingModel
from condopark_engine.common.database import DatabaseManager
from condopark_engine.common.exceptions import (
    CodeAlreadyInUseError,
    InvalidCodeFormatError,
    PersistenceFailure,
    UnknownCodeError,
)
from condopark_engine.common.models import utcnow
from condopark_engine.slots.models import SlotModel
from condopark_engine.tenants.models import TenantModel
from condopark_engine.tenants.service import TenantService, acronym_for, validate_code_format

logger = logging.getLogger(__name__)

_DEPENDENTS = {
    "principals": PrincipalModel,
    "slots": SlotModel,
    "bookings": BookingModel,
}


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def rollback_sql(old_code: str, new_code: str) -> str:
    """SQL that reverses a rotation (``new_code`` back to ``old_code``)."""
    old, new = _sql_literal(old_code), _sql_literal(new_code)
    return (
        f"-- Reverse community code rotation: {new_code} -> {old_code}\n"
        "-- Run manually if the rotation has to be undone.\n"
        "BEGIN;\n"
        "\n"
        f"UPDATE tenants\n"
        f"  SET code = {old}\n"
        f"  WHERE code = {new};\n"
        "\n"
        "-- Foreign keys CASCADE the update back to principals, slots and bookings.\n"
        "\n"
        "COMMIT;\n"
        "\n"
        "-- Verify:\n"
        f"SELECT code, name FROM tenants WHERE code = {old};\n"
    )


@dataclass
class RotationReport:
    old_code: str
    new_code: str
    dry_run: bool
    actor: str
    counts: dict[str, int] = field(default_factory=dict)
    rotated_at: datetime | None = None
    rollback_sql: str = ""

    @property
    def principals(self) -> int:
        return self.counts.get("principals", 0)

    @property
    def slots(self) -> int:
        return self.counts.get("slots", 0)

    @property
    def bookings(self) -> int:
        return self.counts.get("bookings", 0)


class RotationManager:
    """Transactional community code replacement."""

    def __init__(self, db: DatabaseManager, tenants: TenantService):
        self.db = db
        self.tenants = tenants

    async def count_references(self, session: AsyncSession, code: str) -> dict[str, int]:
        counts = {}
        for table, model in _DEPENDENTS.items():
            result = await session.execute(
                select(func.count()).select_from(model).where(model.tenant_code == code)
            )
            counts[table] = int(result.scalar_one())
        return counts

    async def rotate(
        self,
        old_code: str,
        new_code: str | None = None,
        dry_run: bool = False,
        actor: str = "operator",
    ) -> RotationReport:
        # Preconditions are checked before the rotation transaction opens.
        async with self.db.get_session() as session:
            if not old_code or not await self.tenants.code_exists(session, old_code):
                raise UnknownCodeError(f"Community code not found: {old_code}")

            if new_code is None:
                new_code = await self.tenants.generate_code(session, acronym_for(old_code))
            else:
                if not validate_code_format(new_code):
                    raise InvalidCodeFormatError(f"Invalid new code format: {new_code}")
                if new_code == old_code:
                    raise CodeAlreadyInUseError("Old and new codes must be different")
                if await self.tenants.code_exists(session, new_code):
                    raise CodeAlreadyInUseError(f"New code already exists: {new_code}")

            before = await self.count_references(session, old_code)

        report = RotationReport(
            old_code=old_code,
            new_code=new_code,
            dry_run=dry_run,
            actor=actor,
            counts=before,
            rollback_sql=rollback_sql(old_code, new_code),
        )
        if dry_run:
            logger.info(
                "community code rotation previewed",
                extra={"actor": actor, "counts": before},
            )
            return report

        try:
            async with self.db.get_session() as session:
                report.counts = await self._apply(session, old_code, new_code)
        except PersistenceFailure:
            raise
        except SQLAlchemyError as exc:
            logger.exception("community code rotation failed", extra={"actor": actor})
            raise PersistenceFailure() from exc

        report.rotated_at = utcnow()
        logger.warning(
            "community code rotated",
            extra={"actor": actor, "counts": report.counts},
        )
        return report

    async def _apply(
        self,
        session: AsyncSession,
        old_code: str,
        new_code: str,
    ) -> dict[str, int]:
        # Counted in the same transaction as the update.
        expected = await self.count_references(session, old_code)
        result = await session.execute(
            update(TenantModel)
            .where(TenantModel.code == old_code)
            .values(code=new_code, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.error("rotation updated %s tenant rows", result.rowcount)
            raise PersistenceFailure("No rows updated - community may have been deleted")

        moved = await self.count_references(session, new_code)
        orphaned = await self.count_references(session, old_code)
        if moved != expected or any(orphaned.values()):
            # Raising inside get_session() rolls the whole rotation back.
            logger.error(
                "rotation cascade incomplete",
                extra={"expected": expected, "moved": moved, "orphaned": orphaned},
            )
            raise PersistenceFailure("Cascade update incomplete; rotation rolled back")
        return moved

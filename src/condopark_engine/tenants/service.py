"""Tenant (community) registry and community code generation."""

import re
import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from condopark_engine.common.exceptions import (
    CodeAlreadyInUseError,
    InvalidCodeFormatError,
    InvalidStatusError,
    UnknownCodeError,
)
from condopark_engine.tenants.models import TENANT_STATUSES, TenantModel

CODE_ALPHABET = string.ascii_lowercase + string.digits
CODE_PATTERN = re.compile(r"^[a-z]{2,4}_[a-z0-9]{6,32}$", re.IGNORECASE)
MAX_CODE_ATTEMPTS = 10


def validate_code_format(code: str) -> bool:
    """Rotated codes look like ``{acronym}_{random}``, e.g. ``lmr_x7k9p2``."""
    return bool(CODE_PATTERN.match(code or ""))


def acronym_for(value: str) -> str:
    """Derive a 2-4 letter acronym from an existing code or a community name."""
    value = (value or "").strip()
    if "_" in value:
        letters = value.split("_", 1)[0]
    elif len(value.split()) > 1:
        letters = "".join(word[0] for word in value.split())
    else:
        letters = value
    letters = "".join(ch for ch in letters.lower() if ch in string.ascii_lowercase)[:4]
    return letters if len(letters) >= 2 else "cp"


def random_code(acronym: str, length: int = 12) -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
    return f"{acronym.lower()}_{suffix}"


class TenantService:
    """Tenant management operations."""

    def __init__(self, code_length: int = 12):
        self.code_length = code_length

    async def create_tenant(
        self,
        session: AsyncSession,
        name: str,
        code: str | None = None,
        acronym: str | None = None,
        status: str = "active",
    ) -> TenantModel:
        """Create a community.

        A high-entropy code is generated when none is given, prefixed with
        ``acronym`` or with initials taken from ``name``.
        """
        if status not in TENANT_STATUSES:
            raise InvalidStatusError(f"Invalid tenant status: {status}")
        if code is None:
            code = await self.generate_code(session, acronym or acronym_for(name))
        elif await self.code_exists(session, code):
            raise CodeAlreadyInUseError()
        tenant = TenantModel(code=code, name=name, status=status)
        session.add(tenant)
        await session.flush()
        return tenant

    async def get_by_code(
        self, session: AsyncSession, code: str
    ) -> TenantModel | None:
        if not code:
            return None
        return await session.get(TenantModel, code)

    async def code_exists(self, session: AsyncSession, code: str) -> bool:
        result = await session.execute(
            select(TenantModel.code).where(TenantModel.code == code)
        )
        return result.scalar_one_or_none() is not None

    async def list_tenants(self, session: AsyncSession) -> list[TenantModel]:
        result = await session.execute(select(TenantModel).order_by(TenantModel.name))
        return list(result.scalars().all())

    async def set_status(
        self, session: AsyncSession, code: str, status: str
    ) -> TenantModel:
        if status not in TENANT_STATUSES:
            raise InvalidStatusError(f"Invalid tenant status: {status}")
        tenant = await self.get_by_code(session, code)
        if tenant is None:
            raise UnknownCodeError()
        tenant.status = status
        await session.flush()
        return tenant

    async def generate_code(self, session: AsyncSession, acronym: str) -> str:
        """Random ``{acronym}_{suffix}`` code not used by any community."""
        if not re.fullmatch(r"[a-z]{2,4}", acronym.lower()):
            raise InvalidCodeFormatError(f"Invalid acronym: {acronym}")
        for _ in range(MAX_CODE_ATTEMPTS):
            candidate = random_code(acronym, self.code_length)
            if not await self.code_exists(session, candidate):
                return candidate
        raise CodeAlreadyInUseError("Could not generate an unused community code")

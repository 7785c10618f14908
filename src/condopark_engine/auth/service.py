"""Credential authentication and resident signup."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from condopark_engine.access.guard import TenantAccessGuard
from condopark_engine.auth.models import PrincipalModel
from condopark_engine.common.config import CondoParkSettings
from condopark_engine.common.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    RegistrationRejectedError,
    UnitAlreadyRegisteredError,
)
from condopark_engine.common.security import burn_password_check, hash_password, verify_password
from condopark_engine.ratelimit.limiter import RateLimiter, RateLimitResult, normalize_identifier
from condopark_engine.tenants.models import TenantModel

logger = logging.getLogger(__name__)


class AuthService:
    """Login and signup for residents.

    Login looks principals up by the (community code, email) pair, so the
    community code acts as part of the secret. Every login failure raises the
    same ``InvalidCredentialsError``; only the logs record why.
    """

    def __init__(
        self,
        settings: CondoParkSettings,
        guard: TenantAccessGuard,
        login_limiter: RateLimiter,
        signup_limiter: RateLimiter,
    ):
        self.settings = settings
        self.guard = guard
        self.login_limiter = login_limiter
        self.signup_limiter = signup_limiter

    # ── Login ──

    async def authenticate(
        self,
        session: AsyncSession,
        tenant_code: str,
        email: str,
        password: str,
    ) -> PrincipalModel:
        email = normalize_identifier(email)

        # Throttle before touching the database.
        if not self.login_limiter.check(email).allowed:
            burn_password_check(password)
            self._reject("rate_limited")

        principal = None
        if tenant_code and email:
            result = await session.execute(
                select(PrincipalModel).where(
                    PrincipalModel.tenant_code == tenant_code,
                    PrincipalModel.email == email,
                )
            )
            principal = result.scalar_one_or_none()

        if principal is None:
            burn_password_check(password)
            self._reject("unknown_principal")

        if not verify_password(password or "", principal.password_hash):
            self._reject("wrong_password", principal.id)

        tenant = await session.get(TenantModel, principal.tenant_code)
        if tenant is None or tenant.status != "active":
            self._reject("inactive_tenant", principal.id)

        return principal

    async def login(
        self,
        session: AsyncSession,
        tenant_code: str,
        email: str,
        password: str,
    ) -> tuple[PrincipalModel, str]:
        """Authenticate and issue a signed session token."""
        principal = await self.authenticate(session, tenant_code, email, password)
        token = self.guard.issue(principal.id, principal.tenant_code)
        logger.info("login succeeded", extra={"principal_id": principal.id})
        return principal, token

    @staticmethod
    def _reject(reason: str, principal_id: str | None = None):
        logger.warning(
            "login rejected",
            extra={"reason": reason, "principal_id": principal_id},
        )
        raise InvalidCredentialsError()

    # ── Signup ──

    def check_signup_limit(self, email: str) -> RateLimitResult:
        """Record a signup attempt. The result may be shown to the client."""
        return self.signup_limiter.check(email)

    async def register(
        self,
        session: AsyncSession,
        tenant_code: str,
        email: str,
        password: str,
        unit_id: str,
        name: str = "",
    ) -> tuple[PrincipalModel, str]:
        """Create a principal bound to ``tenant_code`` for life."""
        email = normalize_identifier(email)
        min_len = self.settings.min_password_length
        if not password or len(password) < min_len:
            raise RegistrationRejectedError(
                f"Password must be at least {min_len} characters long."
            )

        tenant = await session.get(TenantModel, tenant_code) if tenant_code else None
        if tenant is None or tenant.status != "active":
            # Same answer for unknown and inactive codes.
            logger.warning("signup with invalid community code")
            raise RegistrationRejectedError()

        existing = await session.execute(
            select(PrincipalModel.id).where(PrincipalModel.email == email)
        )
        if existing.scalar_one_or_none() is not None:
            raise EmailAlreadyRegisteredError()

        unit_taken = await session.execute(
            select(PrincipalModel.id).where(
                PrincipalModel.tenant_code == tenant.code,
                PrincipalModel.unit_id == unit_id,
            )
        )
        if unit_taken.scalar_one_or_none() is not None:
            raise UnitAlreadyRegisteredError()

        principal = PrincipalModel(
            tenant_code=tenant.code,
            email=email,
            unit_id=unit_id,
            name=name,
            password_hash=hash_password(password),
        )
        session.add(principal)
        try:
            await session.flush()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email or unit.
            raise RegistrationRejectedError()

        token = self.guard.issue(principal.id, principal.tenant_code)
        logger.info("principal registered", extra={"principal_id": principal.id})
        return principal, token

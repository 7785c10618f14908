"""Tenant access guard: session claims and tenant-match enforcement.

A session token is an ``itsdangerous`` timed signature over
``{"sub": principal_id, "tc": tenant_code}``. Resolving a token is pure and
in-process. Any token that is missing, malformed, badly signed, expired or
lacks a principal is rejected; a token without a tenant claim is rejected as
well. There is no default tenant.
"""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession

from condopark_engine.auth.models import PrincipalModel
from condopark_engine.common.config import CondoParkSettings
from condopark_engine.common.exceptions import (
    CrossTenantAccessDeniedError,
    NoTenantAssignedError,
    UnauthenticatedError,
)
from condopark_engine.tenants.models import TenantModel

logger = logging.getLogger(__name__)

SESSION_SALT = "condopark-session-claim"


@dataclass(frozen=True)
class CallerContext:
    """Who is calling and which tenant they belong to.

    Passed explicitly into every tenant-scoped service call.
    """

    principal_id: str
    tenant_code: str


@dataclass(frozen=True)
class SessionClaim:
    principal_id: str
    tenant_code: str
    expires_at: datetime

    @property
    def caller(self) -> CallerContext:
        return CallerContext(self.principal_id, self.tenant_code)


def authorize_tenant(requested_tenant: str | None, caller_tenant: str | None) -> None:
    """Reject unless ``requested_tenant`` is exactly the caller's tenant.

    Called at every boundary that accepts a tenant-identifying parameter,
    even when the caller's tenant is already known. A denial is logged at
    WARNING as a possible isolation breach.
    """
    requested = (requested_tenant or "").encode()
    caller = (caller_tenant or "").encode()
    if not caller or not hmac.compare_digest(requested, caller):
        logger.warning(
            "cross-tenant access denied",
            extra={"caller_tenant": caller_tenant, "requested_tenant": requested_tenant},
        )
        raise CrossTenantAccessDeniedError()


class TenantAccessGuard:
    """Issues and resolves signed session claims."""

    def __init__(self, settings: CondoParkSettings):
        self.settings = settings
        self._serializer = URLSafeTimedSerializer(settings.secret_key, salt=SESSION_SALT)

    def issue(self, principal_id: str, tenant_code: str) -> str:
        if not tenant_code:
            raise NoTenantAssignedError()
        return self._serializer.dumps({"sub": principal_id, "tc": tenant_code})

    def resolve(self, token: str | None) -> SessionClaim:
        """Verify a token and return its claim. Fails closed."""
        if not token:
            raise UnauthenticatedError()
        try:
            payload, signed_at = self._serializer.loads(
                token, max_age=self.settings.session_ttl, return_timestamp=True
            )
        except SignatureExpired:
            raise UnauthenticatedError("Session expired")
        except BadSignature:
            raise UnauthenticatedError()

        if not isinstance(payload, dict):
            raise UnauthenticatedError()
        principal_id = payload.get("sub")
        if not isinstance(principal_id, str) or not principal_id:
            raise UnauthenticatedError()
        tenant_code = payload.get("tc")
        if not isinstance(tenant_code, str) or not tenant_code:
            raise NoTenantAssignedError()

        if signed_at.tzinfo is None:
            signed_at = signed_at.replace(tzinfo=timezone.utc)
        expires_at = signed_at + timedelta(seconds=self.settings.session_ttl)
        return SessionClaim(principal_id, tenant_code, expires_at)

    async def ensure_current(self, session: AsyncSession, claim: SessionClaim) -> None:
        """Reject claims whose tenant binding no longer holds.

        After a community code rotation, or when a community is deactivated,
        outstanding claims carry a code that no longer matches; their holders
        must sign in again with the new code.
        """
        tenant = await session.get(TenantModel, claim.tenant_code)
        principal = await session.get(PrincipalModel, claim.principal_id)
        if (
            tenant is None
            or tenant.status != "active"
            or principal is None
            or principal.tenant_code != claim.tenant_code
        ):
            logger.info(
                "stale session rejected",
                extra={"principal_id": claim.principal_id},
            )
            raise UnauthenticatedError("Session no longer valid; sign in again")

"""Password hashing and request authentication dependencies."""

import hmac
import secrets
from functools import lru_cache

from fastapi import Depends, Header, HTTPException
from passlib.context import CryptContext

from condopark_engine.access.guard import CallerContext, authorize_tenant
from condopark_engine.common.exceptions import CondoParkError, UnauthenticatedError
from condopark_engine.common.schemas import to_http_exception

# ── Password hashing (Argon2) ──

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


@lru_cache
def _dummy_hash() -> str:
    return pwd_context.hash(secrets.token_urlsafe(16))


def burn_password_check(plain: str) -> None:
    """Spend the same work as a real verification and discard the result.

    Used on failure paths that have no stored hash to check against, so every
    login failure costs the same time.
    """
    pwd_context.verify(plain or "", _dummy_hash())


# ── Operator API key ──


async def require_api_key(
    x_condopark_api_key: str = Header(..., alias="X-CondoPark-Api-Key"),
) -> str:
    """FastAPI dependency that validates the operator API key from header."""
    from condopark_engine.common.config import get_settings

    settings = get_settings()
    if not hmac.compare_digest(x_condopark_api_key.encode(), settings.api_key.encode()):
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_condopark_api_key


# ── Resident sessions ──


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def require_caller(
    authorization: str | None = Header(None),
) -> CallerContext:
    """FastAPI dependency resolving ``Authorization: Bearer`` into a caller.

    Rejects missing, malformed, expired and stale tokens; never falls back to
    a default community.
    """
    from condopark_engine.deps import get_db, get_guard

    guard = get_guard()
    try:
        claim = guard.resolve(_bearer_token(authorization))
        async with get_db().get_session() as session:
            await guard.ensure_current(session, claim)
    except UnauthenticatedError as e:
        raise to_http_exception(e, headers={"WWW-Authenticate": "Bearer"})
    except CondoParkError as e:
        raise to_http_exception(e)
    return claim.caller


async def require_community_caller(
    community_code: str,
    caller: CallerContext = Depends(require_caller),
) -> CallerContext:
    """Caller whose community matches the ``{community_code}`` path parameter."""
    try:
        authorize_tenant(community_code, caller.tenant_code)
    except CondoParkError as e:
        raise to_http_exception(e)
    return caller

"""Signup and login API router.

Signup responses carry ``X-RateLimit-*`` headers. Login responses never do,
and every login failure returns the same 401 body.
"""

from fastapi import APIRouter, Response

from condopark_engine.auth.schemas import LoginRequest, SessionResponse, SignupRequest
from condopark_engine.common.exceptions import (
    CondoParkError,
    InvalidCredentialsError,
    RateLimitedError,
)
from condopark_engine.common.schemas import to_http_exception

router = APIRouter(prefix="/auth", tags=["auth"])


def _get_service():
    from condopark_engine.deps import get_auth_service
    return get_auth_service()


def _get_db():
    from condopark_engine.deps import get_db
    return get_db()


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def signup(body: SignupRequest, response: Response):
    svc = _get_service()
    db = _get_db()

    limit = svc.check_signup_limit(body.email)
    headers = limit.headers()
    if not limit.allowed:
        raise to_http_exception(RateLimitedError(limit), headers=headers)

    try:
        async with db.get_session() as session:
            principal, token = await svc.register(
                session,
                tenant_code=body.community_code,
                email=body.email,
                password=body.password,
                unit_id=body.unit_id,
                name=body.name,
            )
    except CondoParkError as e:
        raise to_http_exception(e, headers=headers)

    response.headers.update(headers)
    return SessionResponse(
        access_token=token,
        principal_id=principal.id,
        community_code=principal.tenant_code,
    )


@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            principal, token = await svc.login(
                session,
                tenant_code=body.community_code,
                email=body.email,
                password=body.password,
            )
    except InvalidCredentialsError as e:
        raise to_http_exception(e)
    return SessionResponse(
        access_token=token,
        principal_id=principal.id,
        community_code=principal.tenant_code,
    )

"""Tenant API router, guarded by the operator API key."""

from fastapi import APIRouter, Depends, HTTPException

from condopark_engine.common.exceptions import CondoParkError
from condopark_engine.common.schemas import to_http_exception
from condopark_engine.common.security import require_api_key
from condopark_engine.tenants.models import TenantModel
from condopark_engine.tenants.schemas import (
    RotateRequest,
    RotationResponse,
    TenantCreate,
    TenantResponse,
    TenantStatusUpdate,
)

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _get_service():
    from condopark_engine.deps import get_tenant_service
    return get_tenant_service()


def _get_rotation():
    from condopark_engine.deps import get_rotation_manager
    return get_rotation_manager()


def _get_db():
    from condopark_engine.deps import get_db
    return get_db()


def _to_response(tenant: TenantModel) -> TenantResponse:
    return TenantResponse(
        code=tenant.code,
        name=tenant.name,
        status=tenant.status,
        created_at=tenant.created_at,
    )


@router.post("", response_model=TenantResponse, status_code=201)
async def create_tenant(body: TenantCreate, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant = await svc.create_tenant(session, name=body.name, code=body.code)
            return _to_response(tenant)
    except CondoParkError as e:
        raise to_http_exception(e)


@router.get("", response_model=list[TenantResponse])
async def list_tenants(_=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenants = await svc.list_tenants(session)
        return [_to_response(t) for t in tenants]


@router.get("/{code}", response_model=TenantResponse)
async def get_tenant(code: str, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        tenant = await svc.get_by_code(session, code)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Community not found")
        return _to_response(tenant)


@router.patch("/{code}", response_model=TenantResponse)
async def update_tenant_status(
    code: str, body: TenantStatusUpdate, _=Depends(require_api_key)
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            tenant = await svc.set_status(session, code, body.status)
            return _to_response(tenant)
    except CondoParkError as e:
        raise to_http_exception(e)


@router.post("/{code}/rotate", response_model=RotationResponse)
async def rotate_code(code: str, body: RotateRequest, _=Depends(require_api_key)):
    """Replace a community code. Every session under the old code stops working."""
    try:
        report = await _get_rotation().rotate(
            code, new_code=body.new_code, dry_run=body.dry_run, actor="api"
        )
    except CondoParkError as e:
        raise to_http_exception(e)
    return RotationResponse(
        old_code=report.old_code,
        new_code=report.new_code,
        dry_run=report.dry_run,
        principals=report.principals,
        slots=report.slots,
        bookings=report.bookings,
        rotated_at=report.rotated_at,
        rollback_sql=report.rollback_sql,
    )

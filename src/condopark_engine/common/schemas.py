"""Shared Pydantic schemas for CondoPark-Engine."""

from fastapi import HTTPException
from pydantic import BaseModel

from condopark_engine.common.exceptions import CondoParkError


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "condopark-engine"


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: str = ""


def to_http_exception(exc: CondoParkError, headers: dict[str, str] | None = None) -> HTTPException:
    """Map a typed domain error to the HTTP response the API returns."""
    return HTTPException(
        status_code=exc.status_code,
        detail=ErrorResponse(error=exc.message, code=exc.code).model_dump(),
        headers=headers,
    )

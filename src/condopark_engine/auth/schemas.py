"""Pydantic schemas for signup and login."""

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    community_code: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., max_length=1024)
    unit_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(default="", max_length=255)


class LoginRequest(BaseModel):
    community_code: str = Field(default="", max_length=64)
    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=1024)


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    principal_id: str
    community_code: str

"""Pydantic schemas for signup/login/renew."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    """Registration payload."""

    username: str = Field(min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    """Login payload."""

    email: EmailStr
    password: str


class AuthUser(BaseModel):
    """The authenticated user returned alongside a token."""

    id: str
    username: str
    email: str
    role: str


class TokenResponse(BaseModel):
    """A freshly issued access token."""

    token: str
    user: AuthUser | None = None
    token_type: str = "bearer"

"""Auth router: signup, login, token renewal and the caller's own profile."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.config import Settings
from backend.api.db.database import get_db
from backend.api.dependencies import (
    AuthenticatedUser,
    create_access_token,
    get_current_user,
    get_settings,
)
from backend.api.schemas.auth import AuthUser, LoginRequest, SignupRequest, TokenResponse
from backend.api.schemas.user import UserProfile
from backend.api.services.user_store import authenticate, create_user, get_user, to_profile

router = APIRouter()


@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(
    body: SignupRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Register a new user and return a token."""
    user = await create_user(db, body.username, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=409, detail="Email already registered")

    token = create_access_token(user.id, user.role, settings)
    return TokenResponse(
        token=token,
        user=AuthUser(id=user.id, username=user.username, email=user.email, role=user.role),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Verify email and password and return a token."""
    user = await authenticate(db, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user.id, user.role, settings)
    return TokenResponse(
        token=token,
        user=AuthUser(id=user.id, username=user.username, email=user.email, role=user.role),
    )


@router.get("/renew", response_model=TokenResponse)
async def renew(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Issue a fresh token for an already authenticated caller."""
    return TokenResponse(token=create_access_token(current_user.user_id, current_user.role, settings))


@router.get("/me", response_model=UserProfile)
async def get_me(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfile:
    """Return the caller's profile including score, counters and medals."""
    user = await get_user(db, current_user.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return to_profile(user)

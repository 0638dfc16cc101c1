"""User search, leaderboard and public profile endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.config import Settings
from backend.api.db.database import get_db
from backend.api.dependencies import AuthenticatedUser, get_current_user, get_settings
from backend.api.schemas.destination import DestinationListResponse, ReviewListResponse
from backend.api.schemas.user import (
    TopUserEntry,
    TopUsersResponse,
    UserListResponse,
    UserProfile,
    UserSummary,
    UserUpdateSchema,
)
from backend.api.services import destination_store, review_store, user_store

router = APIRouter()


# ---------------------------------------------------------------------------
# Static paths (must be defined before /{user_id} routes)
# ---------------------------------------------------------------------------


@router.get("/search", response_model=UserListResponse)
async def search_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    value: str = "",
) -> UserListResponse:
    """Find users whose username contains *value*."""
    if not value.strip():
        return UserListResponse(users=[])
    users = await user_store.search_users(db, value.strip())
    return UserListResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get("/top", response_model=TopUsersResponse)
async def top_users(
    settings: Annotated[Settings, Depends(get_settings)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TopUsersResponse:
    """Score leaderboard."""
    users = await user_store.top_users(db, limit=settings.top_users_limit)
    return TopUsersResponse(
        users=[
            TopUserEntry(rank=i, id=u.id, username=u.username, total_score=u.total_score)
            for i, u in enumerate(users, start=1)
        ]
    )


@router.put("/me", response_model=UserProfile)
async def update_me(
    body: UserUpdateSchema,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfile:
    """Update the caller's username and/or email."""
    if body.email is not None:
        existing = await user_store.get_user_by_email(db, body.email)
        if existing is not None and existing.id != current_user.user_id:
            raise HTTPException(status_code=409, detail="Email already registered")

    user = await user_store.update_user(db, current_user.user_id, body.username, body.email)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user_store.to_profile(user)


# ---------------------------------------------------------------------------
# Per-user paths
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=UserProfile)
async def get_user_profile(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfile:
    """Public profile with score, yearly counters and medals."""
    user = await user_store.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return user_store.to_profile(user)


@router.get("/{user_id}/destinations", response_model=DestinationListResponse)
async def get_user_destinations(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationListResponse:
    dests = await destination_store.list_for_user(db, user_id)
    return DestinationListResponse(destinations=[destination_store.to_summary(d) for d in dests])


@router.get("/{user_id}/reviews", response_model=ReviewListResponse)
async def get_user_reviews(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReviewListResponse:
    reviews = await review_store.list_for_user(db, user_id)
    return ReviewListResponse(reviews=reviews)

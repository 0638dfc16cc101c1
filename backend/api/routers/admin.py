"""Moderation and administration endpoints.

User management and the season reset require the ``admin`` role; destination
and review moderation is open to moderators as well.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.db.database import get_db
from backend.api.dependencies import (
    VALID_ROLES,
    AuthenticatedUser,
    get_gamification_engine,
    require_admin,
    require_moderator,
)
from backend.api.schemas.destination import (
    CategoryListResponse,
    CategorySchema,
    DestinationListResponse,
    DestinationSummary,
    DestinationUpdate,
    ModerationResponse,
)
from backend.api.schemas.gamification import SeasonResetResponse
from backend.api.schemas.user import (
    RoleUpdateSchema,
    UserListResponse,
    UserProfile,
    UserSummary,
    UserUpdateSchema,
)
from backend.api.services import destination_store, review_store, user_store
from backend.api.services.gamification_engine import GamificationEngine
from destinos.gamification import ActionKind

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Users (admin)
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
async def list_users(
    _admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserListResponse:
    users = await user_store.list_users(db)
    return UserListResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    _admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfile:
    user = await user_store.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return user_store.to_profile(user)


@router.put("/users/{user_id}/role", response_model=UserProfile)
async def change_role(
    user_id: str,
    body: RoleUpdateSchema,
    admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfile:
    """Promote or demote a user."""
    if body.role not in VALID_ROLES:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid role '{body.role}'. Must be one of: {', '.join(sorted(VALID_ROLES))}",
        )
    user = await user_store.change_role(db, user_id, body.role)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    logger.info("Admin %s set role of %s to %s", admin.user_id, user_id, body.role)
    return user_store.to_profile(user)


@router.put("/users/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: str,
    body: UserUpdateSchema,
    _admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfile:
    if body.email is not None:
        existing = await user_store.get_user_by_email(db, body.email)
        if existing is not None and existing.id != user_id:
            raise HTTPException(status_code=409, detail="Email already registered")

    user = await user_store.update_user(db, user_id, body.username, body.email)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return user_store.to_profile(user)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, str]:
    if user_id == admin.user_id:
        raise HTTPException(status_code=400, detail="Admins cannot delete themselves")
    if not await user_store.delete_user(db, user_id):
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return {"message": f"User {user_id} deleted"}


# ---------------------------------------------------------------------------
# Destinations (moderator)
# ---------------------------------------------------------------------------


@router.get("/destinations", response_model=DestinationListResponse)
async def list_all_destinations(
    _mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationListResponse:
    """Every destination regardless of status."""
    dests = await destination_store.list_all(db)
    return DestinationListResponse(destinations=[destination_store.to_summary(d) for d in dests])


@router.get("/destinations/pending", response_model=DestinationListResponse)
async def list_pending_destinations(
    _mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationListResponse:
    """Moderation queue, oldest first."""
    dests = await destination_store.list_pending(db)
    return DestinationListResponse(destinations=[destination_store.to_summary(d) for d in dests])


@router.patch("/destinations/{destination_id}/approve", response_model=ModerationResponse)
async def approve_destination(
    destination_id: int,
    mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[GamificationEngine, Depends(get_gamification_engine)],
) -> ModerationResponse:
    """Publish a destination and award approval points to its creator."""
    dest = await destination_store.set_status(
        db, destination_id, destination_store.STATUS_ACTIVE
    )
    if dest is None:
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")
    logger.info("Moderator %s approved destination %d", mod.user_id, destination_id)

    if dest.created_by is None:
        return ModerationResponse(destination=destination_store.to_summary(dest), points_awarded=False)

    result = await engine.apply_action(dest.created_by, ActionKind.APPROVAL)
    return ModerationResponse(
        destination=destination_store.to_summary(dest),
        points_awarded=result.applied,
        creator_score=result.new_score,
    )


@router.patch("/destinations/{destination_id}/reject", response_model=ModerationResponse)
async def reject_destination(
    destination_id: int,
    mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[GamificationEngine, Depends(get_gamification_engine)],
) -> ModerationResponse:
    """Reject a destination. The creator's score is left unchanged."""
    dest = await destination_store.set_status(
        db, destination_id, destination_store.STATUS_REJECTED
    )
    if dest is None:
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")
    logger.info("Moderator %s rejected destination %d", mod.user_id, destination_id)

    if dest.created_by is None:
        return ModerationResponse(destination=destination_store.to_summary(dest), points_awarded=False)

    result = await engine.apply_action(dest.created_by, ActionKind.REJECTION)
    return ModerationResponse(
        destination=destination_store.to_summary(dest),
        points_awarded=result.applied,
        creator_score=result.new_score,
    )


@router.put("/destinations/{destination_id}", response_model=DestinationSummary)
async def update_destination(
    destination_id: int,
    body: DestinationUpdate,
    _mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationSummary:
    dest = await destination_store.get_destination(db, destination_id)
    if dest is None:
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")
    dest = await destination_store.update_destination(db, dest, body.model_dump(exclude_unset=True))
    return destination_store.to_summary(dest)


@router.delete("/destinations/{destination_id}")
async def delete_destination(
    destination_id: int,
    _mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, str]:
    """Delete a destination together with its reviews and category links."""
    if not await destination_store.delete_destination(db, destination_id):
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")
    return {"message": f"Destination {destination_id} deleted"}


# ---------------------------------------------------------------------------
# Reviews and categories
# ---------------------------------------------------------------------------


@router.delete("/reviews/{review_id}")
async def delete_review(
    review_id: int,
    _mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, str]:
    if not await review_store.delete_review(db, review_id):
        raise HTTPException(status_code=404, detail=f"Review {review_id} not found")
    return {"message": f"Review {review_id} deleted"}


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    _mod: Annotated[AuthenticatedUser, Depends(require_moderator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CategoryListResponse:
    categories = await destination_store.list_categories(db)
    return CategoryListResponse(categories=[CategorySchema.model_validate(c) for c in categories])


# ---------------------------------------------------------------------------
# Season (admin)
# ---------------------------------------------------------------------------


@router.post("/season/reset", response_model=SeasonResetResponse)
async def reset_season(
    admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    engine: Annotated[GamificationEngine, Depends(get_gamification_engine)],
) -> SeasonResetResponse:
    """Start a new season: scores fall back to medal totals, counters to zero."""
    logger.info("Admin %s started a season reset", admin.user_id)
    result = await engine.reset_season()
    return SeasonResetResponse(accounts_updated=result.accounts_updated)

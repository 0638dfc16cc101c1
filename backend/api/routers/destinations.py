"""Public destination endpoints and user suggestions."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.config import Settings
from backend.api.db.database import get_db
from backend.api.dependencies import (
    AuthenticatedUser,
    get_current_user,
    get_gamification_engine,
    get_settings,
)
from backend.api.schemas.destination import (
    DestinationDetail,
    DestinationListResponse,
    DestinationSummary,
    DestinationUpdate,
    SuggestionResponse,
)
from backend.api.services import destination_store, review_store
from backend.api.services.gamification_engine import GamificationEngine
from backend.api.services.media_store import store_upload
from destinos.gamification import ActionKind

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=DestinationListResponse)
async def list_destinations(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationListResponse:
    """List active destinations, newest first."""
    dests = await destination_store.list_active(db)
    return DestinationListResponse(destinations=[destination_store.to_summary(d) for d in dests])


@router.get("/search", response_model=DestinationListResponse)
async def search_destinations(
    db: Annotated[AsyncSession, Depends(get_db)],
    value: str = "",
) -> DestinationListResponse:
    """Search active destinations by name or province."""
    if not value.strip():
        return DestinationListResponse(destinations=[])
    dests = await destination_store.search_active(db, value.strip())
    return DestinationListResponse(destinations=[destination_store.to_summary(d) for d in dests])


@router.get("/featured", response_model=DestinationListResponse)
async def featured_destinations(
    settings: Annotated[Settings, Depends(get_settings)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationListResponse:
    dests = await destination_store.list_active(db, limit=settings.featured_limit)
    return DestinationListResponse(destinations=[destination_store.to_summary(d) for d in dests])


@router.get("/{destination_id}", response_model=DestinationDetail)
async def get_destination(
    destination_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationDetail:
    """Destination detail with author username and reviews."""
    dest = await destination_store.get_destination(db, destination_id)
    if dest is None:
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")

    summary = destination_store.to_summary(dest)
    return DestinationDetail(
        **summary.model_dump(),
        author=await destination_store.get_author_name(db, dest),
        reviews=await review_store.list_for_destination(db, destination_id),
    )


@router.post("", response_model=SuggestionResponse, status_code=201)
async def suggest_destination(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[GamificationEngine, Depends(get_gamification_engine)],
    name: Annotated[str, Form(min_length=1, max_length=255)],
    description: Annotated[str, Form()] = "",
    province: Annotated[str, Form()] = "",
    is_public: Annotated[bool, Form()] = True,
    image: Annotated[UploadFile | None, File()] = None,
) -> SuggestionResponse:
    """Suggest a destination for moderation and earn submission points.

    The optional image is stored before the row is created so a rejected
    upload leaves nothing behind in the database.
    """
    images: list[str] = []
    if image is not None and image.filename:
        data = await image.read()
        images.append(
            store_upload(
                data,
                image.filename,
                base_url=settings.public_base_url,
                max_size_mb=settings.max_upload_size_mb,
            )
        )

    dest = await destination_store.suggest_destination(
        db,
        user_id=current_user.user_id,
        name=name,
        description=description,
        province=province,
        images=images,
        is_public=is_public,
    )
    result = await engine.apply_action(current_user.user_id, ActionKind.SUBMISSION)

    return SuggestionResponse(
        destination=destination_store.to_summary(dest),
        points_awarded=result.applied,
        total_score=result.new_score,
    )


@router.put("/{destination_id}", response_model=DestinationSummary)
async def update_destination(
    destination_id: int,
    body: DestinationUpdate,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DestinationSummary:
    """Update a destination. Only its creator or a moderator may edit it."""
    dest = await destination_store.get_destination(db, destination_id)
    if dest is None:
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")
    if dest.created_by != current_user.user_id and not current_user.is_moderator:
        raise HTTPException(status_code=403, detail="Not allowed to edit this destination")

    fields = body.model_dump(exclude_unset=True)
    dest = await destination_store.update_destination(db, dest, fields)
    return destination_store.to_summary(dest)


@router.delete("/{destination_id}")
async def delete_destination(
    destination_id: int,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, str]:
    """Delete one of the caller's own destinations."""
    deleted = await destination_store.delete_own_destination(
        db, destination_id, current_user.user_id
    )
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Destination {destination_id} not found")
    return {"message": f"Destination {destination_id} deleted"}

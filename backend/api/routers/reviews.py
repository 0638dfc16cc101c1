"""Review posting endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.db.database import get_db
from backend.api.dependencies import AuthenticatedUser, get_current_user
from backend.api.schemas.destination import ReviewCreate, ReviewSchema
from backend.api.services import destination_store, review_store

router = APIRouter()


@router.post("", response_model=ReviewSchema, status_code=201)
async def create_review(
    body: ReviewCreate,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReviewSchema:
    """Post a review of a published destination."""
    dest = await destination_store.get_destination(db, body.target_id)
    # Pending and rejected suggestions are invisible to reviewers
    if dest is None or dest.status != destination_store.STATUS_ACTIVE:
        raise HTTPException(status_code=404, detail=f"Destination {body.target_id} not found")

    review = await review_store.create_review(
        db,
        user_id=current_user.user_id,
        target_id=body.target_id,
        target_type=body.target_type,
        comment=body.comment,
        stars=body.stars,
    )
    return review_store.to_schema(review)

"""Review creation, listing and moderation."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.db.models import Destination, Review, User
from backend.api.schemas.destination import ReviewSchema

logger = logging.getLogger(__name__)


async def create_review(
    db: AsyncSession,
    user_id: str,
    target_id: int,
    target_type: str,
    comment: str,
    stars: int,
) -> Review:
    """Insert a review and return it."""
    review = Review(
        user_id=user_id,
        target_id=target_id,
        target_type=target_type,
        comment=comment,
        stars=stars,
    )
    db.add(review)
    await db.flush()
    await db.refresh(review, ["created_at"])
    return review


async def list_for_destination(db: AsyncSession, destination_id: int) -> list[ReviewSchema]:
    """Reviews of a destination with reviewer usernames, newest first."""
    result = await db.execute(
        select(Review, User.username)
        .join(User, Review.user_id == User.id)
        .where(Review.target_id == destination_id, Review.target_type == "destination")
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews: list[ReviewSchema] = []
    for row in result.all():
        review: Review = row[0]
        reviews.append(to_schema(review, username=row[1]))
    return reviews


async def list_for_user(db: AsyncSession, user_id: str) -> list[ReviewSchema]:
    """A user's destination reviews with the destination name, newest first."""
    result = await db.execute(
        select(Review, Destination.name)
        .outerjoin(Destination, Review.target_id == Destination.id)
        .where(Review.user_id == user_id, Review.target_type == "destination")
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews: list[ReviewSchema] = []
    for row in result.all():
        review: Review = row[0]
        reviews.append(to_schema(review, target_name=row[1]))
    return reviews


async def delete_review(db: AsyncSession, review_id: int) -> bool:
    """Delete a review. Returns False if not found."""
    result = await db.execute(delete(Review).where(Review.id == review_id))
    deleted = bool(result.rowcount)  # type: ignore[attr-defined]
    if deleted:
        logger.info("Deleted review %d", review_id)
    return deleted


def to_schema(
    review: Review, username: str | None = None, target_name: str | None = None
) -> ReviewSchema:
    """Convert an ORM review, optionally enriched with joined names."""
    return ReviewSchema(
        id=review.id,
        user_id=review.user_id,
        username=username,
        target_id=review.target_id,
        target_type=review.target_type,
        target_name=target_name,
        comment=review.comment,
        stars=review.stars,
        created_at=review.created_at,
    )
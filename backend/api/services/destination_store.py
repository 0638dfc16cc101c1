"""Destination suggestions, listings and moderation state changes."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.db.models import Category, Destination, Review, User
from backend.api.schemas.destination import DestinationSummary

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_REJECTED = "rejected"


def to_summary(dest: Destination) -> DestinationSummary:
    """Convert an ORM destination into its API summary."""
    return DestinationSummary(
        id=dest.id,
        name=dest.name,
        description=dest.description,
        province=dest.province,
        images=list(dest.images or []),
        status=dest.status,
        created_by=dest.created_by,
        is_public=dest.is_public,
        categories=sorted(c.name for c in dest.categories),
        created_at=dest.created_at,
    )


async def get_destination(db: AsyncSession, destination_id: int) -> Destination | None:
    """Fetch a destination by id, any status."""
    result = await db.execute(select(Destination).where(Destination.id == destination_id))
    return result.scalar_one_or_none()


async def list_active(db: AsyncSession, limit: int | None = None) -> list[Destination]:
    """Active destinations, newest first."""
    stmt = (
        select(Destination)
        .where(Destination.status == STATUS_ACTIVE)
        .order_by(Destination.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_all(db: AsyncSession) -> list[Destination]:
    """Every destination regardless of status, newest first."""
    result = await db.execute(select(Destination).order_by(Destination.id.desc()))
    return list(result.scalars().all())


async def list_pending(db: AsyncSession) -> list[Destination]:
    """Destinations awaiting moderation, oldest first."""
    result = await db.execute(
        select(Destination)
        .where(Destination.status == STATUS_PENDING)
        .order_by(Destination.id.asc())
    )
    return list(result.scalars().all())


async def list_for_user(db: AsyncSession, user_id: str) -> list[Destination]:
    """Destinations created by *user_id*, any status, newest first."""
    result = await db.execute(
        select(Destination)
        .where(Destination.created_by == user_id)
        .order_by(Destination.id.desc())
    )
    return list(result.scalars().all())


async def search_active(db: AsyncSession, term: str) -> list[Destination]:
    """Active destinations whose name or province contains *term* (case-insensitive)."""
    needle = term.lower()
    result = await db.execute(
        select(Destination)
        .where(
            Destination.status == STATUS_ACTIVE,
            or_(
                func.lower(Destination.name).contains(needle, autoescape=True),
                func.lower(Destination.province).contains(needle, autoescape=True),
            ),
        )
        .order_by(Destination.id.desc())
    )
    return list(result.scalars().all())


async def get_author_name(db: AsyncSession, dest: Destination) -> str | None:
    """Username of the destination's creator, if any."""
    if dest.created_by is None:
        return None
    result = await db.execute(select(User.username).where(User.id == dest.created_by))
    return result.scalar_one_or_none()


async def suggest_destination(
    db: AsyncSession,
    user_id: str,
    name: str,
    description: str,
    province: str,
    images: list[str],
    is_public: bool,
) -> Destination:
    """Create a pending destination suggested by *user_id*."""
    dest = Destination(
        name=name,
        description=description,
        province=province,
        images=images,
        status=STATUS_PENDING,
        created_by=user_id,
        is_public=is_public,
        categories=[],
    )
    db.add(dest)
    await db.flush()
    await db.refresh(dest, ["created_at"])
    logger.info("User %s suggested destination %d (%s)", user_id, dest.id, name)
    return dest


async def update_destination(
    db: AsyncSession,
    dest: Destination,
    fields: dict[str, object],
) -> Destination:
    """Apply a partial update; keys must be editable column names."""
    for key, value in fields.items():
        setattr(dest, key, value)
    await db.flush()
    return dest


async def set_status(db: AsyncSession, destination_id: int, status: str) -> Destination | None:
    """Move a destination to *status*. Returns None if it does not exist."""
    dest = await get_destination(db, destination_id)
    if dest is None:
        return None
    dest.status = status
    await db.flush()
    logger.info("Destination %d -> %s", destination_id, status)
    return dest


async def delete_destination(db: AsyncSession, destination_id: int) -> bool:
    """Delete a destination along with its reviews and category links."""
    dest = await get_destination(db, destination_id)
    if dest is None:
        return False
    await db.execute(
        delete(Review).where(
            Review.target_id == destination_id, Review.target_type == "destination"
        )
    )
    await db.delete(dest)
    await db.flush()
    logger.info("Deleted destination %d", destination_id)
    return True


async def delete_own_destination(db: AsyncSession, destination_id: int, user_id: str) -> bool:
    """Delete a destination only if *user_id* created it."""
    dest = await get_destination(db, destination_id)
    if dest is None or dest.created_by != user_id:
        return False
    return await delete_destination(db, destination_id)


async def list_categories(db: AsyncSession) -> list[Category]:
    """All categories, alphabetical."""
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return list(result.scalars().all())

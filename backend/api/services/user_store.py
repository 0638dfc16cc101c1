"""User registration, lookup and administration."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from backend.api.db.models import User
from backend.api.schemas.gamification import MedalSchema
from backend.api.schemas.user import UserProfile
from backend.api.services.account_store import medals_from_json

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by id."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    role: str = "user",
) -> User | None:
    """Register a user with an empty gamification ledger.

    Returns None if the email is already registered.
    """
    if await get_user_by_email(db, email) is not None:
        return None

    user = User(
        id=str(uuid.uuid4()),
        username=username,
        email=email.lower(),
        password_hash=generate_password_hash(password),
        role=role,
        total_score=0,
        submission_count=0,
        approval_count=0,
        medals=[],
        version=0,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user, ["created_at"])
    logger.info("Registered user %s (%s)", user.id, role)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user if *password* matches, else None."""
    user = await get_user_by_email(db, email)
    if user is None or not check_password_hash(user.password_hash, password):
        return None
    return user


async def list_users(db: AsyncSession) -> list[User]:
    """All users, newest first."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id))
    return list(result.scalars().all())


async def search_users(db: AsyncSession, term: str) -> list[User]:
    """Users whose username contains *term* (case-insensitive)."""
    result = await db.execute(
        select(User)
        .where(func.lower(User.username).contains(term.lower(), autoescape=True))
        .order_by(User.username)
    )
    return list(result.scalars().all())


async def top_users(db: AsyncSession, limit: int = 5) -> list[User]:
    """Highest scores first."""
    result = await db.execute(
        select(User).order_by(User.total_score.desc(), User.created_at, User.id).limit(limit)
    )
    return list(result.scalars().all())


async def update_user(
    db: AsyncSession, user_id: str, username: str | None, email: str | None
) -> User | None:
    """Update username and/or email. Returns None if the user does not exist."""
    user = await get_user(db, user_id)
    if user is None:
        return None
    if username is not None:
        user.username = username
    if email is not None:
        user.email = email.lower()
    await db.flush()
    return user


async def change_role(db: AsyncSession, user_id: str, role: str) -> User | None:
    """Set a user's role. Returns None if the user does not exist."""
    user = await get_user(db, user_id)
    if user is None:
        return None
    user.role = role
    await db.flush()
    logger.info("User %s role changed to %s", user_id, role)
    return user


async def delete_user(db: AsyncSession, user_id: str) -> bool:
    """Delete a user and their reviews. Returns False if not found."""
    result = await db.execute(delete(User).where(User.id == user_id))
    deleted = bool(result.rowcount)  # type: ignore[attr-defined]
    if deleted:
        logger.info("Deleted user %s", user_id)
    return deleted


def to_profile(user: User) -> UserProfile:
    """Build the public profile, decoding the medals column."""
    return UserProfile(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        total_score=user.total_score,
        created_at=user.created_at,
        submission_count=user.submission_count,
        approval_count=user.approval_count,
        medals=[MedalSchema.from_medal(m) for m in medals_from_json(user.medals)],
    )

"""FastAPI dependency injection functions."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException
from joserfc import jwt
from joserfc.errors import JoseError
from joserfc.jwk import OctKey
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.config import Settings
from backend.api.db.database import get_db
from backend.api.db.models import User
from backend.api.services.account_store import SqlAccountStore
from backend.api.services.gamification_engine import GamificationEngine

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"

VALID_ROLES = {"user", "moderator", "admin"}
_MODERATION_ROLES = {"moderator", "admin"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings."""
    return Settings()


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Represents a verified caller extracted from a bearer token."""

    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_moderator(self) -> bool:
        return self.role in _MODERATION_ROLES


def create_access_token(user_id: str, role: str, settings: Settings) -> str:
    """Issue a signed HS256 token carrying ``sub``, ``role``, ``iat`` and ``exp``."""
    if not settings.jwt_secret:
        raise HTTPException(status_code=503, detail="Auth not configured")
    now = int(time.time())
    claims = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + settings.jwt_expires_hours * 3600,
    }
    key = OctKey.import_key(settings.jwt_secret)
    return jwt.encode({"alg": _ALGORITHM}, claims, key)


def _decode_access_token(token: str, secret: str) -> dict[str, Any]:
    """Verify a token's signature and expiry and return its claims.

    Raises ``JoseError`` subclasses for bad signatures, malformed tokens,
    missing claims and expired tokens.
    """
    key = OctKey.import_key(secret)
    decoded = jwt.decode(token, key, algorithms=[_ALGORITHM])
    registry = jwt.JWTClaimsRegistry(
        sub={"essential": True},
        exp={"essential": True},
    )
    registry.validate(decoded.claims)
    return dict(decoded.claims)


def get_current_user(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: str | None = Header(None),
) -> AuthenticatedUser:
    """Extract and validate the caller from ``Authorization: Bearer <token>``.

    Returns 401 if no valid token, 503 if ``jwt_secret`` is not configured.
    """
    if not settings.jwt_secret:
        raise HTTPException(status_code=503, detail="Auth not configured")

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")

    token = authorization[7:]
    try:
        payload = _decode_access_token(token, settings.jwt_secret)
    except (JoseError, ValueError) as exc:
        logger.warning("Auth: token rejected: %s: %s", type(exc).__name__, exc)
        raise HTTPException(status_code=401, detail="Invalid or expired token") from None

    role = payload.get("role") or "user"
    if role not in VALID_ROLES:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return AuthenticatedUser(user_id=str(payload["sub"]), role=role)


async def get_current_account(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthenticatedUser:
    """Re-read the caller's role from the users table.

    Demotions and deletions take effect immediately instead of when the
    token expires.  Returns 401 if the account no longer exists.
    """
    role = await db.scalar(select(User.role).where(User.id == current_user.user_id))
    if role is None:
        logger.warning("Auth: token for deleted account %s", current_user.user_id)
        raise HTTPException(status_code=401, detail="Account no longer exists")
    if role != current_user.role:
        logger.info(
            "Auth: role for %s changed from %s to %s since token issue",
            current_user.user_id,
            current_user.role,
            role,
        )
    return AuthenticatedUser(user_id=current_user.user_id, role=role)


def require_moderator(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_account)],
) -> AuthenticatedUser:
    """Allow moderators and admins only."""
    if not current_user.is_moderator:
        raise HTTPException(status_code=403, detail="Moderator role required")
    return current_user


def require_admin(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_account)],
) -> AuthenticatedUser:
    """Allow admins only."""
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return current_user


def get_gamification_engine(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> GamificationEngine:
    """Build an engine bound to the request's database session."""
    return GamificationEngine(SqlAccountStore(db))

"""Pydantic schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from backend.api.schemas.gamification import MedalSchema


class UserSummary(BaseModel):
    """Row in user listings and search results."""

    id: str
    username: str
    email: str
    role: str = "user"
    total_score: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserProfile(UserSummary):
    """Public profile including the gamification ledger."""

    submission_count: int = 0
    approval_count: int = 0
    medals: list[MedalSchema] = Field(default_factory=list)


class UserListResponse(BaseModel):
    """Response for user listings."""

    users: list[UserSummary]


class TopUserEntry(BaseModel):
    """A leaderboard row."""

    rank: int
    id: str
    username: str
    total_score: int


class TopUsersResponse(BaseModel):
    """Response for the score leaderboard."""

    users: list[TopUserEntry]


class UserUpdateSchema(BaseModel):
    """Partial update of username/email."""

    username: str | None = Field(default=None, min_length=1, max_length=64)
    email: EmailStr | None = None


class RoleUpdateSchema(BaseModel):
    """Request to change a user's role."""

    role: str

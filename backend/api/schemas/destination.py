"""Pydantic schemas for destination and review endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class DestinationSummary(BaseModel):
    """A destination as listed to users and moderators."""

    id: int
    name: str
    description: str = ""
    province: str = ""
    images: list[str] = Field(default_factory=list)
    status: str = "pending"
    created_by: str | None = None
    is_public: bool = True
    categories: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


class DestinationListResponse(BaseModel):
    """Response for destination listings."""

    destinations: list[DestinationSummary]


class ReviewSchema(BaseModel):
    """A single review."""

    id: int
    user_id: str
    username: str | None = None
    target_id: int
    target_type: str = "destination"
    target_name: str | None = None
    comment: str = ""
    stars: int
    created_at: datetime | None = None


class ReviewListResponse(BaseModel):
    """Response for review listings."""

    reviews: list[ReviewSchema]


class DestinationDetail(DestinationSummary):
    """Destination with its author's username and reviews."""

    author: str | None = None
    reviews: list[ReviewSchema] = Field(default_factory=list)


class DestinationUpdate(BaseModel):
    """Partial update of a destination's editable fields.

    Omitted fields are left alone; an explicit ``null`` is rejected for
    columns that cannot be empty.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    province: str | None = None
    images: list[str] | None = None
    is_public: bool | None = None

    @field_validator("name", "description", "province", "is_public")
    @classmethod
    def _reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class SuggestionResponse(BaseModel):
    """Response after suggesting a destination."""

    destination: DestinationSummary
    points_awarded: bool
    total_score: int


class ReviewCreate(BaseModel):
    """Request to post a review."""

    target_id: int
    target_type: Literal["destination"] = "destination"
    comment: str = ""
    stars: int = Field(ge=1, le=5)


class CategorySchema(BaseModel):
    """A destination category."""

    id: int
    name: str

    model_config = {"from_attributes": True}


class CategoryListResponse(BaseModel):
    """Response for category listings."""

    categories: list[CategorySchema]


class ModerationResponse(BaseModel):
    """Response after approving or rejecting a destination."""

    destination: DestinationSummary
    points_awarded: bool
    creator_score: int | None = None

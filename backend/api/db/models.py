"""SQLAlchemy 2.0 async ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class User(Base):
    """A registered user together with their gamification ledger."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    username: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, default="user")  # user | moderator | admin

    # Gamification ledger
    total_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    submission_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    approval_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    medals: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    reviews: Mapped[list[Review]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_users_total_score", "total_score"),
        CheckConstraint("total_score >= 0", name="ck_users_total_score_nonneg"),
        CheckConstraint(
            "submission_count BETWEEN 0 AND 10", name="ck_users_submission_count_range"
        ),
        CheckConstraint("approval_count BETWEEN 0 AND 10", name="ck_users_approval_count_range"),
    )


class Destination(Base):
    """A tourist destination, suggested by a user and moderated before going live."""

    __tablename__ = "destinations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    province: Mapped[str] = mapped_column(String, nullable=False, default="")
    images: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    status: Mapped[str] = mapped_column(String, default="pending")  # pending | active | rejected
    created_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    author: Mapped[User | None] = relationship()
    categories: Mapped[list[Category]] = relationship(
        secondary="destination_categories", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_destinations_status", "status"),
        Index("ix_destinations_created_by", "created_by"),
    )


class Category(Base):
    """A destination category (beach, mountain, heritage, ...)."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class DestinationCategory(Base):
    """Many-to-many link between destinations and categories."""

    __tablename__ = "destination_categories"

    destination_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("destinations.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )


class Review(Base):
    """A user's review of a target (a destination unless stated otherwise)."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    target_type: Mapped[str] = mapped_column(String, nullable=False, default="destination")
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    stars: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationship
    user: Mapped[User] = relationship(back_populates="reviews")

    __table_args__ = (
        Index("ix_reviews_target", "target_type", "target_id"),
        Index("ix_reviews_user_id", "user_id"),
        CheckConstraint("stars BETWEEN 1 AND 5", name="ck_reviews_stars_range"),
    )

"""Pydantic schemas for gamification responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from destinos.gamification import Medal


class MedalSchema(BaseModel):
    """A medal in its persisted ``{name, value, date}`` shape."""

    name: str
    value: int
    date: datetime

    @classmethod
    def from_medal(cls, medal: Medal) -> MedalSchema:
        return cls(name=medal.name, value=medal.value, date=medal.awarded_at)


class SeasonResetResponse(BaseModel):
    """Response for the season reset endpoint."""

    accounts_updated: int

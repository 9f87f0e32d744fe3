from __future__ import annotations

import datetime as dt
from pydantic import BaseModel, Field, field_validator


class FriendIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str | None = Field(default=None, max_length=254)
    birthday: dt.date
    timezone: str | None = Field(default="UTC", max_length=64)
    reminder_days_override: int | None = Field(default=None, ge=0, le=365)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class FriendOut(BaseModel):
    id: int
    name: str
    email: str | None
    birthday: dt.date
    timezone: str
    reminder_days_override: int | None
    notes: str | None
    created_at: dt.datetime
    updated_at: dt.datetime

    next_birthday: dt.date
    days_until: int

    class Config:
        from_attributes = True


class UpcomingOut(BaseModel):
    date: str
    within_days: int
    friends: list[FriendOut]

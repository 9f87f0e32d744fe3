from __future__ import annotations

import datetime as dt
from pydantic import BaseModel, Field, field_validator

from app.i18n.core import available_locales, normalize_locale


class ProfileOut(BaseModel):
    id: int
    email: str
    name: str | None
    timezone: str
    locale: str
    reminder_default_days: int
    is_active: bool
    api_key_prefix: str | None
    created_at: dt.datetime

    class Config:
        from_attributes = True


class ProfilePatch(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    timezone: str | None = Field(default=None, max_length=64)
    locale: str | None = Field(default=None, max_length=8)
    reminder_default_days: int | None = Field(default=None, ge=0, le=365)

    @field_validator("locale")
    @classmethod
    def _locale(cls, v: str | None) -> str | None:
        if v is None:
            return None
        locale = normalize_locale(v)
        if locale not in available_locales():
            raise ValueError(f"locale must be one of: {sorted(available_locales())}")
        return locale


class RegisterIn(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    name: str | None = Field(default=None, max_length=120)
    timezone: str | None = Field(default=None, max_length=64)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("email is not valid")
        return v


class ApiKeyOut(BaseModel):
    api_key: str
    api_key_prefix: str


class RegisterOut(ApiKeyOut):
    user: ProfileOut

from __future__ import annotations

import datetime as dt
from pydantic import BaseModel


class ReminderLogOut(BaseModel):
    id: int
    friend_id: int
    remind_for_date: dt.date
    status: str
    error_message: str | None
    created_at: dt.datetime

    class Config:
        from_attributes = True


class ReminderRunOut(BaseModel):
    message: str
    total_reminders_sent: int
    skipped_duplicates: int
    errors: list[str]
    timestamp: dt.datetime

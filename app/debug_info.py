from __future__ import annotations

from sqlalchemy import func, select

from app.db import describe_db
from app.models.friend import Friend
from app.models.reminder_log import REMINDER_STATUS_FAILED, REMINDER_STATUS_SENT, ReminderLog


def build_db_debug(db, user_id: int) -> dict:
    info = describe_db(str(db.get_bind().url))

    total_friends = db.execute(
        select(func.count()).select_from(Friend).where(Friend.user_id == user_id)
    ).scalar_one()
    counts = dict(
        db.execute(
            select(ReminderLog.status, func.count())
            .where(ReminderLog.user_id == user_id)
            .group_by(ReminderLog.status)
        ).all()
    )

    info.update(
        {
            "user_id": user_id,
            "friends_total": int(total_friends),
            "reminders_sent": int(counts.get(REMINDER_STATUS_SENT, 0)),
            "reminders_failed": int(counts.get(REMINDER_STATUS_FAILED, 0)),
        }
    )
    return info

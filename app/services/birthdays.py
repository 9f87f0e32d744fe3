from __future__ import annotations

import calendar
import datetime as dt
from dataclasses import dataclass


def occurrence_in_year(birthday: dt.date, year: int) -> dt.date:
    """Month/day of ``birthday`` placed in ``year``.

    Feb 29 overflows to Mar 1 in non-leap years.
    """
    if birthday.month == 2 and birthday.day == 29 and not calendar.isleap(year):
        return dt.date(year, 3, 1)
    return dt.date(year, birthday.month, birthday.day)


def next_occurrence(birthday: dt.date, today: dt.date) -> dt.date:
    candidate = occurrence_in_year(birthday, today.year)
    if candidate < today:
        candidate = occurrence_in_year(birthday, today.year + 1)
    return candidate


def days_until(birthday: dt.date, today: dt.date) -> int:
    return (next_occurrence(birthday, today) - today).days


def reminder_date(birthday: dt.date, today: dt.date, lead_days: int) -> dt.date:
    return next_occurrence(birthday, today) - dt.timedelta(days=lead_days)


def is_reminder_due(birthday: dt.date, today: dt.date, lead_days: int) -> bool:
    # Single-day window: a reminder date that already passed is never due.
    return reminder_date(birthday, today, lead_days) == today


def resolve_lead_days(override: int | None, default: int) -> int:
    return override if override is not None else default


@dataclass(frozen=True)
class UpcomingBirthday:
    friend: object
    next_birthday: dt.date
    days_until: int


def upcoming_birthdays(friends, today: dt.date, within_days: int) -> list[UpcomingBirthday]:
    items = []
    for friend in friends:
        nxt = next_occurrence(friend.birthday, today)
        delta = (nxt - today).days
        if delta <= within_days:
            items.append(UpcomingBirthday(friend=friend, next_birthday=nxt, days_until=delta))
    items.sort(key=lambda item: (item.days_until, getattr(item.friend, "name", "")))
    return items

from __future__ import annotations

import datetime as dt

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.user import User
from app.models.friend import Friend
from app.models.reminder_log import ReminderLog
from app.schemas.friends import FriendIn
from app.security import api_key_prefix, generate_api_key, hash_api_key
from app.settings import settings


class DuplicateEmailError(ValueError):
    pass


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == _normalize_email(email))).scalar_one_or_none()


def create_user(
    db: Session,
    email: str,
    name: str | None = None,
    timezone: str = "UTC",
    reminder_default_days: int | None = None,
) -> User:
    email = _normalize_email(email)
    user = User(
        email=email,
        # Default display name from the email local part
        name=name or email.split("@", 1)[0],
        timezone=timezone or "UTC",
        reminder_default_days=(
            settings.REMINDER_DEFAULT_DAYS if reminder_default_days is None else reminder_default_days
        ),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateEmailError(f"User {email} already exists") from exc
    db.refresh(user)
    return user


def register_user(db: Session, email: str, name: str | None = None, timezone: str = "UTC") -> tuple[User, str]:
    # Hash first so a missing API_KEY_SECRET never leaves a keyless user behind.
    raw_key = generate_api_key()
    key_hash = hash_api_key(raw_key)
    user = create_user(db, email, name=name, timezone=timezone)
    user.api_key_hash = key_hash
    user.api_key_prefix = api_key_prefix(raw_key)
    user.api_key_last_rotated_at = dt.datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, raw_key


def update_user_fields(db: Session, user_id: int, **fields) -> User | None:
    user = get_user(db, user_id)
    if not user:
        return None
    for k, v in fields.items():
        setattr(user, k, v)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def rotate_user_api_key(db: Session, user_id: int) -> str:
    user = get_user(db, user_id)
    if not user:
        raise ValueError(f"User {user_id} not found")
    raw_key = generate_api_key()
    user.api_key_hash = hash_api_key(raw_key)
    user.api_key_prefix = api_key_prefix(raw_key)
    user.api_key_last_rotated_at = dt.datetime.utcnow()
    db.add(user)
    db.commit()
    return raw_key


def get_user_by_api_key(db: Session, raw_key: str) -> User | None:
    key_hash = hash_api_key(raw_key)
    return db.execute(select(User).where(User.api_key_hash == key_hash)).scalar_one_or_none()


def list_users_with_friends(db: Session) -> list[User]:
    return list(
        db.execute(select(User).options(selectinload(User.friends)).order_by(User.id)).scalars().all()
    )


def list_friends(db: Session, user_id: int) -> list[Friend]:
    return list(
        db.execute(
            select(Friend).where(Friend.user_id == user_id).order_by(Friend.birthday.asc(), Friend.id.asc())
        ).scalars().all()
    )


def get_friend(db: Session, user_id: int, friend_id: int) -> Friend | None:
    return db.execute(
        select(Friend).where(and_(Friend.id == friend_id, Friend.user_id == user_id))
    ).scalar_one_or_none()


def create_friend(db: Session, user_id: int, data: FriendIn) -> Friend:
    friend = Friend(
        user_id=user_id,
        name=data.name,
        email=data.email,
        birthday=data.birthday,
        timezone=data.timezone or "UTC",
        reminder_days_override=data.reminder_days_override,
        notes=data.notes,
    )
    db.add(friend)
    db.commit()
    db.refresh(friend)
    return friend


def update_friend(db: Session, user_id: int, friend_id: int, data: FriendIn) -> Friend | None:
    friend = get_friend(db, user_id, friend_id)
    if not friend:
        return None
    # Full replacement, so a missing override clears it.
    friend.name = data.name
    friend.email = data.email
    friend.birthday = data.birthday
    friend.timezone = data.timezone or "UTC"
    friend.reminder_days_override = data.reminder_days_override
    friend.notes = data.notes
    db.add(friend)
    db.commit()
    db.refresh(friend)
    return friend


def delete_friend(db: Session, user_id: int, friend_id: int) -> bool:
    friend = get_friend(db, user_id, friend_id)
    if not friend:
        return False
    db.delete(friend)
    db.commit()
    return True


def get_reminder_log(db: Session, user_id: int, friend_id: int, remind_for_date: dt.date) -> ReminderLog | None:
    return db.execute(
        select(ReminderLog).where(
            and_(
                ReminderLog.user_id == user_id,
                ReminderLog.friend_id == friend_id,
                ReminderLog.remind_for_date == remind_for_date,
            )
        )
    ).scalar_one_or_none()


def list_reminder_logs(db: Session, user_id: int, limit: int = 100) -> list[ReminderLog]:
    return list(
        db.execute(
            select(ReminderLog)
            .where(ReminderLog.user_id == user_id)
            .order_by(ReminderLog.created_at.desc(), ReminderLog.id.desc())
            .limit(limit)
        ).scalars().all()
    )

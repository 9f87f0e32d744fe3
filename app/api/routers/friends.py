from __future__ import annotations

import datetime as dt
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app import crud
from app.api.deps import get_current_user, require_api_key
from app.db import get_db
from app.models.friend import Friend
from app.schemas.friends import FriendIn, FriendOut, UpcomingOut
from app.services.birthdays import next_occurrence, upcoming_birthdays
from app.services.reminders import utc_today

router = APIRouter(prefix="/friends", tags=["friends"], dependencies=[Depends(require_api_key)])


def _friend_out(friend: Friend, today: dt.date, nxt: dt.date | None = None) -> FriendOut:
    nxt = nxt or next_occurrence(friend.birthday, today)
    return FriendOut(
        id=friend.id,
        name=friend.name,
        email=friend.email,
        birthday=friend.birthday,
        timezone=friend.timezone,
        reminder_days_override=friend.reminder_days_override,
        notes=friend.notes,
        created_at=friend.created_at,
        updated_at=friend.updated_at,
        next_birthday=nxt,
        days_until=(nxt - today).days,
    )


@router.get("", response_model=list[FriendOut])
def list_friends(db: Session = Depends(get_db), user=Depends(get_current_user)):
    today = utc_today()
    return [_friend_out(f, today) for f in crud.list_friends(db, user.id)]


@router.post("", response_model=FriendOut, status_code=201)
def create_friend(payload: FriendIn, db: Session = Depends(get_db), user=Depends(get_current_user)):
    friend = crud.create_friend(db, user.id, payload)
    return _friend_out(friend, utc_today())


@router.get("/upcoming", response_model=UpcomingOut)
def list_upcoming(
    days: int = Query(30, ge=0, le=366, description="Look-ahead window in days"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    today = utc_today()
    items = upcoming_birthdays(crud.list_friends(db, user.id), today, days)
    return UpcomingOut(
        date=today.isoformat(),
        within_days=days,
        friends=[_friend_out(item.friend, today, item.next_birthday) for item in items],
    )


@router.get("/{friend_id}", response_model=FriendOut)
def get_friend(friend_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    friend = crud.get_friend(db, user.id, friend_id)
    if not friend:
        raise HTTPException(status_code=404, detail="Friend not found")
    return _friend_out(friend, utc_today())


@router.put("/{friend_id}", response_model=FriendOut)
def update_friend(friend_id: int, payload: FriendIn, db: Session = Depends(get_db), user=Depends(get_current_user)):
    friend = crud.update_friend(db, user.id, friend_id, payload)
    if not friend:
        raise HTTPException(status_code=404, detail="Friend not found")
    return _friend_out(friend, utc_today())


@router.delete("/{friend_id}")
def delete_friend(friend_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    ok = crud.delete_friend(db, user.id, friend_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Friend not found")
    return {"ok": True}

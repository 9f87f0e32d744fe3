from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app import crud
from app.api.deps import get_current_user, get_reminder_evaluator, require_api_key, require_webhook_secret
from app.db import get_db
from app.schemas.reminders import ReminderLogOut, ReminderRunOut
from app.services.reminders import ReminderEvaluator, ReminderRunError

logger = logging.getLogger("birthday_api")

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("/send", response_model=ReminderRunOut, dependencies=[Depends(require_webhook_secret)])
def send_reminders(evaluator: ReminderEvaluator = Depends(get_reminder_evaluator)):
    try:
        result = evaluator.run()
    except ReminderRunError:
        logger.exception("Error in send-reminders")
        raise HTTPException(status_code=500, detail="Internal server error")
    return ReminderRunOut(
        message="Birthday reminders processed",
        total_reminders_sent=result.total_reminders_sent,
        skipped_duplicates=result.skipped_duplicates,
        errors=result.errors,
        timestamp=result.timestamp,
    )


@router.get("/logs", response_model=list[ReminderLogOut], dependencies=[Depends(require_api_key)])
def list_logs(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return crud.list_reminder_logs(db, user.id, limit=limit)

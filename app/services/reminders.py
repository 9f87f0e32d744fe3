from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import crud
from app.i18n.core import DEFAULT_LOCALE, locale_for_user
from app.models.reminder_log import REMINDER_STATUS_FAILED, REMINDER_STATUS_SENT, ReminderLog
from app.services.birthdays import is_reminder_due, next_occurrence, resolve_lead_days
from app.services.mailer import Notifier

logger = logging.getLogger("birthday_reminders")

SEND_FAILED_MESSAGE = "Email sending failed"


class ReminderRunError(RuntimeError):
    """Raised when a run cannot start (users and friends failed to load)."""


@dataclass(frozen=True)
class ReminderTarget:
    user_id: int
    user_email: str
    user_name: str
    friend_id: int
    friend_name: str
    birthday: dt.date
    lead_days: int
    locale: str = DEFAULT_LOCALE


@dataclass
class ReminderRunResult:
    run_date: dt.date
    timestamp: dt.datetime
    total_reminders_sent: int = 0
    skipped_duplicates: int = 0
    errors: list[str] = field(default_factory=list)


def utc_today() -> dt.date:
    # User/friend timezones are stored but not applied.
    return dt.datetime.utcnow().date()


class ReminderEvaluator:
    """Decides which birthday reminders are due and sends each at most once.

    The log row for a target occurrence is inserted before the notifier is
    called and committed together with its final status, so the unique key on
    ``reminder_logs`` turns a concurrent duplicate into a skip. A commit that
    fails after a successful send loses the row, so that reminder goes out
    again on the next run.
    """

    def __init__(self, session_factory: Callable[[], Session], notifier: Notifier) -> None:
        self.session_factory = session_factory
        self.notifier = notifier

    def load_targets(self, db: Session) -> list[ReminderTarget]:
        targets = []
        for user in crud.list_users_with_friends(db):
            if not user.is_active:
                continue
            for friend in user.friends:
                targets.append(
                    ReminderTarget(
                        user_id=user.id,
                        user_email=user.email,
                        user_name=user.display_name,
                        friend_id=friend.id,
                        friend_name=friend.name,
                        birthday=friend.birthday,
                        lead_days=resolve_lead_days(friend.reminder_days_override, user.reminder_default_days),
                        locale=locale_for_user(user),
                    )
                )
        return targets

    def run(self, today: dt.date | None = None) -> ReminderRunResult:
        today = today or utc_today()
        result = ReminderRunResult(run_date=today, timestamp=dt.datetime.utcnow())
        logger.info("Starting birthday reminder check for %s", today.isoformat())

        with self.session_factory() as db:
            try:
                targets = self.load_targets(db)
            except SQLAlchemyError as exc:
                logger.exception("Failed to load users and friends")
                raise ReminderRunError("Failed to load users and friends") from exc

            for target in targets:
                try:
                    self._process(db, target, today, result)
                except Exception as exc:  # noqa: BLE001
                    db.rollback()
                    logger.exception("Error processing reminder for friend %s", target.friend_id)
                    result.errors.append(f"Error processing friend {target.friend_id}: {exc}")

        logger.info(
            "Birthday reminder check finished (sent=%s, skipped=%s, errors=%s)",
            result.total_reminders_sent,
            result.skipped_duplicates,
            len(result.errors),
        )
        return result

    def _process(self, db: Session, target: ReminderTarget, today: dt.date, result: ReminderRunResult) -> None:
        if not is_reminder_due(target.birthday, today, target.lead_days):
            return

        occurrence = next_occurrence(target.birthday, today)
        if crud.get_reminder_log(db, target.user_id, target.friend_id, occurrence):
            logger.info("Reminder already sent for %s's birthday to %s", target.friend_name, target.user_email)
            result.skipped_duplicates += 1
            return

        log = ReminderLog(
            user_id=target.user_id,
            friend_id=target.friend_id,
            remind_for_date=occurrence,
            status=REMINDER_STATUS_SENT,
        )
        db.add(log)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.info("Reminder for friend %s claimed by another run", target.friend_id)
            result.skipped_duplicates += 1
            return

        error = self._send(target, occurrence, today)
        if error:
            log.status = REMINDER_STATUS_FAILED
            log.error_message = error[:400]
        db.commit()

        if error:
            result.errors.append(f"Failed to send reminder for {target.friend_name} to {target.user_email}")
            return
        result.total_reminders_sent += 1
        logger.info("Sent birthday reminder for %s to %s", target.friend_name, target.user_email)

    def _send(self, target: ReminderTarget, occurrence: dt.date, today: dt.date) -> str | None:
        try:
            ok = self.notifier.send(
                target.friend_name,
                occurrence,
                (occurrence - today).days,
                target.user_name,
                target.user_email,
                locale=target.locale,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Notifier raised for friend %s: %s", target.friend_id, exc)
            return str(exc) or exc.__class__.__name__
        return None if ok else SEND_FAILED_MESSAGE

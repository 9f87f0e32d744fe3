import datetime as dt

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app import crud
from app.models.friend import Friend
from app.models.reminder_log import ReminderLog
from app.schemas.friends import FriendIn
from app.services.reminders import ReminderEvaluator, ReminderRunError
from fakes import FakeNotifier


def _seed(SessionLocal, friends, email="owner@example.com", default_days=2):
    with SessionLocal() as db:
        user = crud.create_user(db, email, name="Owner", reminder_default_days=default_days)
        ids = []
        for name, birthday, override in friends:
            friend = crud.create_friend(
                db,
                user.id,
                FriendIn(name=name, birthday=birthday, reminder_days_override=override),
            )
            ids.append(friend.id)
        return user.id, ids


def _logs(SessionLocal):
    with SessionLocal() as db:
        return list(db.execute(select(ReminderLog).order_by(ReminderLog.id)).scalars().all())


def test_due_reminder_sent_and_logged(session_factory):
    user_id, (friend_id,) = _seed(session_factory, [("Ada", dt.date(1990, 3, 1), 1)])
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2027, 2, 28))

    assert result.total_reminders_sent == 1
    assert result.errors == []
    assert notifier.calls == [
        {
            "friend_name": "Ada",
            "birthday": dt.date(2027, 3, 1),
            "days_until": 1,
            "recipient_name": "Owner",
            "recipient_email": "owner@example.com",
            "locale": "en",
        }
    ]
    logs = _logs(session_factory)
    assert len(logs) == 1
    assert logs[0].user_id == user_id
    assert logs[0].friend_id == friend_id
    assert logs[0].remind_for_date == dt.date(2027, 3, 1)
    assert logs[0].status == "sent"
    assert logs[0].error_message is None


def test_not_due_sends_nothing(session_factory):
    _seed(session_factory, [("Ada", dt.date(1990, 3, 1), 1)])
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2027, 2, 27))

    assert result.total_reminders_sent == 0
    assert notifier.calls == []
    assert _logs(session_factory) == []


def test_second_run_same_day_does_not_resend(session_factory):
    _seed(session_factory, [("Ada", dt.date(1990, 5, 10), None)])
    notifier = FakeNotifier()
    evaluator = ReminderEvaluator(session_factory, notifier)

    first = evaluator.run(dt.date(2026, 5, 8))
    second = evaluator.run(dt.date(2026, 5, 8))

    assert first.total_reminders_sent == 1
    assert second.total_reminders_sent == 0
    assert second.skipped_duplicates == 1
    assert len(notifier.calls) == 1
    assert len(_logs(session_factory)) == 1


def test_existing_sent_log_blocks_notifier(session_factory):
    user_id, (friend_id,) = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    with session_factory() as db:
        db.add(ReminderLog(user_id=user_id, friend_id=friend_id, remind_for_date=dt.date(2026, 5, 10), status="sent"))
        db.commit()
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert notifier.calls == []
    assert result.skipped_duplicates == 1


def test_next_year_occurrence_is_a_new_key(session_factory):
    _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    notifier = FakeNotifier()
    evaluator = ReminderEvaluator(session_factory, notifier)

    evaluator.run(dt.date(2026, 5, 10))
    evaluator.run(dt.date(2027, 5, 10))

    assert len(notifier.calls) == 2
    assert [log.remind_for_date for log in _logs(session_factory)] == [dt.date(2026, 5, 10), dt.date(2027, 5, 10)]


def test_failed_send_logged_once_and_run_continues(session_factory):
    _seed(
        session_factory,
        [("Broken", dt.date(1990, 5, 10), 0), ("Fine", dt.date(1991, 5, 10), 0)],
    )
    notifier = FakeNotifier(result=lambda name: name != "Broken")
    evaluator = ReminderEvaluator(session_factory, notifier)

    result = evaluator.run(dt.date(2026, 5, 10))

    assert result.total_reminders_sent == 1
    assert result.errors == ["Failed to send reminder for Broken to owner@example.com"]
    logs = _logs(session_factory)
    assert [(log.status, log.error_message) for log in logs] == [
        ("failed", "Email sending failed"),
        ("sent", None),
    ]

    # Failed sends are not retried for the same occurrence.
    again = evaluator.run(dt.date(2026, 5, 10))
    assert again.errors == []
    assert len(notifier.calls) == 2


def test_notifier_exception_treated_as_failure(session_factory):
    _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    notifier = FakeNotifier(raise_exc=ConnectionError("smtp down"))

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert result.total_reminders_sent == 0
    assert len(result.errors) == 1
    logs = _logs(session_factory)
    assert len(logs) == 1
    assert logs[0].status == "failed"
    assert logs[0].error_message == "smtp down"


def test_independent_leads_for_same_birthday(session_factory):
    _seed(
        session_factory,
        [("Two", dt.date(1990, 9, 10), 2), ("Seven", dt.date(1990, 9, 10), 7), ("Default", dt.date(1990, 9, 10), None)],
        default_days=2,
    )
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 9, 8))

    assert result.total_reminders_sent == 2
    assert sorted(call["friend_name"] for call in notifier.calls) == ["Default", "Two"]


def test_zero_override_beats_user_default(session_factory):
    _seed(session_factory, [("Ada", dt.date(1990, 9, 10), 0)], default_days=3)
    notifier = FakeNotifier()
    evaluator = ReminderEvaluator(session_factory, notifier)

    assert evaluator.run(dt.date(2026, 9, 7)).total_reminders_sent == 0
    assert evaluator.run(dt.date(2026, 9, 10)).total_reminders_sent == 1
    assert notifier.calls[0]["days_until"] == 0


def test_concurrent_claim_is_skipped(session_factory, monkeypatch):
    user_id, (friend_id,) = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    with session_factory() as db:
        db.add(ReminderLog(user_id=user_id, friend_id=friend_id, remind_for_date=dt.date(2026, 5, 10), status="sent"))
        db.commit()
    # Another run inserted between our lookup and our insert.
    monkeypatch.setattr("app.crud.get_reminder_log", lambda *args, **kwargs: None)
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert notifier.calls == []
    assert result.skipped_duplicates == 1
    assert result.errors == []
    assert len(_logs(session_factory)) == 1


def test_per_friend_error_does_not_abort_run(session_factory, monkeypatch):
    _, (bad_id, _) = _seed(
        session_factory,
        [("Bad", dt.date(1990, 5, 10), 0), ("Good", dt.date(1991, 5, 10), 0)],
    )
    import app.services.reminders as reminders

    real_next = reminders.next_occurrence

    def flaky_next(birthday, today):
        if birthday.year == 1990:
            raise ValueError("bad birthday")
        return real_next(birthday, today)

    monkeypatch.setattr(reminders, "next_occurrence", flaky_next)
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert result.total_reminders_sent == 1
    assert result.errors == [f"Error processing friend {bad_id}: bad birthday"]
    assert [call["friend_name"] for call in notifier.calls] == ["Good"]


def test_inactive_users_are_skipped(session_factory):
    user_id, _ = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    with session_factory() as db:
        crud.update_user_fields(db, user_id, is_active=False)
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert result.total_reminders_sent == 0
    assert notifier.calls == []


def test_multiple_users_are_isolated(session_factory):
    _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)], email="a@example.com")
    _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)], email="b@example.com")
    notifier = FakeNotifier()

    result = ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert result.total_reminders_sent == 2
    assert sorted(call["recipient_email"] for call in notifier.calls) == ["a@example.com", "b@example.com"]


def test_load_failure_aborts_run(session_factory, monkeypatch):
    def boom(db):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr("app.crud.list_users_with_friends", boom)

    with pytest.raises(ReminderRunError):
        ReminderEvaluator(session_factory, FakeNotifier()).run(dt.date(2026, 5, 10))


def test_deleting_friend_removes_logs(session_factory):
    user_id, (friend_id,) = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    ReminderEvaluator(session_factory, FakeNotifier()).run(dt.date(2026, 5, 10))

    with session_factory() as db:
        assert crud.delete_friend(db, user_id, friend_id)
        assert db.get(Friend, friend_id) is None
    assert _logs(session_factory) == []


def test_user_locale_reaches_notifier(session_factory):
    user_id, _ = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    with session_factory() as db:
        crud.update_user_fields(db, user_id, locale="ru")
    notifier = FakeNotifier()

    ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert notifier.calls[0]["locale"] == "ru"


def test_unknown_stored_locale_falls_back_to_english(session_factory):
    user_id, _ = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])
    with session_factory() as db:
        crud.update_user_fields(db, user_id, locale="zz")
    notifier = FakeNotifier()

    ReminderEvaluator(session_factory, notifier).run(dt.date(2026, 5, 10))

    assert notifier.calls[0]["locale"] == "en"


def test_commit_failure_after_send_is_resent_next_run(session_factory, monkeypatch):
    _, (friend_id,) = _seed(session_factory, [("Ada", dt.date(1990, 5, 10), 0)])

    def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("db down"))

    monkeypatch.setattr(Session, "commit", failing_commit)
    notifier = FakeNotifier()
    evaluator = ReminderEvaluator(session_factory, notifier)

    result = evaluator.run(dt.date(2026, 5, 10))

    assert len(notifier.calls) == 1
    assert result.total_reminders_sent == 0
    assert len(result.errors) == 1
    assert result.errors[0].startswith(f"Error processing friend {friend_id}: ")
    monkeypatch.undo()
    assert _logs(session_factory) == []

    # The row was lost with the failed commit, so the next run sends again.
    again = evaluator.run(dt.date(2026, 5, 10))
    assert again.total_reminders_sent == 1
    assert len(notifier.calls) == 2
    assert [log.status for log in _logs(session_factory)] == ["sent"]

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import logging

from app.db import SessionLocal
from app.logging_utils import configure_logging
from app.services.mailer import SmtpNotifier
from app.services.reminders import ReminderEvaluator, ReminderRunResult
from app.settings import settings

logger = logging.getLogger("birthday_worker")


def build_evaluator() -> ReminderEvaluator:
    return ReminderEvaluator(SessionLocal, SmtpNotifier())


def run_due(evaluator: ReminderEvaluator, now: dt.datetime, last_run: dt.date | None) -> dt.date | None:
    """Run once per UTC day, at or after REMINDER_RUN_HOUR. Returns the last run date."""
    today = now.date()
    if last_run == today or now.hour < settings.REMINDER_RUN_HOUR:
        return last_run
    result = evaluator.run(today)
    _log_result(result)
    return today


def _log_result(result: ReminderRunResult) -> None:
    logger.info(
        "Reminder run for %s: sent=%s skipped=%s errors=%s",
        result.run_date.isoformat(),
        result.total_reminders_sent,
        result.skipped_duplicates,
        len(result.errors),
    )
    for error in result.errors:
        logger.warning("Reminder run error: %s", error)


async def run_loop() -> None:
    logger.info("Birthday reminder worker started")
    evaluator = build_evaluator()
    last_run: dt.date | None = None
    while True:
        try:
            last_run = await asyncio.to_thread(run_due, evaluator, dt.datetime.utcnow(), last_run)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Reminder worker error: %s", exc)
        await asyncio.sleep(settings.WORKER_POLL_INTERVAL_SEC)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Birthday reminder worker")
    parser.add_argument("--once", action="store_true", help="run a single reminder pass and exit")
    args = parser.parse_args(argv)

    configure_logging()
    if args.once:
        _log_result(build_evaluator().run())
        return
    asyncio.run(run_loop())


if __name__ == "__main__":
    main()

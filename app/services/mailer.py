from __future__ import annotations

import datetime as dt
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from app.i18n.core import t, t_count
from app.settings import settings

logger = logging.getLogger("birthday_mailer")


class Notifier(Protocol):
    def send(
        self,
        friend_name: str,
        birthday: dt.date,
        days_until: int,
        recipient_name: str,
        recipient_email: str,
        locale: str = "en",
    ) -> bool: ...


def build_subject(friend_name: str, days_until: int, locale: str = "en") -> str:
    if days_until == 0:
        return t("email.subject_today", locale, friend=friend_name)
    return t_count("email.subject_in_days", days_until, locale, friend=friend_name)


def _heading(friend_name: str, days_until: int, locale: str) -> str:
    if days_until == 0:
        return t("email.heading_today", locale, friend=friend_name)
    return t_count("email.heading_in_days", days_until, locale, friend=friend_name)


def _format_birthday(birthday: dt.date, locale: str) -> str:
    return t(
        "email.date_format",
        locale,
        weekday=birthday.strftime("%A"),
        month_name=birthday.strftime("%B"),
        day=birthday.day,
        month=birthday.month,
        year=birthday.year,
    )


def build_text_body(
    friend_name: str,
    birthday: dt.date,
    days_until: int,
    recipient_name: str,
    locale: str = "en",
) -> str:
    lines = [
        t("email.greeting", locale, recipient=recipient_name),
        "",
        _heading(friend_name, days_until, locale),
        t("email.birthday_line", locale, date=_format_birthday(birthday, locale)),
        t("email.nudge", locale, friend=friend_name),
        "",
        t("email.footer", locale),
    ]
    return "\n".join(lines)


def build_html_body(
    friend_name: str,
    birthday: dt.date,
    days_until: int,
    recipient_name: str,
    locale: str = "en",
) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #333; text-align: center;">{html.escape(t("email.title", locale))}</h1>
      <p>{html.escape(t("email.greeting", locale, recipient=recipient_name))}</p>
      <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h2 style="color: #2c3e50; margin-top: 0;">{html.escape(_heading(friend_name, days_until, locale))}</h2>
        <p style="font-size: 16px; color: #555;">
          {html.escape(t("email.birthday_line", locale, date=_format_birthday(birthday, locale)))}
        </p>
        <p style="font-size: 16px; color: #555;">{html.escape(t("email.nudge", locale, friend=friend_name))}</p>
      </div>
      <p style="color: #777; font-size: 14px; text-align: center;">{html.escape(t("email.footer", locale))}</p>
    </div>
    """


class SmtpNotifier:
    """Sends reminder emails over SMTP.

    Transport problems are logged and reported as ``False`` so callers can
    treat every failure the same way.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        from_email: str | None = None,
        starttls: bool | None = None,
        timeout: int | None = None,
        locale: str = "en",
    ) -> None:
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.from_email = from_email or settings.SMTP_FROM or self.username
        self.starttls = settings.SMTP_STARTTLS if starttls is None else starttls
        self.timeout = timeout or settings.SMTP_TIMEOUT_SEC
        self.locale = locale

    def _connect(self) -> smtplib.SMTP:
        if not self.host:
            raise RuntimeError("SMTP_HOST is not configured")
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.starttls:
            server.starttls()
        if self.username and self.password:
            server.login(self.username, self.password)
        return server

    def build_message(
        self,
        friend_name: str,
        birthday: dt.date,
        days_until: int,
        recipient_name: str,
        recipient_email: str,
        locale: str | None = None,
    ) -> MIMEMultipart:
        locale = locale or self.locale
        msg = MIMEMultipart("alternative")
        msg["Subject"] = build_subject(friend_name, days_until, locale)
        msg["From"] = self.from_email or ""
        msg["To"] = recipient_email
        msg.attach(MIMEText(build_text_body(friend_name, birthday, days_until, recipient_name, locale), "plain"))
        msg.attach(MIMEText(build_html_body(friend_name, birthday, days_until, recipient_name, locale), "html"))
        return msg

    def send(
        self,
        friend_name: str,
        birthday: dt.date,
        days_until: int,
        recipient_name: str,
        recipient_email: str,
        locale: str | None = None,
    ) -> bool:
        try:
            msg = self.build_message(friend_name, birthday, days_until, recipient_name, recipient_email, locale)
            with self._connect() as server:
                server.sendmail(msg["From"], [recipient_email], msg.as_string())
        except (smtplib.SMTPException, OSError, RuntimeError) as exc:
            logger.error("Error sending reminder email to %s: %s", recipient_email, exc)
            return False
        logger.info("Reminder email sent to %s", recipient_email)
        return True

    def check_connection(self) -> bool:
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError, RuntimeError) as exc:
            logger.error("SMTP connection check failed: %s", exc)
            return False
        return True

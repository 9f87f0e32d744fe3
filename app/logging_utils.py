from __future__ import annotations

import logging
import re

from app.settings import settings


_TOKEN_PATTERNS = [
    re.compile(r"(Authorization:\s*Bearer\s+)(\S+)", re.IGNORECASE),
    re.compile(r"(X-User-Key:\s*)(\S+)", re.IGNORECASE),
    re.compile(r"(smtp_password[:=]\s*)(\S+)", re.IGNORECASE),
    re.compile(r"(webhook_secret[:=]\s*)(\S+)", re.IGNORECASE),
    re.compile(r"\b(br_)([A-Za-z0-9_\-]{8,})"),
]

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def redact_text(text: str) -> str:
    redacted = text
    for pattern in _TOKEN_PATTERNS:
        redacted = pattern.sub(r"\1<redacted>", redacted)
    return redacted


class RedactFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_text(record.msg)

        args = record.args
        if isinstance(args, tuple):
            record.args = tuple(
                redact_text(arg) if isinstance(arg, str) else arg for arg in args
            )
        elif isinstance(args, dict):
            record.args = {
                key: redact_text(value) if isinstance(value, str) else value
                for key, value in args.items()
            }
        return True


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=_LOG_FORMAT)
    root = logging.getLogger()
    for handler in root.handlers:
        if not any(isinstance(f, RedactFilter) for f in handler.filters):
            handler.addFilter(RedactFilter())

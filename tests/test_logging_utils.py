import logging

from app.logging_utils import RedactFilter, redact_text


def test_redact_tokens():
    text = "Authorization: Bearer abc123 X-User-Key: br_secretvalue123 smtp_password=hunter2"
    redacted = redact_text(text)
    assert "abc123" not in redacted
    assert "secretvalue123" not in redacted
    assert "hunter2" not in redacted
    assert "<redacted>" in redacted


def test_filter_redacts_args():
    record = logging.LogRecord(
        "birthday_api", logging.INFO, __file__, 1, "key %s", ("br_abcdefghijkl",), None
    )
    assert RedactFilter().filter(record)
    assert record.getMessage() == "key br_<redacted>"

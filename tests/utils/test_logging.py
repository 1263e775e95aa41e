import json
import logging

import structlog

from attribution_console.config import LoggingSettings
from attribution_console.utils.logging import (
    JsonFormatter,
    _structlog_scrubber,
    configure_logging,
    scrub,
)


def _record(**extra):
    record = logging.LogRecord("console", logging.INFO, __file__, 1, "processed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_sets_level():
    configure_logging(level="DEBUG")
    assert logging.getLogger().level == logging.DEBUG


def test_json_formatter_scrubs_sensitive_fields():
    formatter = JsonFormatter(scrub_fields=["token"])
    payload = json.loads(
        formatter.format(_record(token="super-secret", user={"id": 7, "token": "abc"}))
    )
    assert payload["message"] == "processed"
    assert payload["token"] == "***"
    assert payload["user"] == {"id": 7, "token": "***"}


def test_scrub_walks_nested_lists():
    fields = frozenset({"password"})
    assert scrub([{"password": "x", "email": "a@b.com"}], fields) == [
        {"password": "***", "email": "a@b.com"}
    ]


def test_structlog_processor_scrubs_event_dict():
    processor = _structlog_scrubber(["Authorization"])
    event = processor(None, "info", {"event": "api.call", "authorization": "Bearer abc"})
    assert event == {"event": "api.call", "authorization": "***"}


def test_configure_logging_applies_settings(capsys):
    configure_logging(settings=LoggingSettings(level="INFO", scrub_fields=["token"]))
    structlog.get_logger("console").info("session.established", token="abc", user_id=7)
    output = capsys.readouterr().out
    line = json.loads(output.strip().splitlines()[-1])
    assert line["event"] == "session.established"
    assert line["token"] == "***"
    assert line["user_id"] == 7

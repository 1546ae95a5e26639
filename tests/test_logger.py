import json
import logging

from pubsub_subscriptions.logging import StructuredLogger
from pubsub_subscriptions.logging.logger import CloudLoggingJSONFormatter


def _record(message, level=logging.INFO):
    return logging.LogRecord("pubsub_subscriptions.test", level, __file__, 1, message, None, None)


def test_structured_message_becomes_json_line():
    formatter = CloudLoggingJSONFormatter(fmt="%(levelname)s %(message)s")
    structured = StructuredLogger(logging.getLogger("x"))._format_structured_message(
        "Created topic", topic="example-topic"
    )

    entry = json.loads(formatter.format(_record(structured)))

    assert entry["message"] == "Created topic"
    assert entry["topic"] == "example-topic"
    assert entry["severity"] == "INFO"
    assert entry["service"] == "pubsub_subscriptions.test"


def test_plain_message_uses_text_format():
    formatter = CloudLoggingJSONFormatter(fmt="%(levelname)s %(message)s")
    assert formatter.format(_record("Run completed")) == "INFO Run completed"


def test_structured_logger_without_fields_keeps_plain_text():
    structured = StructuredLogger(logging.getLogger("x"))
    assert structured._format_structured_message("hello", topic=None) == "hello"

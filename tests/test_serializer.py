"""Tests for wire serialization of outgoing messages."""

import json

from slack_log_sink.config import SinkConfig
from slack_log_sink.formatter import format_message
from slack_log_sink.models.log_record import ExceptionInfo, LogLevel
from slack_log_sink.serializer import serialize_message


def test_primary_only_wire_shape(make_record, sink_config):
    """Top-level keys and attachment keys appear in wire order; no optional keys leak."""
    payload = json.loads(serialize_message(format_message(make_record(), sink_config)))

    assert list(payload) == ["text", "channel", "username", "icon_emoji", "attachments"]
    assert list(payload["attachments"][0]) == ["fallback", "color", "fields"]
    assert payload["attachments"][0]["fields"][0] == {"title": "Level", "value": "Information"}


def test_exception_attachment_wire_shape(make_record, sink_config):
    record = make_record(
        level=LogLevel.ERROR,
        exception=ExceptionInfo(message="boom", type_name="KeyError", stack_trace="trace"),
    )

    payload = json.loads(serialize_message(format_message(record, sink_config)))
    exc = payload["attachments"][1]

    assert list(exc) == ["title", "fallback", "color", "fields", "mrkdwn_in"]
    assert exc["mrkdwn_in"] == ["fields"]
    assert exc["fields"][2] == {"title": "Stack Trace", "value": "```trace```", "short": False}
    assert "short" not in exc["fields"][0]


def test_serialization_is_deterministic(make_record):
    """Formatting and serializing the same record twice gives identical bytes."""
    config = SinkConfig(
        webhook_url="https://hooks.slack.com/services/T/B/X",
        channel="#ops",
        properties=["user"],
        tidy_stack_traces=True,
    )
    record = make_record(
        properties={"user": "ada"},
        exception=ExceptionInfo(message="m", type_name="T", stack_trace="a\nb"),
    )

    first = serialize_message(format_message(record, config))
    second = serialize_message(format_message(record, config))

    assert first.encode("utf-8") == second.encode("utf-8")


def test_non_ascii_text_is_kept(make_record, sink_config):
    body = serialize_message(format_message(make_record(message="Zahlung fehlgeschlagen: 5 €"), sink_config))

    assert "5 €" in body
    assert json.loads(body)["text"] == "Zahlung fehlgeschlagen: 5 €"

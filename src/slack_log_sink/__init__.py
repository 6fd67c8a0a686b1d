"""Ship log records to a Slack incoming webhook in size/time bounded batches."""

from slack_log_sink.config import Settings, SinkConfig, get_settings
from slack_log_sink.dispatcher import DeliveryStats, SlackDispatcher
from slack_log_sink.errors import ConfigurationError, DeliveryError, SlackSinkError
from slack_log_sink.formatter import format_message, tidy_stack_trace
from slack_log_sink.handler import SlackHandler, add_slack_handler, install_from_settings
from slack_log_sink.models import ExceptionInfo, LogLevel, LogRecord, OutgoingMessage
from slack_log_sink.serializer import serialize_message

__all__ = [
    "ConfigurationError",
    "DeliveryError",
    "DeliveryStats",
    "ExceptionInfo",
    "LogLevel",
    "LogRecord",
    "OutgoingMessage",
    "Settings",
    "SinkConfig",
    "SlackDispatcher",
    "SlackHandler",
    "SlackSinkError",
    "add_slack_handler",
    "format_message",
    "get_settings",
    "install_from_settings",
    "serialize_message",
    "tidy_stack_trace",
]

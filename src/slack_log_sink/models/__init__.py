"""Data models for log records and outgoing webhook payloads."""

from slack_log_sink.models.log_record import ExceptionInfo, LogLevel, LogRecord
from slack_log_sink.models.slack import Attachment, AttachmentField, OutgoingMessage

__all__ = [
    "Attachment",
    "AttachmentField",
    "ExceptionInfo",
    "LogLevel",
    "LogRecord",
    "OutgoingMessage",
]

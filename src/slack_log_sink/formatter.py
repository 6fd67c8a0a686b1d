"""Render a LogRecord into the webhook message payload.

Pure functions: no I/O and no shared state, so the same record and config
always produce the same message.
"""

from slack_log_sink.config import SinkConfig
from slack_log_sink.models.log_record import ExceptionInfo, LogLevel, LogRecord
from slack_log_sink.models.slack import Attachment, AttachmentField, OutgoingMessage

LEVEL_COLORS: dict[LogLevel, str] = {
    LogLevel.VERBOSE: "#777",
    LogLevel.DEBUG: "#777",
    LogLevel.INFORMATION: "#5bc0de",
    LogLevel.WARNING: "#f0ad4e",
    LogLevel.ERROR: "#d9534f",
    LogLevel.FATAL: "#d9534f",
}

# Frames from compiler-generated async state machines
ASYNC_FRAME_PREFIX = "at System.Runtime.CompilerServices."
ASYNC_MARKER = " -- (async)\r"


def format_message(record: LogRecord, config: SinkConfig) -> OutgoingMessage:
    """Build the outgoing message for one record.

    Unset channel, username and icon are sent as empty strings rather than omitted.
    """
    attachments = [_primary_attachment(record, config.properties)]
    if record.exception is not None:
        attachments.append(_exception_attachment(record.exception, config.tidy_stack_traces))

    return OutgoingMessage(
        text=record.message,
        channel=_or_empty(config.channel),
        username=_or_empty(config.username),
        icon_emoji=_or_empty(config.icon),
        attachments=attachments,
    )


def tidy_stack_trace(stack_trace: str) -> str:
    """Collapse runs of async-machinery frames into a single marker line.

    The marker is placed before the next surviving line; a run at the very end
    of the trace leaves no marker behind.
    """
    kept: list[str] = []
    last_was_async = False

    for line in stack_trace.split("\n"):
        if line.lstrip().startswith(ASYNC_FRAME_PREFIX):
            last_was_async = True
            continue
        if last_was_async:
            kept.append(ASYNC_MARKER)
        kept.append(line)
        last_was_async = False

    return "\n".join(kept)


def _primary_attachment(record: LogRecord, properties: tuple[str, ...]) -> Attachment:
    level = str(record.level)
    fields = [
        AttachmentField(title="Level", value=level),
        AttachmentField(title="Timestamp", value=str(record.timestamp)),
    ]

    # Names missing from this record are skipped, not an error
    for name in properties:
        if name in record.properties:
            fields.append(AttachmentField(title=name, value=str(record.properties[name])))

    return Attachment(
        fallback=f"[{level}]{record.message}",
        color=LEVEL_COLORS[record.level],
        fields=fields,
    )


def _exception_attachment(exception: ExceptionInfo, tidy: bool) -> Attachment:
    stack_trace = tidy_stack_trace(exception.stack_trace) if tidy else exception.stack_trace

    return Attachment(
        title="Exception",
        fallback=f"Exception: {exception.message} \n {stack_trace}",
        color=LEVEL_COLORS[LogLevel.FATAL],
        fields=[
            AttachmentField(title="Message", value=exception.message),
            AttachmentField(title="Type", value=f"`{exception.type_name}`"),
            AttachmentField(title="Stack Trace", value=f"```{stack_trace}```", short=False),
        ],
        mrkdwn_in=["fields"],
    )


def _or_empty(value: str | None) -> str:
    return value if value and value.strip() else ""

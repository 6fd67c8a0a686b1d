"""stdlib ``logging`` integration: a Handler that feeds the batching dispatcher.

Usage:
    import logging
    from slack_log_sink import add_slack_handler

    add_slack_handler(logging.getLogger(), "https://hooks.slack.com/services/...",
                      channel="#alerts", properties=["request_id"])
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

import httpx

from slack_log_sink.config import Settings, SinkConfig, ensure_webhook_url, get_settings
from slack_log_sink.dispatcher import DEFAULT_BATCH_SIZE, DEFAULT_FLUSH_INTERVAL, SlackDispatcher
from slack_log_sink.logging_config import configure_logging
from slack_log_sink.models.log_record import ExceptionInfo, LogLevel, LogRecord

# Loggers whose records must never be shipped: the sink's own diagnostics and the
# HTTP stack it posts through would otherwise feed back into the buffer.
_INTERNAL_LOGGERS = ("slack_log_sink", "httpx", "httpcore")

# Attributes every logging.LogRecord carries; anything else came in via ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class SlackHandler(logging.Handler):
    """Logging handler that ships records to an incoming webhook in the background."""

    def __init__(
        self,
        config: SinkConfig,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        queue_limit: int | None = None,
        client: httpx.Client | None = None,
    ):
        super().__init__(level=config.minimum_level.to_logging_level())
        self.config = config
        self.dispatcher = SlackDispatcher(
            config,
            batch_size=batch_size,
            flush_interval=flush_interval,
            queue_limit=queue_limit,
            client=client,
        )

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.split(".", 1)[0] in _INTERNAL_LOGGERS:
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.dispatcher.emit(to_log_record(record))
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self.dispatcher.flush()

    def close(self) -> None:
        try:
            self.dispatcher.shutdown()
        finally:
            super().close()


def to_log_record(record: logging.LogRecord) -> LogRecord:
    """Convert a stdlib LogRecord into the sink's LogRecord.

    Properties come from attributes added through ``extra``; the exception from
    ``exc_info`` when present.
    """
    properties = {
        key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS
    }

    exception = None
    if record.exc_info and record.exc_info[1] is not None:
        exception = ExceptionInfo.from_exception(record.exc_info[1])

    return LogRecord(
        level=LogLevel.from_logging_level(record.levelno),
        message=record.getMessage(),
        timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
        properties=properties,
        exception=exception,
    )


def add_slack_handler(
    logger: logging.Logger,
    webhook_url: str,
    channel: str | None = None,
    username: str | None = None,
    icon: str | None = None,
    properties: Iterable[str] | None = None,
    tidy_stack_traces: bool = False,
    minimum_level: LogLevel = LogLevel.VERBOSE,
    **dispatcher_options,
) -> SlackHandler:
    """Attach a SlackHandler to ``logger`` and return it.

    Args:
        logger: Logger to attach to, usually the root logger.
        webhook_url: Slack incoming webhook URL. Must not be blank.
        channel: Channel override, e.g. "#alerts". None keeps the webhook default.
        username: Display name override for the posting bot.
        icon: Emoji override such as ":rotating_light:".
        properties: Names of record properties (``extra`` keys) to show as fields.
        tidy_stack_traces: Strip async-machinery frames from exception traces.
        minimum_level: Lowest level that reaches Slack.
        **dispatcher_options: ``batch_size``, ``flush_interval``, ``queue_limit``
            or ``client``, passed through to SlackDispatcher.

    Returns:
        The attached handler. Close it (or call logging.shutdown) to flush.

    Raises:
        ConfigurationError: If the webhook URL is blank. Nothing is attached.
    """
    config = SinkConfig(
        webhook_url=webhook_url,
        channel=channel,
        username=username,
        icon=icon,
        properties=tuple(properties or ()),
        tidy_stack_traces=tidy_stack_traces,
        minimum_level=minimum_level,
    )
    ensure_webhook_url(config)

    handler = SlackHandler(config, **dispatcher_options)
    logger.addHandler(handler)
    return handler


def install_from_settings(settings: Settings | None = None) -> SlackHandler:
    """Configure sink diagnostics and attach a handler built from settings to the root logger.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.

    Raises:
        ConfigurationError: If SLACK_SINK_WEBHOOK_URL is unset or blank.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    config = settings.to_sink_config()
    ensure_webhook_url(config)

    handler = SlackHandler(
        config,
        batch_size=settings.batch_size,
        flush_interval=settings.flush_interval,
        queue_limit=settings.queue_limit,
    )
    logging.getLogger().addHandler(handler)
    return handler

"""Shared test fixtures."""

import threading
from datetime import datetime, timezone

import httpx
import pytest

from slack_log_sink.config import SinkConfig, get_settings
from slack_log_sink.models.log_record import ExceptionInfo, LogLevel, LogRecord
from slack_log_sink.transport import reset_client

WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
TIMESTAMP = datetime(2026, 1, 15, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Ensure clean cached settings and HTTP client for every test."""
    get_settings.cache_clear()
    reset_client()
    yield
    get_settings.cache_clear()
    reset_client()


@pytest.fixture()
def sink_config() -> SinkConfig:
    """A minimal SinkConfig pointing at a fake webhook."""
    return SinkConfig(webhook_url=WEBHOOK_URL)


def _make_record(
    message: str = "Order 42 shipped",
    level: LogLevel = LogLevel.INFORMATION,
    properties: dict | None = None,
    exception: ExceptionInfo | None = None,
) -> LogRecord:
    return LogRecord(
        level=level,
        message=message,
        timestamp=TIMESTAMP,
        properties=properties or {},
        exception=exception,
    )


@pytest.fixture()
def make_record():
    """Factory for LogRecords with a fixed timestamp."""
    return _make_record


class RecordingTransport:
    """httpx transport stub that records request bodies and replies with canned statuses.

    ``statuses`` is consumed one per request; once exhausted every request gets 200.
    A status of None raises ConnectError instead of responding.
    """

    def __init__(self, statuses: list[int | None] | None = None):
        self.statuses = list(statuses or [])
        self.requests: list[httpx.Request] = []
        self.lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self.lock:
            self.requests.append(request)
            status = self.statuses.pop(0) if self.statuses else 200
        if status is None:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status, text="ok" if status == 200 else "invalid_payload")

    @property
    def bodies(self) -> list[str]:
        with self.lock:
            return [r.content.decode("utf-8") for r in self.requests]


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def http_client(transport: RecordingTransport) -> httpx.Client:
    """An httpx.Client wired to the recording transport."""
    client = httpx.Client(transport=httpx.MockTransport(transport))
    yield client
    client.close()

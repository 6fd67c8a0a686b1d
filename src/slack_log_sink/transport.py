"""Webhook transport: shared httpx client singleton and the POST call.

The client holds no per-event state and is shared by every flush. Follows the
lazy-init pattern with a reset hook for tests.
"""

import logging

import httpx

from slack_log_sink.config import get_settings
from slack_log_sink.errors import DeliveryError

logger = logging.getLogger(__name__)

_client: httpx.Client | None = None


def get_http_client() -> httpx.Client:
    """Return the cached outbound HTTP client.

    Creates the client on first call using http_timeout from settings.
    Subsequent calls return the cached instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        _client = httpx.Client(timeout=httpx.Timeout(settings.http_timeout))
    return _client


def reset_client() -> None:
    """Close and drop the cached client. Used for testing."""
    global _client
    if _client is not None:
        _client.close()
    _client = None


def post_message(webhook_url: str, body: str, client: httpx.Client | None = None) -> None:
    """POST a serialized message to the webhook. No retries.

    Args:
        webhook_url: Incoming webhook URL.
        body: JSON payload from serialize_message.
        client: Client to send with. Defaults to the shared client.

    Raises:
        DeliveryError: On transport failures (connect, timeout) and on any
            non-2xx response, carrying the status code when there is one.
    """
    http = client if client is not None else get_http_client()
    try:
        response = http.post(
            webhook_url,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
    except httpx.HTTPError as exc:
        raise DeliveryError(f"webhook request failed: {exc}") from exc

    if not response.is_success:
        raise DeliveryError(
            f"webhook rejected message: HTTP {response.status_code}",
            status_code=response.status_code,
        )
    logger.debug("Webhook accepted message (HTTP %d)", response.status_code)

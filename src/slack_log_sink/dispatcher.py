"""Batching dispatcher: buffers records and ships them from a background thread.

Producers only take a short lock to append. A single daemon thread flushes when
the buffer reaches batch_size or when flush_interval elapses, whichever comes
first, and POSTs each record as its own request. Delivery is best-effort: a
failed POST is logged and dropped, never retried.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from slack_log_sink.config import SinkConfig, ensure_webhook_url
from slack_log_sink.errors import ConfigurationError, DeliveryError
from slack_log_sink.formatter import format_message
from slack_log_sink.models.log_record import LogRecord
from slack_log_sink.serializer import serialize_message
from slack_log_sink.transport import post_message

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_FLUSH_INTERVAL = 5.0


@dataclass(frozen=True)
class DeliveryStats:
    """Point-in-time delivery counters."""

    delivered: int = 0
    failed: int = 0
    dropped: int = 0
    batches: int = 0


class SlackDispatcher:
    """Buffer log records and deliver them to the webhook in size/time bounded batches.

    Args:
        config: Webhook and formatting options. The webhook URL is checked here.
        batch_size: Records per flush. Reaching it wakes the flusher early.
        flush_interval: Seconds the flusher waits between timed flushes.
        queue_limit: Maximum buffered records. Beyond it new records are dropped.
            None leaves the buffer unbounded.
        client: httpx client for the POSTs. Defaults to the shared client.

    Raises:
        ConfigurationError: On a blank webhook URL or inconsistent batch options,
            before the flusher thread starts.
    """

    def __init__(
        self,
        config: SinkConfig,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        queue_limit: int | None = None,
        client: httpx.Client | None = None,
    ):
        ensure_webhook_url(config)
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1, got {batch_size}")
        if flush_interval <= 0:
            raise ConfigurationError(f"flush_interval must be positive, got {flush_interval}")
        if queue_limit is not None and queue_limit < batch_size:
            raise ConfigurationError(
                f"queue_limit ({queue_limit}) must not be smaller than batch_size ({batch_size})"
            )

        self._config = config
        self._batch_size = batch_size
        self._flush_interval = flush_interval
        self._queue_limit = queue_limit
        self._client = client

        self._buffer: list[LogRecord] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._wake = threading.Event()
        self._stopping = threading.Event()
        self._closed = False
        self._finalized = False

        self._delivered = 0
        self._failed = 0
        self._dropped = 0
        self._batches = 0

        self._thread = threading.Thread(
            target=self._run, name="slack-log-sink-flusher", daemon=True
        )
        self._thread.start()

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def emit(self, record: LogRecord) -> None:
        """Enqueue a record for delivery. Never blocks on the network."""
        with self._lock:
            if self._closed:
                return
            if self._queue_limit is not None and len(self._buffer) >= self._queue_limit:
                self._dropped += 1
                return
            self._buffer.append(record)
            full = len(self._buffer) >= self._batch_size

        if full:
            self._wake.set()

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def flush(self, timeout: float | None = None) -> None:
        """Deliver everything currently buffered, in batches of at most batch_size.

        Args:
            timeout: Seconds to keep delivering. None means until the buffer is
                empty. Records still buffered when it elapses are discarded and
                counted as dropped.
        """
        if timeout is None:
            with self._flush_lock:
                self._drain(lambda: False)
            return

        deadline = time.monotonic() + timeout
        if self._flush_lock.acquire(timeout=timeout):
            try:
                self._drain(lambda: time.monotonic() >= deadline)
            finally:
                self._flush_lock.release()
        if time.monotonic() >= deadline:
            self._discard_pending()

    def emit_batch(
        self,
        records: list[LogRecord],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LogRecord]:
        """Format, serialize and POST each record in order.

        A failure on one record does not stop the others.

        Args:
            records: Records to deliver, oldest first.
            should_stop: Checked before each POST. Once it returns True the
                remaining records are left undelivered.

        Returns:
            The records that were not attempted, in order.
        """
        delivered = 0
        failed = 0
        unsent: list[LogRecord] = []
        for index, record in enumerate(records):
            if should_stop is not None and should_stop():
                unsent = records[index:]
                break
            try:
                body = serialize_message(format_message(record, self._config))
                post_message(self._config.webhook_url, body, client=self._client)
                delivered += 1
            except DeliveryError as exc:
                failed += 1
                logger.warning(
                    "Dropped %s event after failed delivery: %s",
                    record.level,
                    exc,
                    extra={"status_code": exc.status_code},
                )
            except Exception:
                failed += 1
                logger.exception("Unexpected error delivering %s event", record.level)

        with self._lock:
            self._delivered += delivered
            self._failed += failed
            self._batches += 1

        logger.debug(
            "Flushed batch of %d events (%d delivered, %d failed, %d deferred)",
            len(records),
            delivered,
            failed,
            len(unsent),
        )
        return unsent

    def shutdown(self, timeout: float | None = 10.0) -> None:
        """Stop the flusher thread and deliver whatever is still buffered.

        Safe to call more than once; later calls do nothing.

        Args:
            timeout: Upper bound in seconds for the whole shutdown, covering the
                flusher join and the final flush. Records not delivered in time
                are dropped. None waits until everything has been attempted.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        started = time.monotonic()
        self._stopping.set()
        self._wake.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Flusher thread did not stop within %.1fs", timeout)

        with self._lock:
            self._finalized = True

        remaining = None if timeout is None else max(0.0, timeout - (time.monotonic() - started))
        self.flush(timeout=remaining)

        stats = self.stats
        logger.info(
            "Slack sink stopped",
            extra={
                "delivered": stats.delivered,
                "failed": stats.failed,
                "dropped": stats.dropped,
                "batches": stats.batches,
            },
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def pending_count(self) -> int:
        """Number of records waiting in the buffer."""
        with self._lock:
            return len(self._buffer)

    @property
    def stats(self) -> DeliveryStats:
        with self._lock:
            return DeliveryStats(
                delivered=self._delivered,
                failed=self._failed,
                dropped=self._dropped,
                batches=self._batches,
            )

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def flush_interval(self) -> float:
        return self._flush_interval

    def __enter__(self) -> "SlackDispatcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _take_batch(self) -> list[LogRecord]:
        with self._lock:
            batch = self._buffer[: self._batch_size]
            del self._buffer[: self._batch_size]
        return batch

    def _drain(self, should_stop: Callable[[], bool]) -> None:
        """Deliver batches until the buffer is empty or should_stop() is True.

        Caller must hold the flush lock.
        """
        while not should_stop():
            batch = self._take_batch()
            if not batch:
                return
            unsent = self.emit_batch(batch, should_stop)
            if unsent:
                self._requeue(unsent)
                return

    def _requeue(self, records: list[LogRecord]) -> None:
        """Put undelivered records back at the head of the buffer, or drop them once closed."""
        with self._lock:
            if self._finalized:
                self._dropped += len(records)
                return
            self._buffer[:0] = records

    def _discard_pending(self) -> None:
        with self._lock:
            count = len(self._buffer)
            self._buffer.clear()
            self._dropped += count
        if count:
            logger.warning("Flush deadline reached; dropped %d undelivered events", count)

    def _run(self) -> None:
        """Flusher loop: wake on a full buffer or after flush_interval."""
        while not self._stopping.is_set():
            self._wake.wait(timeout=self._flush_interval)
            self._wake.clear()
            if self._stopping.is_set():
                break
            try:
                with self._flush_lock:
                    self._drain(self._stopping.is_set)
            except Exception:
                logger.exception("Flush failed; continuing")

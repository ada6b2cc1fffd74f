"""Blocking hand-off of deployment events between two threads.

A single producer (the polling thread) puts events, a single consumer (the
reconciliation loop) iterates over them. Closing the stream is how the
consumer cancels the producer.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator

from deploysync.models.deployment import DeploymentEvent

# Granularity at which blocked puts and gets notice a close.
DEFAULT_POLL_TIMEOUT = 0.1


class EventStream:
    """Iterable, closable channel of deployment events.

    With the default ``maxsize`` of 1 the producer blocks as soon as a single
    event is waiting, so polling runs at the pace of reconciliation.

    Iteration yields buffered events and ends once the stream is closed and
    drained. If the producer failed, the failure is raised to the consumer
    after the buffer is drained.
    """

    def __init__(
        self, maxsize: int = 1, poll_timeout: float = DEFAULT_POLL_TIMEOUT
    ) -> None:
        """Create an open stream.

        Args:
            maxsize: Buffered events before ``put`` blocks; 0 means unbounded
            poll_timeout: Seconds between close checks while blocked
        """
        self._queue: queue.Queue[DeploymentEvent] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._error: BaseException | None = None
        self._poll_timeout = poll_timeout
        self._producer: threading.Thread | None = None

    @property
    def closed(self) -> bool:
        """Return True once the stream was closed."""
        return self._closed.is_set()

    def attach(self, producer: threading.Thread) -> None:
        """Record the thread feeding this stream so callers can join it."""
        self._producer = producer

    def put(self, event: DeploymentEvent) -> bool:
        """Hand an event to the consumer, blocking while the buffer is full.

        Returns:
            True if the event was queued, False if the stream was closed first.
        """
        while not self._closed.is_set():
            try:
                self._queue.put(event, timeout=self._poll_timeout)
                return True
            except queue.Full:
                continue
        return False

    def wait_closed(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if the stream closed."""
        return self._closed.wait(timeout)

    def close(self) -> None:
        """Stop the producer and end iteration after the buffer drains."""
        self._closed.set()

    def fail(self, error: BaseException) -> None:
        """Close the stream and surface ``error`` to the consumer."""
        self._error = error
        self._closed.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the producer thread to exit, if one is attached."""
        if self._producer is not None and self._producer.is_alive():
            self._producer.join(timeout)

    def __iter__(self) -> Iterator[DeploymentEvent]:
        return self

    def __next__(self) -> DeploymentEvent:
        while True:
            try:
                return self._queue.get(timeout=self._poll_timeout)
            except queue.Empty:
                if not self._closed.is_set():
                    continue
                if self._error is not None:
                    raise self._error
                raise StopIteration from None

    def __enter__(self) -> EventStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

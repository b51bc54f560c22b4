"""
In-process publish/subscribe over a bounded queue.

Publishers block while the queue is full until space frees up or the shared
cancellation event fires. A subscriber runs one consumer thread that hands each
message to its handler; on cancellation the consumer exits and closes the
queue, after which further publishes fail fast.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.errors import ConfigurationError, PublishCancelledError, QueueClosedError

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 10

_POLL_S = 0.05

Handler = Callable[[bytes], Any]


def new_queue(size: int = DEFAULT_QUEUE_SIZE) -> "queue.Queue[bytes]":
    if size <= 0:
        raise ConfigurationError("pubsub: queue size must be positive")
    return queue.Queue(maxsize=size)


@dataclass
class PubSubConfig:
    topic: str
    queue: Optional["queue.Queue[bytes]"]
    cancel_event: Optional[threading.Event]
    handler: Optional[Handler] = None

    def validate(self) -> None:
        if self.cancel_event is None:
            raise ConfigurationError("pubsub: cancel_event cannot be None")
        if not self.topic:
            raise ConfigurationError("pubsub: topic cannot be empty")
        if self.queue is None:
            raise ConfigurationError("pubsub: queue cannot be None")


class PubSub:
    """Bounded single-topic message pipe. The topic is only used in logs."""

    def __init__(self, config: PubSubConfig) -> None:
        config.validate()
        self._config = config
        self._queue = config.queue
        self._closed = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def topic(self) -> str:
        return self._config.topic

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    def publish(self, payload: bytes) -> None:
        """
        Enqueue one message, blocking while the queue is full.

        Raises PublishCancelledError if the cancellation event fires first and
        QueueClosedError if the consumer already shut the queue.
        """
        cancel = self._config.cancel_event
        while True:
            if self._closed.is_set():
                raise QueueClosedError(f"pubsub {self.topic}: queue is closed")
            if cancel.is_set():
                raise PublishCancelledError(f"pubsub {self.topic}: publish cancelled")
            try:
                self._queue.put(payload, timeout=_POLL_S)
                return
            except queue.Full:
                continue

    def subscribe(self, handler: Optional[Handler] = None) -> None:
        """Start the consumer thread. `handler` overrides the configured one."""
        handler = handler or self._config.handler
        if handler is None:
            raise ConfigurationError("pubsub: handler cannot be None")
        if self._thread is not None:
            raise ConfigurationError(f"pubsub {self.topic}: already subscribed")
        self._thread = threading.Thread(
            target=self._consume, args=(handler,), name=f"pubsub-{self.topic}", daemon=True
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _consume(self, handler: Handler) -> None:
        cancel = self._config.cancel_event
        try:
            while not cancel.is_set():
                try:
                    msg = self._queue.get(timeout=_POLL_S)
                except queue.Empty:
                    if self._closed.is_set():
                        return
                    continue
                try:
                    handler(msg)
                except Exception:
                    logger.exception("pubsub handler error (topic=%s)", self.topic)
        finally:
            self._closed.set()

"""Concurrency primitives: caches, scheduler, publish/subscribe."""

from __future__ import annotations

from .cache import LiveCache, ReadWriteLock, TTLCache
from .pubsub import PubSub, PubSubConfig, new_queue
from .scheduler import INTERVAL_DAILY, INTERVAL_MINUTE, Scheduler, SchedulerConfig

__all__ = [
    "LiveCache",
    "ReadWriteLock",
    "TTLCache",
    "PubSub",
    "PubSubConfig",
    "new_queue",
    "Scheduler",
    "SchedulerConfig",
    "INTERVAL_MINUTE",
    "INTERVAL_DAILY",
]

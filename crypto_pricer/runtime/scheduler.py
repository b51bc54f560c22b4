"""
Periodic job runner.

A Scheduler owns one daemon thread that calls its handler every `interval`
seconds until the shared cancellation event is set or stop() is called.
Handler errors are logged and never end the loop. Ticks that would have fired
while the handler was still running are dropped, not queued.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from ..core.errors import ConfigurationError, SchedulerError

logger = logging.getLogger(__name__)

INTERVAL_MINUTE = 60.0
INTERVAL_DAILY = 24 * 60 * 60.0

# Upper bound on how long stop() can go unnoticed by the worker thread.
_POLL_S = 0.05


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_target_time(now: datetime, target_hour: int) -> datetime:
    """Next UTC datetime at target_hour:00 strictly after `now`."""
    candidate = now.replace(hour=target_hour, minute=0, second=0, microsecond=0)
    if now >= candidate:
        candidate += timedelta(days=1)
    return candidate


@dataclass
class SchedulerConfig:
    """
    interval:      seconds between ticks (> 0)
    handler:       zero-argument callable run on every tick
    cancel_event:  shared cancellation token
    initial_delay: fire once after this many seconds, then tick every interval
    target_hour:   fire once a day at this UTC hour (0-23) instead of ticking
    """

    interval: float
    handler: Optional[Callable[[], Any]]
    cancel_event: Optional[threading.Event]
    initial_delay: Optional[float] = None
    target_hour: Optional[int] = None
    name: str = "scheduler"

    def validate(self) -> None:
        if self.cancel_event is None:
            raise ConfigurationError("scheduler: cancel_event cannot be None")
        if self.interval is None or self.interval <= 0:
            raise ConfigurationError("scheduler: interval must be positive")
        if self.handler is None or not callable(self.handler):
            raise ConfigurationError("scheduler: handler cannot be None")
        if self.initial_delay is not None and self.initial_delay < 0:
            raise ConfigurationError("scheduler: initial_delay cannot be negative")
        if self.target_hour is not None and not 0 <= self.target_hour <= 23:
            raise ConfigurationError("scheduler: target_hour must be within 0-23")


class Scheduler:
    """Run a handler on a fixed interval (or daily at a target hour) in a background thread."""

    def __init__(
        self,
        config: SchedulerConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
        utc_now: Callable[[], datetime] = _utc_now,
    ) -> None:
        config.validate()
        self._config = config
        self._clock = clock
        self._utc_now = utc_now
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._ticks = 0

    @property
    def interval(self) -> float:
        return self._config.interval

    @property
    def ticks(self) -> int:
        """Number of handler invocations so far."""
        return self._ticks

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise SchedulerError(f"{self._config.name}: already started")
        if self._config.target_hour is not None:
            target = self._run_at_target_hour
        else:
            target = self._run_at_interval
        self._thread = threading.Thread(target=target, name=self._config.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop ticking. An in-flight handler is allowed to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _cancelled(self) -> bool:
        return self._stop_event.is_set() or self._config.cancel_event.is_set()

    def _sleep(self, seconds: float) -> bool:
        """Wait up to `seconds`; False if cancelled or stopped meanwhile."""
        deadline = self._clock() + seconds
        while not self._cancelled():
            remaining = deadline - self._clock()
            if remaining <= 0:
                return True
            self._config.cancel_event.wait(min(remaining, _POLL_S))
        return False

    def _fire(self) -> None:
        self._ticks += 1
        try:
            self._config.handler()
        except Exception:
            logger.exception(
                "%s: handler error (interval=%ss)", self._config.name, self._config.interval
            )

    def _run_at_interval(self) -> None:
        cfg = self._config
        if cfg.initial_delay:
            logger.info(
                "%s started with initial delay %ss, interval %ss",
                cfg.name, cfg.initial_delay, cfg.interval,
            )
        started = self._clock()
        next_fire = started + cfg.interval

        if cfg.initial_delay:
            if not self._sleep(cfg.initial_delay):
                return
            logger.info("%s: initial tick firing", cfg.name)
            self._fire()

        while True:
            now = self._clock()
            if now >= next_fire:
                # Skip every boundary missed while the handler ran.
                missed = int((now - next_fire) // cfg.interval) + 1
                next_fire += missed * cfg.interval
                continue
            if not self._sleep(next_fire - now):
                return
            next_fire += cfg.interval
            self._fire()

    def _run_at_target_hour(self) -> None:
        cfg = self._config
        while True:
            now = self._utc_now()
            target = next_target_time(now, cfg.target_hour)
            delay = (target - now).total_seconds()
            logger.info("%s waiting for target hour %s (%.0fs)", cfg.name, target.isoformat(), delay)
            if not self._sleep(delay):
                return
            logger.info("%s firing at target hour", cfg.name)
            self._fire()

"""Scheduler: tick counts, cancellation, dropped ticks, initial delay, target hour."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone

import pytest

from crypto_pricer.core.errors import ConfigurationError, SchedulerError
from crypto_pricer.runtime.scheduler import Scheduler, SchedulerConfig, next_target_time


def _counter():
    count = {"n": 0}

    def handler() -> None:
        count["n"] += 1

    return count, handler


class TestValidation:
    def test_missing_cancel_event(self):
        with pytest.raises(ConfigurationError, match="cancel_event"):
            Scheduler(SchedulerConfig(interval=1, handler=lambda: None, cancel_event=None))

    def test_non_positive_interval(self):
        with pytest.raises(ConfigurationError, match="interval"):
            Scheduler(SchedulerConfig(interval=0, handler=lambda: None, cancel_event=threading.Event()))

    def test_missing_handler(self):
        with pytest.raises(ConfigurationError, match="handler"):
            Scheduler(SchedulerConfig(interval=1, handler=None, cancel_event=threading.Event()))

    def test_target_hour_range(self):
        with pytest.raises(ConfigurationError, match="target_hour"):
            Scheduler(
                SchedulerConfig(
                    interval=1, handler=lambda: None, cancel_event=threading.Event(), target_hour=24
                )
            )


class TestTicking:
    def test_ticks_once_per_interval(self):
        # 10 interval boundaries fall inside the window.
        cancel = threading.Event()
        count, handler = _counter()
        sched = Scheduler(SchedulerConfig(interval=0.05, handler=handler, cancel_event=cancel))
        sched.start()
        time.sleep(0.525)
        cancel.set()
        sched.stop(timeout=1)
        assert 9 <= count["n"] <= 11
        assert sched.ticks == count["n"]

    def test_no_immediate_tick(self):
        cancel = threading.Event()
        count, handler = _counter()
        sched = Scheduler(SchedulerConfig(interval=5, handler=handler, cancel_event=cancel))
        sched.start()
        time.sleep(0.1)
        cancel.set()
        sched.stop(timeout=1)
        assert count["n"] == 0

    def test_stops_on_cancel(self):
        cancel = threading.Event()
        count, handler = _counter()
        sched = Scheduler(SchedulerConfig(interval=0.01, handler=handler, cancel_event=cancel))
        sched.start()
        time.sleep(0.05)
        cancel.set()
        sched.stop(timeout=1)
        at_cancel = count["n"]
        time.sleep(0.05)
        assert count["n"] == at_cancel
        assert not sched.running

    def test_handler_errors_do_not_stop_loop(self, caplog):
        cancel = threading.Event()
        calls = {"n": 0}

        def handler() -> None:
            calls["n"] += 1
            raise RuntimeError("boom")

        sched = Scheduler(SchedulerConfig(interval=0.01, handler=handler, cancel_event=cancel))
        with caplog.at_level("ERROR", logger="crypto_pricer.runtime.scheduler"):
            sched.start()
            time.sleep(0.1)
            cancel.set()
            sched.stop(timeout=1)
        assert calls["n"] >= 2
        assert "handler error" in caplog.text

    def test_overrun_ticks_are_dropped(self):
        cancel = threading.Event()
        count = {"n": 0}

        def slow() -> None:
            count["n"] += 1
            time.sleep(0.25)

        sched = Scheduler(SchedulerConfig(interval=0.1, handler=slow, cancel_event=cancel))
        sched.start()
        time.sleep(0.55)
        cancel.set()
        sched.stop(timeout=1)
        assert 1 <= count["n"] <= 3

    def test_stop_lets_in_flight_handler_finish(self):
        cancel = threading.Event()
        started, finished = threading.Event(), threading.Event()

        def handler() -> None:
            started.set()
            time.sleep(0.2)
            finished.set()

        sched = Scheduler(SchedulerConfig(interval=0.01, handler=handler, cancel_event=cancel))
        sched.start()
        assert started.wait(1)
        sched.stop(timeout=2)
        assert finished.is_set()
        assert not sched.running

    def test_start_twice(self):
        sched = Scheduler(
            SchedulerConfig(interval=1, handler=lambda: None, cancel_event=threading.Event())
        )
        sched.start()
        try:
            with pytest.raises(SchedulerError):
                sched.start()
        finally:
            sched.stop(timeout=1)


class TestInitialDelay:
    def test_fires_once_after_delay_then_waits_interval(self):
        cancel = threading.Event()
        count, handler = _counter()
        sched = Scheduler(
            SchedulerConfig(interval=10, handler=handler, cancel_event=cancel, initial_delay=0.02)
        )
        sched.start()
        time.sleep(0.2)
        cancel.set()
        sched.stop(timeout=1)
        assert count["n"] == 1


class TestTargetHour:
    def test_next_target_time_same_day(self):
        now = datetime(2026, 3, 1, 1, 30, tzinfo=timezone.utc)
        assert next_target_time(now, 2) == datetime(2026, 3, 1, 2, 0, tzinfo=timezone.utc)

    def test_next_target_time_rolls_over(self):
        now = datetime(2026, 3, 1, 2, 0, tzinfo=timezone.utc)
        assert next_target_time(now, 2) == datetime(2026, 3, 2, 2, 0, tzinfo=timezone.utc)

    def test_fires_at_target_hour(self):
        cancel = threading.Event()
        count, handler = _counter()
        clock = iter(
            [
                datetime(2026, 3, 1, 1, 59, 59, 950000, tzinfo=timezone.utc),
                datetime(2026, 3, 1, 2, 0, 1, tzinfo=timezone.utc),
            ]
        )
        last = datetime(2026, 3, 1, 2, 0, 1, tzinfo=timezone.utc)

        sched = Scheduler(
            SchedulerConfig(interval=1, handler=handler, cancel_event=cancel, target_hour=2),
            utc_now=lambda: next(clock, last),
        )
        sched.start()
        time.sleep(0.3)
        cancel.set()
        sched.stop(timeout=1)
        assert count["n"] == 1

from __future__ import annotations

from datetime import datetime
import threading

import pytest

from dex_indexer.infrastructure.scheduler.periodic_task import PeriodicTask, seconds_until_next_tick


def test_run_once_floors_tick_to_minute():
    seen: list[datetime] = []
    task = PeriodicTask(name="test", interval_seconds=60, job=seen.append)

    assert task.run_once(datetime(2026, 3, 14, 15, 9, 42, 123)) is True
    assert seen == [datetime(2026, 3, 14, 15, 9)]


def test_overlapping_tick_is_skipped():
    started = threading.Event()
    release = threading.Event()
    calls: list[datetime] = []

    def slow_job(tick_at: datetime) -> None:
        calls.append(tick_at)
        started.set()
        release.wait(timeout=5)

    task = PeriodicTask(name="test", interval_seconds=60, job=slow_job)
    worker = threading.Thread(target=task.run_once, args=(datetime(2026, 3, 14, 15, 9),))
    worker.start()
    assert started.wait(timeout=5)

    assert task.is_running is True
    assert task.run_once(datetime(2026, 3, 14, 15, 10)) is False

    release.set()
    worker.join(timeout=5)
    assert len(calls) == 1
    assert task.is_running is False


def test_failing_job_is_logged_and_lock_released(caplog: pytest.LogCaptureFixture):
    def broken_job(_tick_at: datetime) -> None:
        raise RuntimeError("boom")

    task = PeriodicTask(name="test", interval_seconds=60, job=broken_job)

    assert task.run_once(datetime(2026, 3, 14, 15, 9)) is True
    assert task.is_running is False
    assert "run failed" in caplog.text


def test_stop_waits_for_in_flight_run_within_grace():
    release = threading.Event()
    started = threading.Event()

    def job(_tick_at: datetime) -> None:
        started.set()
        release.wait(timeout=5)

    task = PeriodicTask(name="test", interval_seconds=60, job=job)
    worker = threading.Thread(target=task.run_once)
    worker.start()
    assert started.wait(timeout=5)

    assert task.stop(grace_seconds=0.05) is False
    release.set()
    worker.join(timeout=5)
    assert task.stop(grace_seconds=1) is True


def test_seconds_until_next_tick_aligns_to_interval():
    assert seconds_until_next_tick(120.0, 60) == 60.0
    assert seconds_until_next_tick(150.0, 60) == 30.0


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PeriodicTask(name="test", interval_seconds=0, job=lambda _tick: None)

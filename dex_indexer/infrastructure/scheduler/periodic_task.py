from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging
import math
import threading
import time


logger = logging.getLogger(__name__)


def floor_to_minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def seconds_until_next_tick(now: float, interval_seconds: float) -> float:
    """Seconds until the next wall-clock multiple of interval_seconds."""
    next_tick = math.floor(now / interval_seconds) * interval_seconds + interval_seconds
    return max(0.0, next_tick - now)


class PeriodicTask:
    """Runs a job on wall-clock aligned ticks in a background thread.

    Each tick starts the job in its own worker thread. A tick that arrives while
    the previous run still holds the lock is skipped and logged, so runs never
    overlap. Job exceptions are logged and the ticker keeps going.
    """

    def __init__(
        self,
        *,
        name: str,
        interval_seconds: float,
        job: Callable[[datetime], object],
        run_on_start: bool = False,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive.")
        self._name = name
        self._interval_seconds = float(interval_seconds)
        self._job = job
        self._run_on_start = run_on_start
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def is_started(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_started:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name=f"periodic-{self._name}",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "periodic_task: started name=%s interval_seconds=%s run_on_start=%s",
            self._name,
            self._interval_seconds,
            self._run_on_start,
        )

    def run_once(self, tick_at: datetime | None = None) -> bool:
        if not self._run_lock.acquire(blocking=False):
            logger.warning("periodic_task: skip tick name=%s reason=previous_run_active", self._name)
            return False

        tick = floor_to_minute(tick_at or datetime.now(timezone.utc))
        started = time.monotonic()
        try:
            self._job(tick)
        except Exception:  # noqa: BLE001
            logger.exception("periodic_task: run failed name=%s tick_at=%s", self._name, tick)
        else:
            logger.info(
                "periodic_task: run finished name=%s tick_at=%s elapsed_ms=%s",
                self._name,
                tick,
                int((time.monotonic() - started) * 1000),
            )
        finally:
            self._run_lock.release()
        return True

    def stop(self, grace_seconds: float = 30.0) -> bool:
        """Stop ticking and wait up to grace_seconds for an in-flight run."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=max(0.0, grace_seconds))

        acquired = self._run_lock.acquire(timeout=max(0.0, grace_seconds))
        if acquired:
            self._run_lock.release()
            logger.info("periodic_task: stopped name=%s", self._name)
        else:
            logger.warning(
                "periodic_task: stop grace expired name=%s grace_seconds=%s",
                self._name,
                grace_seconds,
            )
        self._thread = None
        return acquired

    def _loop(self) -> None:
        if self._run_on_start:
            self._dispatch()
        while not self._stop_event.wait(seconds_until_next_tick(time.time(), self._interval_seconds)):
            self._dispatch()

    def _dispatch(self) -> None:
        tick_at = datetime.now(timezone.utc)
        worker = threading.Thread(
            target=self.run_once,
            args=(tick_at,),
            name=f"periodic-{self._name}-run",
            daemon=True,
        )
        worker.start()

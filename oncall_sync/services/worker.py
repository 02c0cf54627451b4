# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Periodic worker — one loop, two independent cadences.

The loop sleeps on a stop event until the earliest deadline, then runs the
work step and/or the session renewal step whose deadline has passed. The
stop event is only checked between steps, so an in-flight call always
completes.
"""

import threading
import time
from typing import Callable, Optional

from oncall_sync.core.logging import get_logger

logger = get_logger(__name__)


class PeriodicWorker:
    """Run ``work`` every ``interval`` seconds and ``renew`` every ``renew_interval``."""

    def __init__(
        self,
        name: str,
        work: Callable[[], object],
        interval: float,
        renew: Optional[Callable[[], object]] = None,
        renew_interval: float = 3600.0,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if renew is not None and renew_interval <= 0:
            raise ValueError("renew_interval must be positive")
        self.name = name
        self._work = work
        self._interval = interval
        self._renew = renew
        self._renew_interval = renew_interval
        self._stop = stop_event or threading.Event()
        self._clock = clock
        self._thread: Optional[threading.Thread] = None

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self) -> None:
        """Block until the stop event is set."""
        now = self._clock()
        next_work = now + self._interval
        next_renew = now + self._renew_interval if self._renew else None
        logger.info("Worker %s started, interval=%.1fs", self.name, self._interval)

        while True:
            deadline = next_work if next_renew is None else min(next_work, next_renew)
            if self._stop.wait(max(0.0, deadline - self._clock())):
                break
            now = self._clock()
            if now >= next_work:
                self._step("work", self._work)
                next_work = self._advance(next_work, self._interval, self._clock())
            if next_renew is not None and now >= next_renew and not self._stop.is_set():
                self._step("renew", self._renew)
                next_renew = self._advance(next_renew, self._renew_interval, self._clock())
        logger.info("Worker %s stopped", self.name)

    @staticmethod
    def _advance(deadline: float, interval: float, now: float) -> float:
        # Ticks missed while a step was running are dropped, not replayed.
        while deadline <= now:
            deadline += interval
        return deadline

    def _step(self, kind: str, step: Callable[[], object]) -> None:
        try:
            step()
        except Exception:
            logger.exception("Worker %s: %s step failed", self.name, kind, extra={"action": kind})

    # ── Thread lifecycle ──

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from ..context import RefreshContext
from ..errors import ExporterError
from .orchestrator import UpdateOrchestrator

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Triggers refresh cycles once or on a fixed interval.

    Cycles are not mutually excluded: a cycle that outlives the interval
    delays the next tick rather than overlapping it, but a caller invoking
    refresh() from another thread can still interleave two generations.
    """

    def __init__(self, orchestrator: UpdateOrchestrator, cycle_timeout: Optional[float] = None):
        self.orchestrator = orchestrator
        self.cycle_timeout = cycle_timeout
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._current: Optional[RefreshContext] = None

    def refresh(self) -> None:
        """Run one cycle; errors propagate to the caller."""
        logger.info("Updating GitHub metrics")
        started = time.monotonic()
        ctx = RefreshContext.with_timeout(self.cycle_timeout)
        with self._lock:
            self._current = ctx
        try:
            self.orchestrator.run(ctx)
        finally:
            with self._lock:
                if self._current is ctx:
                    self._current = None
        logger.info("GitHub metrics updated in %.2fs", time.monotonic() - started)

    def run_once(self) -> None:
        self.refresh()

    def tick(self) -> bool:
        """Run one cycle, logging a failure instead of raising it."""
        try:
            self.refresh()
        except ExporterError as exc:
            logger.error("Error fetching GitHub metrics: %s", exc)
            return False
        return True

    def run_forever(self, interval: float) -> None:
        """Refresh now and then every `interval` seconds until stop()."""
        next_run = time.monotonic()
        while not self._stop.is_set():
            self.tick()
            next_run += interval
            now = time.monotonic()
            if next_run < now:
                # Skip ticks missed by a slow cycle.
                next_run = now + interval - ((now - next_run) % interval)
            if self._stop.wait(next_run - now):
                break

    def start(self, interval: float) -> threading.Thread:
        thread = threading.Thread(
            target=self.run_forever, args=(interval,), name="refresh-scheduler", daemon=True
        )
        thread.start()
        return thread

    def stop(self) -> None:
        """Stop the interval loop and cancel the cycle in flight, if any."""
        self._stop.set()
        with self._lock:
            ctx = self._current
        if ctx is not None:
            ctx.cancel()

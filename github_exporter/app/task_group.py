from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, List, Optional, Tuple

from ..errors import CollectorError

logger = logging.getLogger(__name__)


class TaskGroup:
    """Run labelled tasks on a thread pool and remember the first failure.

    Unlike an error group with cancellation, a failing task never stops its
    siblings: wait() joins every task and then raises the first error seen,
    wrapped in a CollectorError carrying the task's label.
    """

    def __init__(self, name: str = "tasks", max_workers: Optional[int] = None):
        self.name = name
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._futures: List[Tuple[str, Future]] = []
        self._lock = threading.Lock()
        self._first_error: Optional[CollectorError] = None

    def __enter__(self) -> "TaskGroup":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._executor.shutdown(wait=True)

    @property
    def first_error(self) -> Optional[CollectorError]:
        with self._lock:
            return self._first_error

    def go(self, label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future = self._executor.submit(self._run, label, fn, *args, **kwargs)
        self._futures.append((label, future))
        return future

    def _record(self, error: CollectorError) -> None:
        with self._lock:
            if self._first_error is None:
                self._first_error = error

    def _run(self, label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except CollectorError as exc:
            # Already labelled by a nested group.
            self._record(exc)
            logger.debug("%s: task %r failed: %s", self.name, label, exc)
        except Exception as exc:
            error = CollectorError(label, exc)
            error.__cause__ = exc
            self._record(error)
            logger.debug("%s: task %r failed: %s", self.name, label, exc)
        return None

    def wait(self) -> None:
        """Join every submitted task, then raise the first error if any."""
        while True:
            pending = [f for _, f in self._futures if not f.done()]
            if not pending:
                break
            wait(pending)
        self._executor.shutdown(wait=True)

        # BaseExceptions bypass _run and only surface on the future.
        for label, future in self._futures:
            exc = future.exception()
            if exc is not None:
                error = CollectorError(label, exc)
                error.__cause__ = exc
                self._record(error)

        error = self.first_error
        if error is not None:
            raise error

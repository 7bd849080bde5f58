"""
Background execution of analyst queries.

Each query runs as one task on a thread pool; its outcome lands in a
`ResultSink` that the presentation reads. Requests are numbered: when a newer
query has been submitted, the outcome of an older one is dropped instead of
overwriting the grid.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from .gateway import QueryResult

logger = logging.getLogger(__name__)

READY = "Ready"
SEARCHING = "Searching..."


class ResultSink:
    """What the results grid and status bar currently show."""

    def __init__(self):
        self.title: Optional[str] = None
        self.result: Optional[QueryResult] = None
        self.extra: Any = None
        self.status = READY
        self.busy = False
        self.errors = []

    def begin(self):
        self.busy = True
        self.status = SEARCHING

    def publish(self, title, result, extra=None):
        self.title = title
        self.result = result
        self.extra = extra
        self.busy = False
        self.status = f"{len(result)} records found."

    def fail(self, message):
        # previous result stays on screen
        self.busy = False
        self.status = READY
        self.errors.append(message)

    def skip(self):
        self.busy = False
        self.status = READY

    def pop_errors(self):
        errors, self.errors = self.errors, []
        return errors


class QueryRunner:
    def __init__(self, sink: Optional[ResultSink] = None, max_workers: int = 4):
        self.sink = sink or ResultSink()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="query")
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[Future] = None

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, title: str, task: Callable[..., Optional[QueryResult]], *args,
               present: Optional[Callable[[QueryResult], Any]] = None, **kwargs) -> Future:
        """
        Run `task(*args, **kwargs)` on a worker and publish what it returns under
        `title`. A None return means the query was skipped. `present`, if given,
        derives extra display data (chart series) from the result on the worker.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self.sink.begin()
            future = self._executor.submit(self._run, generation, title, task, args, kwargs, present)
            self._latest = future
        future.add_done_callback(lambda f: self._cancelled(generation, f))
        return future

    def _run(self, generation, title, task, args, kwargs, present):
        try:
            result = task(*args, **kwargs)
            extra = present(result) if present is not None and result is not None else None
        except Exception as e:
            logger.error("%s failed: %s", title, e)
            self._deliver(generation, lambda: self.sink.fail(f"Error: {e}"))
            raise
        if result is None:
            self._deliver(generation, self.sink.skip)
        else:
            self._deliver(generation, lambda: self.sink.publish(title, result, extra))
        return result

    def _deliver(self, generation, update):
        with self._lock:
            if generation != self._generation:
                logger.debug("discarding outcome of superseded query #%d", generation)
                return
            update()

    def _cancelled(self, generation, future):
        if future.cancelled():
            self._deliver(generation, self.sink.skip)

    def cancel(self) -> bool:
        """Cancel the newest query if it has not started yet."""
        with self._lock:
            future = self._latest
        return future is not None and future.cancel()

    def wait(self, timeout: Optional[float] = None):
        """Block until the newest query has finished and been delivered."""
        with self._lock:
            future = self._latest
        if future is None:
            return
        try:
            future.exception(timeout=timeout)
        except CancelledError:
            pass

    def shutdown(self):
        self._executor.shutdown(wait=True)

"""Background task runner and busy gates for long-running actions."""

from __future__ import annotations

import queue
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskEvent:
    """Completion notice posted by the runner for every finished task."""

    name: str
    result: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BackgroundTaskRunner:
    """
    Dispatches decode/render/serialize work to a thread pool.

    Every submission returns a ``Future``. When it settles, a ``TaskEvent``
    is posted to ``events`` so an interaction loop can pick up completions
    with ``poll_events()`` without blocking on the future itself.
    """

    def __init__(self, max_workers: int = 2):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="inspect")
        self.events: "queue.Queue[TaskEvent]" = queue.Queue()
        logger.debug(f"Started background runner with {max_workers} workers")

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule ``fn`` and return its future."""
        future = self._pool.submit(fn, *args, **kwargs)
        future.add_done_callback(lambda f: self._post(name, f))
        return future

    def _post(self, name: str, future: Future) -> None:
        if future.cancelled():
            self.events.put(TaskEvent(name=name, error=CancelledError()))
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Background task '{name}' failed: {error}")
            self.events.put(TaskEvent(name=name, error=error))
        else:
            self.events.put(TaskEvent(name=name, result=future.result()))

    def poll_events(self) -> list[TaskEvent]:
        """Drain every completion posted so far without blocking."""
        drained = []
        while True:
            try:
                drained.append(self.events.get_nowait())
            except queue.Empty:
                return drained

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "BackgroundTaskRunner":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()


class ActionGate:
    """
    Busy flag for a user action such as "save all" or "generate report".

    ``acquire()`` fails while the action is in flight; the running task
    releases the gate in a ``finally`` block so a failure never leaves the
    action disabled.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def acquire(self) -> bool:
        with self._lock:
            if self._busy:
                return False
            self._busy = True
            return True

    def release(self) -> None:
        with self._lock:
            self._busy = False

    def guarded(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap ``fn`` so the gate is released once it returns or raises."""

        def run(*args: Any, **kwargs: Any) -> Any:
            try:
                return fn(*args, **kwargs)
            finally:
                self.release()
                logger.debug(f"Released action gate '{self.name}'")

        return run

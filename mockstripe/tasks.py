"""Fire-and-forget work that runs after a response has been returned."""
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from threading import Lock
from typing import Any

from mockstripe.metrics import DEFERRED_TASK_FAILURES

logger = logging.getLogger(__name__)


class DeferredTasks:
    """FIFO of callables queued by the services and drained by the HTTP layer.

    Failures are logged and swallowed: the caller that triggered the task has
    already received its response.
    """

    def __init__(self) -> None:
        self._queue: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._lock = Lock()

    def defer(self, fn: Callable[..., Any], *args: Any) -> None:
        with self._lock:
            self._queue.append((fn, args))
        logger.debug("Deferred %s", getattr(fn, "__qualname__", fn))

    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def run_pending(self) -> int:
        """Run every queued task. Returns the number that completed without error."""
        completed = 0
        while True:
            with self._lock:
                if not self._queue:
                    break
                fn, args = self._queue.popleft()
            try:
                fn(*args)
                completed += 1
            except Exception:
                DEFERRED_TASK_FAILURES.inc()
                logger.exception(
                    "Deferred task %s failed", getattr(fn, "__qualname__", fn)
                )
        return completed

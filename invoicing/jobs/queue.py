"""In-memory priority + delay job queue.

Jobs are opaque payload objects with a ``handle(session)`` method. The queue
only orders them:

- lower priority value runs first (labels map to values via QUEUE_SETTINGS),
- equal priorities run in enqueue order,
- a delayed job becomes eligible once its ``ready_at`` has passed.

Ready and delayed jobs are kept in two heaps so a far-future high priority
job never blocks a lower priority job that is ready now.
"""
from __future__ import annotations

import heapq
import itertools
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

from invoicing.config import QUEUE_SETTINGS
from invoicing.utils import get_logger

logger = get_logger(__name__)


def priority_map() -> dict[str, int]:
    configured = QUEUE_SETTINGS.get("priorities", {})
    return dict(configured) if isinstance(configured, dict) else {"normal": 5}


@dataclass(slots=True)
class QueueItem:
    job: Any
    priority_label: str
    priority_value: int
    enqueued_at: float
    ready_at: float
    seq: int


class PriorityDelayQueue:
    def __init__(self) -> None:
        self._priority_map = priority_map()
        self._warn_depth = int(QUEUE_SETTINGS.get("warn_depth", 1000))  # type: ignore[arg-type]
        self._max_in_memory = int(QUEUE_SETTINGS.get("max_in_memory", 5000))  # type: ignore[arg-type]
        self._cv = threading.Condition(threading.RLock())
        self._ready: list[tuple[int, int, QueueItem]] = []
        self._delayed: list[tuple[float, int, int, QueueItem]] = []
        self._seq = itertools.count(1)
        self._shutdown = False
        self._processed_labels: dict[str, int] = {}

    def _promote_due(self, now: float) -> None:
        while self._delayed and self._delayed[0][0] <= now:
            _, value, seq, item = heapq.heappop(self._delayed)
            heapq.heappush(self._ready, (value, seq, item))

    def _wait_for_work(self, remaining: Optional[float]) -> None:
        wait = remaining
        if self._delayed:
            until_due = max(0.0, self._delayed[0][0] - time.time())
            wait = until_due if wait is None else min(wait, until_due)
        if wait is None:
            self._cv.wait()
        elif wait > 0:
            self._cv.wait(timeout=wait)

    def enqueue(self, job: Any, *, priority: str = "normal", delay_seconds: float = 0.0) -> QueueItem:
        if priority not in self._priority_map:
            raise ValueError(f"Unknown priority '{priority}'")
        with self._cv:
            if self._shutdown:
                raise RuntimeError("Queue shutdown")
            if self.depth() >= self._max_in_memory:
                raise OverflowError("Queue capacity exceeded")

            now = time.time()
            item = QueueItem(
                job=job,
                priority_label=priority,
                priority_value=self._priority_map[priority],
                enqueued_at=now,
                ready_at=now + max(0.0, delay_seconds),
                seq=next(self._seq),
            )
            if item.ready_at <= now:
                heapq.heappush(self._ready, (item.priority_value, item.seq, item))
            else:
                heapq.heappush(self._delayed, (item.ready_at, item.priority_value, item.seq, item))

            depth = self.depth()
            if depth >= self._warn_depth:
                logger.warning("Queue depth warning", depth=depth)
            logger.debug("Job enqueued", job_type=type(job).__name__, priority=priority, delay_seconds=delay_seconds)
            self._cv.notify()
            return item

    def dequeue(self, *, block: bool = True, timeout: Optional[float] = None) -> Any:
        """Pop the next ready job, or None when empty (non-blocking), timed out or shut down."""
        deadline = None if timeout is None else time.time() + timeout
        with self._cv:
            while True:
                self._promote_due(time.time())
                if self._ready:
                    _, _, item = heapq.heappop(self._ready)
                    self._processed_labels[item.priority_label] = self._processed_labels.get(item.priority_label, 0) + 1
                    return item.job
                if self._shutdown and not self._delayed:
                    return None
                if not block:
                    return None
                remaining = None if deadline is None else deadline - time.time()
                if remaining is not None and remaining <= 0:
                    return None
                self._wait_for_work(remaining)

    def shutdown(self) -> None:
        with self._cv:
            self._shutdown = True
            self._cv.notify_all()

    def purge(self) -> None:
        """Drop every queued job (test isolation)."""
        with self._cv:
            self._ready.clear()
            self._delayed.clear()
            self._cv.notify_all()

    def depth(self) -> int:
        return len(self._ready) + len(self._delayed)

    def __len__(self) -> int:
        return self.depth()

    def snapshot(self) -> dict:
        with self._cv:
            return {
                "depth": self.depth(),
                "ready": len(self._ready),
                "scheduled": len(self._delayed),
                "dequeued_by_priority": dict(self._processed_labels),
                "shutdown": self._shutdown,
            }


__all__ = ["PriorityDelayQueue", "QueueItem", "priority_map"]

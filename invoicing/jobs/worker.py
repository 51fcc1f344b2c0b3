"""Background worker executing queued jobs."""
from __future__ import annotations

import threading
import time
from typing import Any, Optional, Protocol, Union

from invoicing import database
from invoicing.config import QUEUE_SETTINGS
from invoicing.jobs.queue import PriorityDelayQueue
from invoicing.jobs.redis_queue import RedisQueue
from invoicing.utils import get_logger, log_performance

logger = get_logger(__name__)

# Recent job failures, newest last (inspected by tests and /health/detailed)
LAST_EXCEPTIONS: list[dict] = []
MAX_RECORDED_EXCEPTIONS = 50


class JobQueue(Protocol):
    def enqueue(self, job: Any, *, priority: str = "normal", delay_seconds: float = 0.0) -> Any: ...
    def dequeue(self, *, block: bool = True, timeout: Optional[float] = None) -> Any: ...
    def shutdown(self) -> None: ...
    def snapshot(self) -> dict: ...


class JobWorker:
    def __init__(self, queue: JobQueue, *, poll_timeout: float = 5.0):
        self.queue = queue
        self.poll_timeout = poll_timeout
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="job-worker", daemon=True)
        self._thread.start()
        logger.info("Job worker started")

    def stop(self) -> None:
        self._stop_event.set()
        logger.info("Job worker stop requested")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once(self.poll_timeout)
            except Exception as e:  # pragma: no cover - queue backend failure
                logger.error("Worker loop error", error=str(e), exc_info=True)
                time.sleep(1)

    def run_once(self, timeout: Optional[float] = 0.0) -> bool:
        """Process at most one job; returns True when a job was taken off the queue."""
        job = self.queue.dequeue(block=bool(timeout), timeout=timeout or None)
        if job is None:
            return False
        if not callable(getattr(job, "handle", None)):
            logger.warning("Skipping unknown job type", job_type=type(job).__name__)
            return True
        self._process(job)
        return True

    def _process(self, job: Any) -> None:
        job_type = type(job).__name__
        start_time = time.time()
        db_name = getattr(job, "db", None)
        try:
            session = database.get_session_factory(db_name)()
        except database.UnknownDatabase as e:
            self._record(job_type, db_name, e)
            logger.error("Job targets unknown database", job_type=job_type, db=db_name)
            return

        try:
            handled = job.handle(session)
            log_performance(
                operation=f"job_{job_type}",
                duration_ms=(time.time() - start_time) * 1000,
                additional_data={"handled": handled, "db": db_name or "default"},
            )
        except Exception as e:
            session.rollback()
            self._record(job_type, db_name, e)
            logger.error("Job failed", job_type=job_type, db=db_name, error=str(e), exc_info=True)
        finally:
            session.close()

    @staticmethod
    def _record(job_type: str, db_name: Optional[str], error: Exception) -> None:
        LAST_EXCEPTIONS.append({
            "job_type": job_type,
            "db": db_name,
            "error": str(error),
            "type": type(error).__name__,
        })
        del LAST_EXCEPTIONS[:-MAX_RECORDED_EXCEPTIONS]


def create_queue() -> Union[PriorityDelayQueue, RedisQueue]:
    """Pick the queue backend from QUEUE_SETTINGS; redis falls back to memory when unreachable."""
    if QUEUE_SETTINGS.get("use_redis", False):
        queue = RedisQueue()
        if queue.health_check():
            logger.info("Using Redis-backed job queue")
            return queue
        logger.warning("Redis not reachable, using in-memory job queue")
    else:
        logger.info("Using in-memory job queue")
    return PriorityDelayQueue()


__all__ = ["JobWorker", "JobQueue", "LAST_EXCEPTIONS", "create_queue"]

"""Redis-backed priority + delay job queue.

Jobs survive application restarts. Layout in redis:

- one list per priority label (``<ready_key>:<label>``) holding ready jobs,
  consumed FIFO; BLPOP over the lists in priority order picks the most
  urgent ready job,
- one sorted set (``<scheduled_key>``) of delayed jobs scored by ready_at.

Jobs are serialised through the job registry (``invoicing.jobs.registry``).
When redis cannot be reached the queue degrades to an in-process
PriorityDelayQueue and switches back once a health check succeeds.
"""
from __future__ import annotations

import json
import math
import threading
import time
from typing import Any, Optional

import redis

from invoicing.config import QUEUE_SETTINGS
from invoicing.jobs.queue import PriorityDelayQueue, QueueItem, priority_map
from invoicing.jobs.registry import job_from_dict, job_to_dict, UnknownJobType
from invoicing.utils import get_logger

logger = get_logger(__name__)


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisQueue:
    def __init__(self) -> None:
        self._redis_url = str(QUEUE_SETTINGS.get("redis_url", "redis://localhost:6379/0"))
        self._ready_key = str(QUEUE_SETTINGS.get("redis_ready_key", "invoicing:ready_queue"))
        self._scheduled_key = str(QUEUE_SETTINGS.get("redis_scheduled_key", "invoicing:scheduled_jobs"))
        self._health_check_timeout = float(QUEUE_SETTINGS.get("redis_health_check_timeout", 2.0))  # type: ignore[arg-type]
        self._reconnect_interval = float(QUEUE_SETTINGS.get("redis_reconnect_interval", 5.0))  # type: ignore[arg-type]
        self._warn_depth = int(QUEUE_SETTINGS.get("warn_depth", 1000))  # type: ignore[arg-type]
        self._priority_map = priority_map()

        self._fallback_queue = PriorityDelayQueue()
        self._redis_client: Optional[redis.Redis] = None
        self._lock = threading.RLock()
        self._is_redis_active = False
        self._shutdown = False
        self._next_connect_at = 0.0
        self._connect()

    # ----------------------------- connection ----------------------------- #
    def _connect(self) -> None:
        self._next_connect_at = time.time() + self._reconnect_interval
        try:
            self._redis_client = redis.from_url(self._redis_url, socket_connect_timeout=self._health_check_timeout)
            self._redis_client.ping()
            self._is_redis_active = True
            logger.info("Connected to Redis", url=self._redis_url)
        except (redis.RedisError, ConnectionError) as e:
            self._redis_client = None
            self._is_redis_active = False
            logger.warning("Redis unavailable, using in-memory fallback queue", url=self._redis_url, error=str(e))

    def health_check(self) -> bool:
        with self._lock:
            if self._redis_client is None:
                # Reconnects are attempted at most once per reconnect interval
                if time.time() >= self._next_connect_at:
                    self._connect()
                return self._is_redis_active
            try:
                self._redis_client.ping()
            except (redis.RedisError, ConnectionError) as e:
                if self._is_redis_active:
                    logger.warning("Redis connection lost, using in-memory fallback queue", error=str(e))
                self._is_redis_active = False
                return False
            if not self._is_redis_active:
                logger.info("Redis connection restored")
            self._is_redis_active = True
            return True

    def _mark_down(self, operation: str, error: Exception) -> None:
        logger.error("Redis error", operation=operation, error=str(error))
        self._is_redis_active = False

    # ----------------------------- keys & codec ----------------------------- #
    def ready_key(self, label: str) -> str:
        return f"{self._ready_key}:{label}"

    def _ready_keys(self) -> list[str]:
        ordered = sorted(self._priority_map.items(), key=lambda kv: kv[1])
        return [self.ready_key(label) for label, _ in ordered]

    def _serialize(self, item: QueueItem) -> str:
        data = job_to_dict(item.job)
        data.update({
            "priority_label": item.priority_label,
            "enqueued_at": item.enqueued_at,
            "ready_at": item.ready_at,
            "seq": item.seq,
        })
        return json.dumps(data)

    def _deserialize(self, raw: Any) -> Optional[Any]:
        try:
            return job_from_dict(json.loads(_text(raw)))
        except (ValueError, TypeError, UnknownJobType) as e:
            # Undecodable payloads are dropped so they cannot wedge the queue
            logger.error("Discarding undecodable job payload", error=str(e), payload=_text(raw)[:200])
            return None

    # ----------------------------- queue API ----------------------------- #
    def _promote_scheduled(self) -> None:
        client = self._redis_client
        if client is None:
            return
        due = client.zrangebyscore(self._scheduled_key, 0, time.time()) or []
        for raw in due:
            payload = _text(raw)
            # Only the caller that removes the member promotes it
            if client.zrem(self._scheduled_key, payload):
                label = json.loads(payload).get("priority_label", "normal")
                client.rpush(self.ready_key(label), payload)
        if due:
            logger.debug("Promoted scheduled jobs", count=len(due))

    def enqueue(self, job: Any, *, priority: str = "normal", delay_seconds: float = 0.0) -> QueueItem:
        if priority not in self._priority_map:
            raise ValueError(f"Unknown priority '{priority}'")
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Queue shutdown")
            if not self.health_check() or self._redis_client is None:
                return self._fallback_queue.enqueue(job, priority=priority, delay_seconds=delay_seconds)

            now = time.time()
            item = QueueItem(
                job=job,
                priority_label=priority,
                priority_value=self._priority_map[priority],
                enqueued_at=now,
                ready_at=now + max(0.0, delay_seconds),
                seq=int(now * 1000),
            )
            payload = self._serialize(item)
            try:
                if item.ready_at <= now:
                    self._redis_client.rpush(self.ready_key(priority), payload)
                else:
                    self._redis_client.zadd(self._scheduled_key, {payload: item.ready_at})
            except redis.RedisError as e:
                self._mark_down("enqueue", e)
                return self._fallback_queue.enqueue(job, priority=priority, delay_seconds=delay_seconds)

            depth = self.depth()
            if depth >= self._warn_depth:
                logger.warning("Queue depth warning", depth=depth)
            return item

    def dequeue(self, *, block: bool = True, timeout: Optional[float] = None) -> Any:
        # Jobs accepted while redis was down are drained first
        local = self._fallback_queue.dequeue(block=False)
        if local is not None:
            return local

        # Blocking waits run outside the lock; enqueue only contends for the health check
        with self._lock:
            client = self._redis_client if self.health_check() else None
            if client is not None:
                try:
                    self._promote_scheduled()
                except redis.RedisError as e:
                    self._mark_down("dequeue", e)
                    client = None

        if client is None:
            return self._fallback_queue.dequeue(block=block, timeout=timeout)

        keys = self._ready_keys()
        try:
            if not block:
                for key in keys:
                    raw = client.lpop(key)
                    if raw is not None:
                        return self._deserialize(raw)
                return None
            # BLPOP: 0 blocks forever, so round partial seconds up
            wait = 0 if timeout is None else max(1, math.ceil(timeout))
            result = client.blpop(keys, timeout=wait)
        except redis.RedisError as e:
            with self._lock:
                self._mark_down("dequeue", e)
            return self._fallback_queue.dequeue(block=block, timeout=timeout)

        if not result:
            return None
        _, raw = result
        return self._deserialize(raw)

    def shutdown(self) -> None:
        with self._lock:
            self._shutdown = True
            self._fallback_queue.shutdown()

    def purge(self) -> None:
        """Drop every queued job in redis and in the fallback queue (tests)."""
        with self._lock:
            self._fallback_queue.purge()
            if not self.health_check() or self._redis_client is None:
                return
            try:
                self._redis_client.delete(self._scheduled_key, *self._ready_keys())
            except redis.RedisError as e:
                self._mark_down("purge", e)

    # ----------------------------- inspection ----------------------------- #
    def _counts(self) -> tuple[int, int]:
        assert self._redis_client is not None
        ready = sum(int(self._redis_client.llen(key) or 0) for key in self._ready_keys())
        scheduled = int(self._redis_client.zcard(self._scheduled_key) or 0)
        return ready, scheduled

    def depth(self) -> int:
        with self._lock:
            if not self.health_check() or self._redis_client is None:
                return self._fallback_queue.depth()
            try:
                ready, scheduled = self._counts()
            except redis.RedisError as e:
                self._mark_down("depth", e)
                return self._fallback_queue.depth()
            return ready + scheduled + self._fallback_queue.depth()

    def __len__(self) -> int:
        return self.depth()

    def snapshot(self) -> dict:
        with self._lock:
            if self.health_check() and self._redis_client is not None:
                try:
                    ready, scheduled = self._counts()
                    return {
                        "depth": ready + scheduled,
                        "ready": ready,
                        "scheduled": scheduled,
                        "fallback_depth": self._fallback_queue.depth(),
                        "shutdown": self._shutdown,
                        "redis_active": True,
                        "redis_url": self._redis_url,
                    }
                except redis.RedisError as e:
                    self._mark_down("snapshot", e)
            snapshot = self._fallback_queue.snapshot()
            snapshot["redis_active"] = False
            return snapshot


__all__ = ["RedisQueue"]

"""Tests for the redis-backed job queue against a mocked redis client.

The mock keeps one python list per redis list key and a dict for the
scheduled sorted set, which is enough to exercise priority ordering,
delayed promotion and the in-memory fallback.
"""
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import redis

from invoicing.config import QUEUE_SETTINGS
from invoicing.jobs.invitation_jobs import MarkBounced, MarkOpened
from invoicing.jobs.queue import PriorityDelayQueue
from invoicing.jobs.redis_queue import RedisQueue
from invoicing.jobs.worker import create_queue


class FakeRedis:
    def __init__(self):
        self.lists: dict[str, list] = {}
        self.zset: dict[str, float] = {}

    def ping(self):
        return True

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    def lpop(self, key):
        items = self.lists.get(key)
        return items.pop(0) if items else None

    def blpop(self, keys, timeout=0):
        for key in keys:
            items = self.lists.get(key)
            if items:
                return [key, items.pop(0)]
        return None

    def llen(self, key):
        return len(self.lists.get(key, []))

    def zadd(self, key, mapping):
        self.zset.update(mapping)
        return len(mapping)

    def zrangebyscore(self, key, low, high):
        return [member for member, score in sorted(self.zset.items(), key=lambda kv: kv[1]) if low <= score <= high]

    def zrem(self, key, member):
        return 1 if self.zset.pop(member, None) is not None else 0

    def zcard(self, key):
        return len(self.zset)

    def delete(self, *keys):
        for key in keys:
            self.lists.pop(key, None)
        self.zset.clear()


@pytest.fixture
def fake_redis():
    fake = FakeRedis()
    with patch("redis.from_url", return_value=fake):
        yield fake


@pytest.fixture
def restore_queue_settings():
    saved = dict(QUEUE_SETTINGS)
    yield QUEUE_SETTINGS
    QUEUE_SETTINGS.clear()
    QUEUE_SETTINGS.update(saved)


def test_roundtrip_through_registry(fake_redis):
    queue = RedisQueue()
    queue.enqueue(MarkBounced(message_id="m-1", entity="quote", error="full", db="eu"))
    assert fake_redis.llen(queue.ready_key("normal")) == 1

    job = queue.dequeue(block=False)
    assert job == MarkBounced(message_id="m-1", entity="quote", error="full", db="eu")
    assert queue.dequeue(block=False) is None


def test_priority_order_across_lists(fake_redis):
    queue = RedisQueue()
    queue.enqueue(MarkOpened(message_id="low"), priority="low")
    queue.enqueue(MarkOpened(message_id="normal-1"))
    queue.enqueue(MarkOpened(message_id="high"), priority="high")
    queue.enqueue(MarkOpened(message_id="normal-2"))

    assert queue.depth() == 4
    order = [queue.dequeue(timeout=1).message_id for _ in range(4)]
    assert order == ["high", "normal-1", "normal-2", "low"]


def test_delayed_job_is_promoted_when_due(fake_redis):
    queue = RedisQueue()
    queue.enqueue(MarkOpened(message_id="later"), delay_seconds=60)
    assert queue.snapshot()["scheduled"] == 1
    assert queue.dequeue(block=False) is None

    with patch("invoicing.jobs.redis_queue.time.time", return_value=time.time() + 120):
        job = queue.dequeue(block=False)
    assert job.message_id == "later"
    assert fake_redis.zcard("any") == 0


def test_undecodable_payload_is_dropped(fake_redis):
    queue = RedisQueue()
    fake_redis.rpush(queue.ready_key("normal"), "not json")
    assert queue.dequeue(block=False) is None
    assert queue.depth() == 0


def test_snapshot_and_purge(fake_redis):
    queue = RedisQueue()
    queue.enqueue(MarkOpened(message_id="a"))
    queue.enqueue(MarkOpened(message_id="b"), delay_seconds=30)
    snap = queue.snapshot()
    assert snap["redis_active"] is True
    assert (snap["ready"], snap["scheduled"], snap["depth"]) == (1, 1, 2)

    queue.purge()
    assert queue.depth() == 0


def test_falls_back_to_memory_when_redis_unreachable():
    with patch("redis.from_url", side_effect=redis.ConnectionError("refused")):
        queue = RedisQueue()
        queue.enqueue(MarkOpened(message_id="offline"), priority="high")
        assert queue.snapshot()["redis_active"] is False
        assert queue.depth() == 1
        assert queue.dequeue(block=False).message_id == "offline"


def test_operation_error_switches_to_fallback(fake_redis):
    queue = RedisQueue()
    with patch.object(fake_redis, "rpush", side_effect=redis.RedisError("broken pipe")):
        queue.enqueue(MarkOpened(message_id="kept"))
    # the fallback copy is served before anything in redis
    assert queue.dequeue(block=False).message_id == "kept"


def test_unknown_priority_rejected(fake_redis):
    with pytest.raises(ValueError):
        RedisQueue().enqueue(MarkOpened(message_id="x"), priority="urgent")


def test_create_queue_prefers_redis_when_available(fake_redis, restore_queue_settings):
    restore_queue_settings["use_redis"] = True
    assert isinstance(create_queue(), RedisQueue)


def test_create_queue_uses_memory_when_redis_down(restore_queue_settings):
    restore_queue_settings["use_redis"] = True
    failing = MagicMock()
    failing.ping.side_effect = redis.ConnectionError("down")
    with patch("redis.from_url", return_value=failing):
        assert isinstance(create_queue(), PriorityDelayQueue)


def test_create_queue_defaults_to_memory(restore_queue_settings):
    restore_queue_settings["use_redis"] = False
    assert isinstance(create_queue(), PriorityDelayQueue)


class BlockingFakeRedis(FakeRedis):
    """BLPOP waits for a push like a real server instead of returning at once."""

    def __init__(self):
        super().__init__()
        self.pushed = threading.Event()

    def rpush(self, key, value):
        size = super().rpush(key, value)
        self.pushed.set()
        return size

    def blpop(self, keys, timeout=0):
        self.pushed.wait(timeout or None)
        return super().blpop(keys, timeout)


def _dequeue_in_thread(queue, timeout):
    received = []
    thread = threading.Thread(target=lambda: received.append(queue.dequeue(block=True, timeout=timeout)))
    thread.start()
    time.sleep(0.2)
    return thread, received


def test_enqueue_does_not_wait_for_blocking_redis_dequeue():
    fake = BlockingFakeRedis()
    with patch("redis.from_url", return_value=fake):
        queue = RedisQueue()
        thread, received = _dequeue_in_thread(queue, timeout=3.0)

        started = time.time()
        queue.enqueue(MarkOpened(message_id="fast"), priority="low")
        assert time.time() - started < 0.5

        thread.join(timeout=5)
    assert received[0].message_id == "fast"


def test_enqueue_does_not_wait_for_blocking_fallback_dequeue():
    with patch("redis.from_url", side_effect=redis.ConnectionError("refused")):
        queue = RedisQueue()
        thread, received = _dequeue_in_thread(queue, timeout=3.0)

        started = time.time()
        queue.enqueue(MarkOpened(message_id="offline-fast"), priority="low")
        assert time.time() - started < 0.5

        thread.join(timeout=5)
    assert received[0].message_id == "offline-fast"

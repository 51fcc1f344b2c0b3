import time

import pytest

from invoicing.jobs.invitation_jobs import MarkOpened
from invoicing.jobs.queue import PriorityDelayQueue


def test_priority_queue_ordering():
    q = PriorityDelayQueue()
    q.enqueue(MarkOpened(message_id="low"), priority="low")
    q.enqueue(MarkOpened(message_id="high"), priority="high")
    q.enqueue(MarkOpened(message_id="normal"), priority="normal")
    snap = q.snapshot()
    assert snap.get("ready") == 3
    assert snap.get("depth") == 3

    order = [q.dequeue(block=False).message_id for _ in range(3)]
    assert order == ["high", "normal", "low"]
    assert q.snapshot()["dequeued_by_priority"] == {"high": 1, "normal": 1, "low": 1}


def test_same_priority_is_fifo():
    q = PriorityDelayQueue()
    for i in range(5):
        q.enqueue(MarkOpened(message_id=str(i)))
    assert [q.dequeue(block=False).message_id for _ in range(5)] == ["0", "1", "2", "3", "4"]


def test_delayed_job_waits_and_does_not_block_ready_jobs():
    q = PriorityDelayQueue()
    q.enqueue(MarkOpened(message_id="later"), priority="high", delay_seconds=0.3)
    q.enqueue(MarkOpened(message_id="now"), priority="low")

    assert q.dequeue(block=False).message_id == "now"
    assert q.dequeue(block=False) is None
    assert q.snapshot()["scheduled"] == 1

    time.sleep(0.35)
    assert q.dequeue(block=False).message_id == "later"


def test_blocking_dequeue_times_out():
    q = PriorityDelayQueue()
    started = time.time()
    assert q.dequeue(timeout=0.1) is None
    assert time.time() - started >= 0.09


def test_unknown_priority_rejected():
    with pytest.raises(ValueError):
        PriorityDelayQueue().enqueue(MarkOpened(message_id="x"), priority="urgent")


def test_shutdown_rejects_new_jobs():
    q = PriorityDelayQueue()
    q.shutdown()
    with pytest.raises(RuntimeError):
        q.enqueue(MarkOpened(message_id="x"))
    assert q.dequeue(timeout=0.05) is None


def test_capacity_limit(monkeypatch):
    from invoicing.jobs import queue as queue_module
    monkeypatch.setitem(queue_module.QUEUE_SETTINGS, "max_in_memory", 2)
    q = PriorityDelayQueue()
    q.enqueue(MarkOpened(message_id="1"))
    q.enqueue(MarkOpened(message_id="2"))
    with pytest.raises(OverflowError):
        q.enqueue(MarkOpened(message_id="3"))

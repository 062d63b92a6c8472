import time

import pytest
from loguru import logger

from session_clock.scheduler import FEED_EXECUTOR, TICK_EXECUTOR, Scheduler


@pytest.fixture
def scheduler():
    s = Scheduler(background=True)
    yield s
    s.stop()


def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


# ============================================================
# TESTS — JOB REGISTRATION
# ============================================================

def test_jobs_keep_interval_and_executor(scheduler):
    scheduler.every(60, "rates", lambda: None, executor=FEED_EXECUTOR)
    scheduler.every(1, "tick", lambda: None)

    jobs = {j.id: j for j in scheduler.jobs}

    assert jobs["rates"].trigger.interval.total_seconds() == 60
    assert jobs["rates"].executor == FEED_EXECUTOR
    assert jobs["tick"].trigger.interval.total_seconds() == 1
    assert jobs["tick"].executor == TICK_EXECUTOR


def test_same_name_replaces_job(scheduler):
    scheduler.every(60, "rates", lambda: None)
    scheduler.every(30, "rates", lambda: None)

    assert [j.trigger.interval.total_seconds() for j in scheduler.jobs] == [30]


@pytest.mark.parametrize("seconds", [0, -1])
def test_invalid_interval_rejected(scheduler, seconds):
    with pytest.raises(ValueError):
        scheduler.every(seconds, "bad", lambda: None)


# ============================================================
# TESTS — RUNNING
# ============================================================

def test_jobs_run_immediately_on_start(scheduler):
    calls = []
    scheduler.every(300, "news", lambda: calls.append(1))

    scheduler.start()

    assert wait_until(lambda: calls)


def test_slow_feed_does_not_delay_tick(scheduler):
    ticks = []
    rates_started = []

    def slow_rates():
        rates_started.append(time.monotonic())
        time.sleep(2.5)

    scheduler.every(1.5, "rates", slow_rates, executor=FEED_EXECUTOR)
    scheduler.every(1, "tick", lambda: ticks.append(time.monotonic()))

    scheduler.start()
    time.sleep(3.6)
    scheduler.stop()

    assert rates_started
    assert len(ticks) >= 3
    gaps = [b - a for a, b in zip(ticks, ticks[1:])]
    assert max(gaps) < 1.5


def test_failing_job_keeps_running_and_is_logged(scheduler):
    attempts = []
    messages = []
    sink_id = logger.add(lambda m: messages.append(str(m)), level="ERROR")

    def boom():
        attempts.append(1)
        raise RuntimeError("feed exploded")

    try:
        scheduler.every(0.2, "rates", boom, executor=FEED_EXECUTOR)
        scheduler.start()
        assert wait_until(lambda: len(attempts) >= 2 and messages)
    finally:
        scheduler.stop()
        logger.remove(sink_id)

    assert any("rates" in m and "failed" in m for m in messages)


def test_stop_is_idempotent(scheduler):
    scheduler.every(1, "tick", lambda: None)
    scheduler.start()
    assert scheduler.running

    scheduler.stop()
    scheduler.stop()

    assert not scheduler.running

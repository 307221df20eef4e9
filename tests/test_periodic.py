"""Tests for the cooperative periodic task runner."""

import asyncio

import pytest

from nadomm.scheduler.periodic import PeriodicTask


@pytest.mark.asyncio
async def test_never_overlaps_itself():
    in_flight = 0
    max_in_flight = 0

    async def slow():
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0.03)
        in_flight -= 1

    task = PeriodicTask("slow", slow, interval=0.001)
    task.start()
    await asyncio.sleep(0.2)
    await task.stop()

    assert task.runs >= 2
    assert max_in_flight == 1
    assert in_flight == 0


@pytest.mark.asyncio
async def test_errors_do_not_stop_the_loop():
    calls = 0

    async def flaky():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("boom")

    task = PeriodicTask("flaky", flaky, interval=0.005)
    task.start()
    await asyncio.sleep(0.05)
    await task.stop()

    assert calls >= 2


@pytest.mark.asyncio
async def test_interval_read_before_each_sleep():
    intervals = [0.001, 0.001, 0.001]
    reads = 0

    def next_interval():
        nonlocal reads
        reads += 1
        return intervals[min(reads, len(intervals)) - 1]

    async def noop():
        pass

    task = PeriodicTask("adaptive", noop, interval=next_interval)
    task.start()
    await asyncio.sleep(0.05)
    await task.stop()

    assert reads >= 2


@pytest.mark.asyncio
async def test_delayed_start_and_prompt_stop():
    calls = 0

    async def count():
        nonlocal calls
        calls += 1

    task = PeriodicTask("delayed", count, interval=60.0, run_immediately=False)
    task.start()
    await asyncio.sleep(0.01)
    assert calls == 0

    await asyncio.wait_for(task.stop(), timeout=1.0)
    assert calls == 0
    assert not task.is_running

#!/usr/bin/env python3

import asyncio

import pytest

from openrouter_wrapper import Cancelled
from scriptgen_core import CancellationToken
from scriptgen_core.batching import iter_batches, run_batches


def test_iter_batches_windows():
    """Windows are contiguous, non-overlapping, and cover every unit"""
    assert list(iter_batches(10, 4)) == [(0, 4), (4, 4), (8, 2)]
    assert list(iter_batches(4, 4)) == [(0, 4)]
    assert list(iter_batches(0, 4)) == []


def test_run_batches_sees_accumulated_results():
    """Each producer call gets everything produced by earlier batches"""
    seen = []

    async def produce(start, count, so_far):
        seen.append((start, count, list(so_far)))
        return [start + i for i in range(count)]

    results = asyncio.run(run_batches(6, 4, produce))

    assert results == [0, 1, 2, 3, 4, 5]
    assert seen == [(0, 4, []), (4, 2, [0, 1, 2, 3])]


def test_run_batches_progress():
    """Progress is reported once per batch and ends at 100"""
    reports = []

    async def produce(start, count, so_far):
        return [None] * count

    asyncio.run(run_batches(
        10, 4, produce,
        on_progress=lambda p, m: reports.append((p, m)),
        message=lambda done, total: f"{done}/{total}",
    ))

    assert reports == [(40, "4/10"), (80, "8/10"), (100, "10/10")]


def test_run_batches_progress_clamped_with_short_batches():
    """A producer returning fewer items never pushes progress past 100"""
    reports = []

    async def produce(start, count, so_far):
        return [None]

    results = asyncio.run(run_batches(5, 4, produce, on_progress=lambda p, m: reports.append(p)))

    assert len(results) == 2
    assert all(0 <= p <= 100 for p in reports)
    assert reports[-1] == 100


def test_run_batches_zero_units():
    """Zero units: no producer call, a single 100% report"""
    reports = []

    async def produce(start, count, so_far):
        raise AssertionError("producer must not be called")

    results = asyncio.run(run_batches(0, 4, produce, on_progress=lambda p, m: reports.append(p)))

    assert results == []
    assert reports == [100]


def test_run_batches_invalid_arguments():
    async def produce(start, count, so_far):
        return []

    with pytest.raises(ValueError):
        asyncio.run(run_batches(-1, 4, produce))
    with pytest.raises(ValueError):
        asyncio.run(run_batches(4, 0, produce))


def test_run_batches_stops_when_cancelled():
    """Cancelling during a batch stops before the next one starts"""
    token = CancellationToken()
    calls = []

    async def produce(start, count, so_far):
        calls.append(start)
        token.cancel()
        return [start]

    with pytest.raises(Cancelled):
        asyncio.run(run_batches(12, 4, produce, cancel_token=token))

    assert calls == [0]


def test_cancellation_token_callbacks():
    token = CancellationToken()
    fired = []

    unregister = token.on_cancel(lambda: fired.append("a"))
    token.on_cancel(lambda: fired.append("b"))
    unregister()

    token.cancel()
    token.cancel()
    assert fired == ["b"]
    assert token.is_cancelled()

    # Registering after the fact runs immediately
    token.on_cancel(lambda: fired.append("late"))
    assert fired == ["b", "late"]

    with pytest.raises(Cancelled):
        token.raise_if_cancelled()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

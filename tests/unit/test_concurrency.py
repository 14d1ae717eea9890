import threading
import time

import pytest

from ess.utils.concurrency import gather_bounded, run_blocking


@pytest.mark.asyncio
async def test_gather_bounded_preserves_order_and_limits_in_flight():
    lock = threading.Lock()
    state = {"running": 0, "peak": 0}

    def work(n):
        with lock:
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
        time.sleep(0.02)
        with lock:
            state["running"] -= 1
        return n * n

    results = await gather_bounded(work, range(8), 3)

    assert results == [n * n for n in range(8)]
    assert 1 <= state["peak"] <= 3


@pytest.mark.asyncio
async def test_gather_bounded_empty_input():
    assert await gather_bounded(lambda n: n, [], 5) == []


@pytest.mark.asyncio
async def test_gather_bounded_propagates_failure():
    def work(n):
        if n == 2:
            raise ValueError("boom")
        return n

    with pytest.raises(ValueError, match="boom"):
        await gather_bounded(work, range(4), 2)


@pytest.mark.asyncio
async def test_run_blocking_runs_off_the_loop_thread():
    def work(a, b=0):
        return threading.get_ident(), a + b

    ident, total = await run_blocking(work, 2, b=3)

    assert total == 5
    assert ident != threading.get_ident()


@pytest.mark.asyncio
async def test_run_blocking_propagates_failure():
    def work():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await run_blocking(work)

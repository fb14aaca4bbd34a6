"""Tests for the rate limiter and retry wrapper."""

import asyncio

import pytest

from vidsum.rate_limiter import (
    MaxRetriesExceededError,
    RateLimiter,
    call_llm_with_retry,
    is_rate_limit_error,
)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        RateLimiter(max_concurrent=0)
    with pytest.raises(ValueError):
        RateLimiter(delay_ms=-1)


def test_from_preset_falls_back_to_default():
    limiter = RateLimiter.from_preset("no-such-provider")
    assert limiter.max_concurrent == 3
    assert limiter.delay_ms == 1000
    assert RateLimiter.from_preset("claude").max_concurrent == 2


def test_execute_returns_result_and_propagates_errors():
    async def run():
        limiter = RateLimiter(max_concurrent=1, delay_ms=0)

        async def ok():
            return 42

        async def boom():
            raise KeyError("nope")

        assert await limiter.execute(ok) == 42
        with pytest.raises(KeyError):
            await limiter.execute(boom)

    asyncio.run(run())


def test_concurrency_cap_and_post_completion_delay():
    starts = []
    active = 0
    peak = 0

    async def run():
        loop = asyncio.get_running_loop()
        limiter = RateLimiter(max_concurrent=2, delay_ms=100)

        async def task():
            nonlocal active, peak
            starts.append(loop.time())
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.2)
            active -= 1

        await asyncio.gather(*(limiter.execute(task) for _ in range(5)))
        assert limiter.get_status()["active_requests"] > 0
        await asyncio.sleep(0.15)
        assert limiter.get_status() == {"queue_length": 0, "active_requests": 0, "max_concurrent": 2}

    asyncio.run(run())

    assert len(starts) == 5
    assert peak <= 2
    assert starts[2] - starts[0] >= 0.25


def test_slot_is_not_reused_before_delay_elapses():
    async def run():
        loop = asyncio.get_running_loop()
        limiter = RateLimiter(max_concurrent=1, delay_ms=200)
        times = {}

        async def first():
            return "first"

        async def second():
            times["second_started"] = loop.time()
            return "second"

        assert await limiter.execute(first) == "first"
        times["first_done"] = loop.time()
        assert await limiter.execute(second) == "second"
        return times

    times = asyncio.run(run())
    assert times["second_started"] - times["first_done"] >= 0.15


def test_get_status_while_queued():
    async def run():
        limiter = RateLimiter(max_concurrent=1, delay_ms=0)
        release = asyncio.Event()

        async def blocker():
            await release.wait()

        first = asyncio.ensure_future(limiter.execute(blocker))
        second = asyncio.ensure_future(limiter.execute(blocker))
        await asyncio.sleep(0)
        status = limiter.get_status()
        release.set()
        await asyncio.gather(first, second)
        return status

    status = asyncio.run(run())
    assert status["active_requests"] == 1
    assert status["queue_length"] == 1


def test_is_rate_limit_error():
    assert is_rate_limit_error(RuntimeError("Rate limit exceeded"))
    assert not is_rate_limit_error(RuntimeError("invalid api key"))


def test_retry_succeeds_after_rate_limits(no_backoff):
    calls = []

    async def flaky(prompt):
        calls.append(prompt)
        if len(calls) < 3:
            raise RuntimeError("rate limit exceeded")
        return "ok"

    assert asyncio.run(call_llm_with_retry(flaky, "hello")) == "ok"
    assert calls == ["hello", "hello", "hello"]


def test_retry_gives_up_with_distinct_error(no_backoff):
    calls = []

    async def always_limited(prompt):
        calls.append(prompt)
        raise RuntimeError("rate limit exceeded")

    with pytest.raises(MaxRetriesExceededError) as excinfo:
        asyncio.run(call_llm_with_retry(always_limited, "hi", max_retries=3))
    assert len(calls) == 3
    assert "rate limit" in str(excinfo.value.__cause__)


def test_non_rate_limit_errors_propagate_immediately(no_backoff):
    calls = []

    async def broken(prompt):
        calls.append(prompt)
        raise ValueError("bad request")

    with pytest.raises(ValueError):
        asyncio.run(call_llm_with_retry(broken, "hi"))
    assert len(calls) == 1

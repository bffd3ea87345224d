from __future__ import annotations

import asyncio
import logging

import httpx

from sourcing.errors import RateLimitedError, SourcingError
from sourcing.services.rate_limiter import RateLimiter, is_rate_limit_error
from tests.fakes import no_sleep


def _status_error(status: int, text: str = "") -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com")
    response = httpx.Response(status, text=text, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


def test_is_rate_limit_error_detects_common_signals():
    assert is_rate_limit_error(RateLimitedError("slow down"))
    assert is_rate_limit_error(_status_error(429))
    assert is_rate_limit_error(RuntimeError("Rate limit exceeded for model"))
    assert is_rate_limit_error(RuntimeError("Too Many Requests"))
    assert not is_rate_limit_error(_status_error(500, "boom"))
    assert not is_rate_limit_error(ValueError("bad input"))


def test_status_errors_are_judged_on_status_alone():
    assert not is_rate_limit_error(_status_error(404, "user dev429 not found"))
    assert not is_rate_limit_error(_status_error(403, "API rate limit exceeded"))
    assert not is_rate_limit_error(SourcingError("Could not resolve to a User with the login of 'ratelimit-bot'."))
    assert not is_rate_limit_error(RuntimeError("record 429 missing"))


def test_execute_returns_result_on_success():
    limiter = RateLimiter(sleep=no_sleep)

    async def op():
        return 42

    assert asyncio.run(limiter.execute(op, name="answer")) == 42
    assert limiter.cooldowns_started == 0


def test_execute_converts_other_errors_to_none(caplog):
    limiter = RateLimiter(sleep=no_sleep)

    async def op():
        raise ValueError("bad payload")

    with caplog.at_level(logging.ERROR):
        result = asyncio.run(limiter.execute(op, name="fetch_thing", key="abc"))

    assert result is None
    assert "fetch_thing(abc) failed" in caplog.text


def test_execute_retries_after_rate_limit():
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    limiter = RateLimiter(cooldown_seconds=60, sleep=fake_sleep, clock=lambda: 0.0)
    attempts = []

    async def op():
        attempts.append(1)
        if len(attempts) < 3:
            raise RateLimitedError("rate limit")
        return "ok"

    assert asyncio.run(limiter.execute(op)) == "ok"
    assert len(attempts) == 3
    assert sleeps and all(s <= 60 for s in sleeps)


def test_concurrent_rate_limits_share_one_cooldown_window():
    clock = [0.0]

    async def fake_sleep(seconds):
        target = clock[0] + seconds
        await asyncio.sleep(0)
        clock[0] = max(clock[0], target)

    limiter = RateLimiter(cooldown_seconds=60, sleep=fake_sleep, clock=lambda: clock[0])

    def make_op(name):
        state = {"calls": 0}

        async def op():
            state["calls"] += 1
            if state["calls"] == 1:
                raise RateLimitedError(f"{name}: rate limit")
            return name

        return op

    async def run():
        return await asyncio.gather(*[limiter.execute(make_op(n), name=n) for n in ("a", "b", "c")])

    results = asyncio.run(run())

    assert results == ["a", "b", "c"]
    assert limiter.cooldowns_started == 1
    assert clock[0] == 60.0

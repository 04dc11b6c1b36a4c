from __future__ import annotations

import asyncio

import pytest

from wellness.services.rate_limiter import RateLimiter
from wellness.tests.support import FakeClock, run


def test_first_acquire_does_not_wait(fake_clock: FakeClock) -> None:
    limiter = RateLimiter(1.5, clock=fake_clock, sleep=fake_clock.sleep)

    waited = run(limiter.acquire())

    assert waited == 0
    assert fake_clock.sleeps == []
    assert limiter.last_slot == 100.0


def test_back_to_back_calls_are_spaced_by_the_interval(fake_clock: FakeClock) -> None:
    limiter = RateLimiter(1.5, clock=fake_clock, sleep=fake_clock.sleep)
    starts: list[float] = []

    async def scenario() -> None:
        for _ in range(3):
            await limiter.acquire()
            starts.append(fake_clock())

    run(scenario())

    assert starts == [100.0, 101.5, 103.0]
    assert fake_clock.sleeps == [1.5, 1.5]


def test_elapsed_interval_lets_caller_through(fake_clock: FakeClock) -> None:
    limiter = RateLimiter(1.5, clock=fake_clock, sleep=fake_clock.sleep)

    async def scenario() -> float:
        await limiter.acquire()
        fake_clock.now += 5
        return await limiter.acquire()

    assert run(scenario()) == 0
    assert fake_clock.sleeps == []


def test_concurrent_callers_queue_cumulatively() -> None:
    # Sleeps do not advance this clock, so every caller sees the same "now".
    recorded: list[float] = []

    async def record_sleep(seconds: float) -> None:
        recorded.append(seconds)

    limiter = RateLimiter(2.0, clock=lambda: 50.0, sleep=record_sleep)

    async def scenario() -> list[float]:
        return list(await asyncio.gather(*(limiter.acquire() for _ in range(3))))

    waits = run(scenario())

    assert sorted(waits) == [0.0, 2.0, 4.0]
    assert sorted(recorded) == [2.0, 4.0]
    assert limiter.last_slot == 54.0


def test_real_sleep_enforces_wall_clock_spacing() -> None:
    limiter = RateLimiter(0.05)

    async def scenario() -> tuple[float, float]:
        loop = asyncio.get_running_loop()
        await limiter.acquire()
        first = loop.time()
        await limiter.acquire()
        return first, loop.time()

    first, second = run(scenario())

    assert second - first >= 0.045


def test_negative_interval_is_rejected() -> None:
    with pytest.raises(ValueError):
        RateLimiter(-1)


def test_reset_forgets_last_slot(fake_clock: FakeClock) -> None:
    limiter = RateLimiter(1.0, clock=fake_clock, sleep=fake_clock.sleep)
    run(limiter.acquire())

    limiter.reset()

    assert limiter.last_slot is None
    assert run(limiter.acquire()) == 0

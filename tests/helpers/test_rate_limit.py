"""Tests for the minimum-spacing rate limiter."""

import asyncio

import pytest

from chainview.helpers.rate_limit import RateLimiter

from conftest import FakeClock


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_negative_interval_rejected(self) -> None:
        """Test a negative spacing raises ValueError."""
        with pytest.raises(ValueError, match="cannot be negative"):
            RateLimiter(-1)

    @pytest.mark.asyncio
    async def test_first_acquire_does_not_wait(self, fake_clock: FakeClock) -> None:
        """Test the first request starts immediately."""
        limiter = RateLimiter(400, clock=fake_clock, sleep=fake_clock.sleep)

        start = await limiter.acquire()

        assert start == fake_clock.now
        assert fake_clock.sleeps == []
        assert limiter.last_request_start == start

    @pytest.mark.asyncio
    async def test_waits_remaining_interval(self, fake_clock: FakeClock) -> None:
        """Test a second request waits only for the remaining spacing."""
        limiter = RateLimiter(400, clock=fake_clock, sleep=fake_clock.sleep)

        first = await limiter.acquire()
        fake_clock.advance(0.1)
        second = await limiter.acquire()

        assert fake_clock.sleeps == [pytest.approx(0.3)]
        assert second - first == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_elapsed(self, fake_clock: FakeClock) -> None:
        """Test no wait once the spacing has already passed."""
        limiter = RateLimiter(400, clock=fake_clock, sleep=fake_clock.sleep)

        await limiter.acquire()
        fake_clock.advance(1.0)
        await limiter.acquire()

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_spaced(self, fake_clock: FakeClock) -> None:
        """Test concurrent acquisitions start at least the interval apart."""
        limiter = RateLimiter(400, clock=fake_clock, sleep=fake_clock.sleep)

        starts = await asyncio.gather(*[limiter.acquire() for _ in range(5)])

        ordered = sorted(starts)
        gaps = [b - a for a, b in zip(ordered, ordered[1:], strict=False)]
        assert len(gaps) == 4
        assert all(gap >= 0.4 - 1e-9 for gap in gaps)

    @pytest.mark.asyncio
    async def test_zero_interval_never_waits(self, fake_clock: FakeClock) -> None:
        """Test a zero spacing disables waiting."""
        limiter = RateLimiter(0, clock=fake_clock, sleep=fake_clock.sleep)

        await asyncio.gather(*[limiter.acquire() for _ in range(3)])

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_real_clock_spacing(self) -> None:
        """Test spacing with the real monotonic clock and sleep."""
        limiter = RateLimiter(20)
        loop = asyncio.get_running_loop()

        await limiter.acquire()
        before = loop.time()
        await limiter.acquire()

        assert loop.time() - before >= 0.015

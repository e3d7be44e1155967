"""
Tests for fixed-interval rate limiting.
"""

import asyncio

import pytest

from src.utils.rate_limit import FixedIntervalGate, RateLimitExhausted


@pytest.mark.asyncio
class TestFixedIntervalGate:
    """Spacing and hard caps."""

    async def test_first_call_does_not_wait(self, fake_clock):
        gate = FixedIntervalGate(0.2, clock=fake_clock, sleep=fake_clock.sleep)

        await gate.acquire()

        assert fake_clock.sleeps == []
        assert gate.calls == 1

    async def test_successive_calls_spaced(self, fake_clock):
        gate = FixedIntervalGate(0.2, clock=fake_clock, sleep=fake_clock.sleep)

        for _ in range(4):
            await gate.acquire()

        assert fake_clock.sleeps == pytest.approx([0.2, 0.2, 0.2])
        assert gate.total_waited == pytest.approx(0.6)

    async def test_elapsed_time_counts_towards_interval(self, fake_clock):
        gate = FixedIntervalGate(1.0, clock=fake_clock, sleep=fake_clock.sleep)

        await gate.acquire()
        fake_clock.advance(0.75)
        await gate.acquire()
        fake_clock.advance(2.0)
        await gate.acquire()

        assert fake_clock.sleeps == pytest.approx([0.25])

    async def test_cap_raises(self, fake_clock):
        gate = FixedIntervalGate(0.0, max_calls=2, name="rank-lookup", clock=fake_clock, sleep=fake_clock.sleep)

        await gate.acquire()
        await gate.acquire()

        with pytest.raises(RateLimitExhausted) as exc_info:
            await gate.acquire()

        assert exc_info.value.name == "rank-lookup"
        assert exc_info.value.max_calls == 2
        assert gate.remaining == 0
        assert not gate.has_capacity()

    async def test_unlimited_gate(self, fake_clock):
        gate = FixedIntervalGate(0.0, clock=fake_clock, sleep=fake_clock.sleep)

        for _ in range(50):
            await gate.acquire()

        assert gate.remaining is None
        assert gate.has_capacity()

    async def test_negative_interval_treated_as_zero(self, fake_clock):
        gate = FixedIntervalGate(-1.0, clock=fake_clock, sleep=fake_clock.sleep)

        await gate.acquire()
        await gate.acquire()

        assert gate.min_interval == 0.0
        assert fake_clock.sleeps == []

    async def test_context_manager(self, fake_clock):
        gate = FixedIntervalGate(0.5, max_calls=3, clock=fake_clock, sleep=fake_clock.sleep)

        async with gate:
            pass
        async with gate:
            pass

        assert gate.calls == 2
        assert gate.remaining == 1

    async def test_concurrent_callers_serialized(self, fake_clock):
        gate = FixedIntervalGate(0.2, clock=fake_clock, sleep=fake_clock.sleep)
        started = []

        async def call(i):
            await gate.acquire()
            started.append(fake_clock())

        await asyncio.gather(*(call(i) for i in range(3)))

        assert started == pytest.approx([1000.0, 1000.2, 1000.4])

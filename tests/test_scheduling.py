"""
Tests for the asyncio-backed scheduler, using short real intervals.
"""

import asyncio

import pytest
from loguru import logger

from conftest import FakeExchangeClient
from delta_bot.config import BotSettings
from delta_bot.engine import HedgingEngine
from delta_bot.scheduling import AsyncioScheduler


class Counter:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


class TestAsyncioScheduler:
    """Tests for AsyncioScheduler and AsyncioTimer."""

    @pytest.mark.asyncio
    async def test_fires_at_fixed_rate(self):
        scheduler = AsyncioScheduler()
        counter = Counter()

        timer = scheduler.call_every(0.03, counter)
        await asyncio.sleep(0.16)
        timer.cancel()
        await scheduler.shutdown()

        # Five deadlines fall inside 160 ms; allow for loop jitter
        assert 3 <= counter.calls <= 6

    @pytest.mark.asyncio
    async def test_cancel_stops_future_ticks(self):
        scheduler = AsyncioScheduler()
        counter = Counter()

        timer = scheduler.call_every(0.02, counter)
        await asyncio.sleep(0.07)
        timer.cancel()
        await scheduler.shutdown()
        fired = counter.calls

        assert not timer.active
        await asyncio.sleep(0.08)
        assert counter.calls == fired

    @pytest.mark.asyncio
    @pytest.mark.parametrize("interval", [0, -1.0])
    async def test_rejects_non_positive_interval(self, interval):
        with pytest.raises(ValueError):
            AsyncioScheduler().call_every(interval, Counter())

    @pytest.mark.asyncio
    async def test_failed_callback_is_logged(self):
        scheduler = AsyncioScheduler()
        captured = []
        sink_id = logger.add(lambda message: captured.append(str(message)), level="ERROR")

        async def explode():
            raise RuntimeError("boom")

        try:
            scheduler.call_soon(explode)
            await scheduler.shutdown()
            await asyncio.sleep(0)
        finally:
            logger.remove(sink_id)

        assert any("Scheduled callback failed" in line for line in captured)

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_in_flight_callbacks(self):
        scheduler = AsyncioScheduler()
        finished = []

        async def slow():
            await asyncio.sleep(0.03)
            finished.append(True)

        scheduler.call_soon(slow)
        await scheduler.shutdown()

        assert finished == [True]


class TestEngineWithAsyncioScheduler:
    """The engine driven by real timers."""

    @pytest.mark.asyncio
    async def test_interval_change_leaves_one_timer(self):
        client = FakeExchangeClient([])
        scheduler = AsyncioScheduler()
        engine = HedgingEngine(
            client,
            BotSettings(check_interval_ms=50),
            scheduler=scheduler,
        )

        engine.start()
        await asyncio.sleep(0.12)
        old_timer = engine._timer

        engine.update_settings({"checkIntervalMs": 200})
        new_timer = engine._timer
        before = client.fetch_calls

        await asyncio.sleep(0.45)
        after = client.fetch_calls
        engine.stop()
        await scheduler.shutdown()

        assert not old_timer.active
        assert new_timer is not old_timer
        assert new_timer.interval == 0.2
        # One immediate cycle from the restart plus two 200 ms ticks
        assert 2 <= after - before <= 4
        assert not new_timer.active

    @pytest.mark.asyncio
    async def test_stop_ends_cycles(self):
        client = FakeExchangeClient([])
        scheduler = AsyncioScheduler()
        engine = HedgingEngine(client, BotSettings(check_interval_ms=20), scheduler=scheduler)

        engine.start()
        await asyncio.sleep(0.07)
        engine.stop()
        await scheduler.shutdown()
        fired = client.fetch_calls

        await asyncio.sleep(0.06)

        assert fired >= 2
        assert client.fetch_calls == fired

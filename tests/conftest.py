"""
Shared fakes for engine tests: scheduler, exchange client and event sink.
"""

import asyncio
from typing import Optional

import pytest

from delta_bot.config import BotSettings
from delta_bot.data.models import OrderSide, Position, ProductType
from delta_bot.engine import HedgingEngine
from delta_bot.events.broadcaster import EventBroadcaster
from delta_bot.exceptions import FetchError, OrderError
from delta_bot.exchange.client import OrderResult, PositionsResult


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return not self.cancelled


class FakeScheduler:
    """Records timers; callbacks run only when a test asks."""

    def __init__(self):
        self.timers: list[FakeTimer] = []
        self.pending = []

    def call_every(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def call_soon(self, callback):
        self.pending.append(callback)

    @property
    def active_timers(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.active]

    async def run_pending(self):
        while self.pending:
            callback = self.pending.pop(0)
            await callback()

    async def tick(self):
        for timer in self.active_timers:
            await timer.callback()


class FakeExchangeClient:
    def __init__(self, positions: Optional[list[Position]] = None):
        self.positions_result = PositionsResult(positions=list(positions or []))
        self.order_result = OrderResult(
            success=True,
            response={"success": True, "result": {"id": 101, "state": "closed"}},
        )
        self.fetch_calls = 0
        self.orders: list[tuple[int, float, OrderSide]] = []
        self.gate: Optional[asyncio.Event] = None

    def fail_fetch(self, message="connection reset"):
        self.positions_result = PositionsResult(error=FetchError(message))

    def reject_orders(self, message="insufficient_margin"):
        self.order_result = OrderResult(success=False, error=OrderError(message, code=400))

    async def fetch_positions(self) -> PositionsResult:
        self.fetch_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return self.positions_result

    async def submit_order(self, product_id, size, side) -> OrderResult:
        self.orders.append((product_id, size, side))
        return self.order_result


def future(size, mark_price=100.0) -> Position:
    return Position(size=size, product_type=ProductType.FUTURE, mark_price=mark_price)


def call_option(size, delta, mark_price) -> Position:
    return Position(
        size=size,
        delta=delta,
        product_type=ProductType.CALL_OPTION,
        mark_price=mark_price,
    )


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def client():
    # 2 contracts long at 100: delta 2, notional 200, 1%
    return FakeExchangeClient([future(2, 100.0)])


@pytest.fixture
def broadcaster():
    return EventBroadcaster()


@pytest.fixture
def engine(client, scheduler, broadcaster):
    return HedgingEngine(
        client,
        BotSettings(
            delta_threshold=0.005,
            check_interval_ms=60000,
            min_hedge_size=0.01,
            hedge_product_id=27,
        ),
        scheduler=scheduler,
        events=broadcaster,
    )

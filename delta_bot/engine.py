"""
Hedging engine: lifecycle, cycle pipeline and the control surface.

Cycle: fetch positions -> compute exposure -> record + broadcast
-> decide -> (maybe) execute -> record + broadcast.

All state mutation happens on the engine's event loop. Cycles are single-flight:
a tick that fires while a cycle is in flight is skipped. Each cycle is tagged
with the run generation it started in; if the engine was stopped or restarted
meanwhile, its results are discarded.
"""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol

from loguru import logger

from delta_bot.agent.hedging_agent import HedgingAgent
from delta_bot.analytics.exposure import compute_exposure
from delta_bot.config import BotSettings, apply_settings_update
from delta_bot.data.models import (
    BotState,
    BotStatus,
    ExposureSnapshot,
    LogEntry,
    LogLevel,
    OrderSide,
)
from delta_bot.events.broadcaster import (
    Event,
    EventBroadcaster,
    EventSink,
    EventType,
    Subscription,
)
from delta_bot.exchange.client import OrderResult, PositionsResult
from delta_bot.execution.hedge_executor import HedgeExecutor
from delta_bot.scheduling import AsyncioScheduler, Scheduler, TimerHandle
from delta_bot.state.store import (
    HISTORY_CAPACITY,
    LOGS_CAPACITY,
    TRADES_CAPACITY,
    StateStore,
)


class ExchangeClient(Protocol):
    """Exchange operations the engine depends on."""

    async def fetch_positions(self) -> PositionsResult: ...

    async def submit_order(
        self,
        product_id: int,
        size: float,
        side: OrderSide,
    ) -> OrderResult: ...


class HedgingEngine:
    """Owns bot state, the recurring timer and the hedge pipeline."""

    def __init__(
        self,
        client: ExchangeClient,
        settings: Optional[BotSettings] = None,
        scheduler: Optional[Scheduler] = None,
        events: Optional[EventSink] = None,
        store: Optional[StateStore] = None,
        agent: Optional[HedgingAgent] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.settings = settings or BotSettings()
        self.scheduler = scheduler or AsyncioScheduler()
        self.events = events if events is not None else EventBroadcaster()
        self.store = store or StateStore()
        self.agent = agent or HedgingAgent()
        self.executor = HedgeExecutor(client, clock=clock)
        self.state = BotState()
        self._clock = clock

        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._cycle_in_flight = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.state.status == BotStatus.RUNNING

    def start(self) -> None:
        """Arm the timer and run one cycle immediately. No-op if running."""
        if self.running:
            return

        # Arm before touching state so a failed start leaves the engine stopped
        timer = self.scheduler.call_every(
            self.settings.check_interval_seconds, self.run_cycle
        )
        try:
            self.scheduler.call_soon(self.run_cycle)
        except Exception:
            timer.cancel()
            raise

        self._timer = timer
        self.state.status = BotStatus.RUNNING
        self._generation += 1
        self.log(LogLevel.INFO, "Bot started")

    def stop(self) -> None:
        """Cancel future cycles. An in-flight cycle finishes but is discarded."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if not self.running:
            return

        self.state.status = BotStatus.STOPPED
        self._generation += 1
        self.log(LogLevel.INFO, "Bot stopped")

    def update_settings(self, partial: Mapping[str, Any]) -> BotSettings:
        """
        Merge new settings.

        Raises:
            ConfigError: Invalid values; nothing is applied.
        """
        update = apply_settings_update(self.settings, partial)
        self.settings = update.settings
        self.log(LogLevel.INFO, "Settings updated")

        # Re-arming also runs one immediate cycle
        if update.restart_required and self.running:
            self.stop()
            self.start()

        return self.settings

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_status(self) -> dict:
        status = self.state.to_dict()
        status["settings"] = self.settings.model_dump()
        return status

    def get_recent_trades(self, limit: int = TRADES_CAPACITY) -> list[dict]:
        return [t.to_dict() for t in self.store.recent_trades(limit)]

    def get_delta_history(self, limit: int = HISTORY_CAPACITY) -> list[dict]:
        return [s.to_dict() for s in self.store.delta_history(limit)]

    def get_recent_logs(self, limit: int = LOGS_CAPACITY) -> list[dict]:
        return [e.to_dict() for e in self.store.recent_logs(limit)]

    def connect(self) -> Subscription:
        """Subscribe an observer; it first receives a status snapshot."""
        if not isinstance(self.events, EventBroadcaster):
            raise RuntimeError("Event sink does not accept subscribers")
        snapshot = Event(type=EventType.STATUS_SNAPSHOT, payload=self._status_payload())
        return self.events.subscribe(initial=snapshot)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> bool:
        """
        Run one fetch/compute/decide/execute pass.

        Returns:
            False if skipped because another cycle was in flight
        """
        if self._cycle_in_flight:
            logger.debug("Previous cycle still in flight, skipping tick")
            return False

        self._cycle_in_flight = True
        generation = self._generation
        try:
            await self._check_and_hedge(generation)
        except Exception as e:
            if self._is_current(generation):
                self.log(LogLevel.ERROR, f"Error: {e}")
            else:
                logger.opt(exception=e).warning("Stale cycle failed after stop")
        finally:
            self._cycle_in_flight = False
        return True

    async def _check_and_hedge(self, generation: int) -> None:
        if not self._is_current(generation):
            return

        self.log(LogLevel.INFO, "Checking positions...")
        result = await self.client.fetch_positions()

        if not self._is_current(generation):
            logger.debug("Discarding positions fetched after stop")
            return

        if not result.ok:
            self.log(LogLevel.ERROR, f"Error fetching positions: {result.error}")
            return

        exposure = compute_exposure(result.positions)
        now = self._clock()

        self.state.current_delta = exposure.delta_percentage
        self.state.current_notional = exposure.notional
        self.state.last_check_timestamp = now
        self.store.record_snapshot(
            ExposureSnapshot(
                delta_percentage=exposure.delta_percentage,
                total_delta=exposure.total_delta,
                notional=exposure.notional,
                position_count=exposure.position_count,
                timestamp=now,
            )
        )
        self.events.publish(
            EventType.DELTA_UPDATE,
            {
                "delta": exposure.delta_percentage,
                "notional": exposure.notional,
                "lastCheckTimestamp": now.isoformat(),
            },
        )

        if result.is_empty:
            self.log(LogLevel.INFO, "No open positions")
            return

        self.log(
            LogLevel.INFO,
            f"Delta: {exposure.delta_percentage * 100:.2f}%, "
            f"Notional: ${exposure.notional:.2f}",
        )

        settings = self.settings
        action = self.agent.decide(exposure, settings)

        if not action.should_hedge:
            self.log(LogLevel.INFO, action.reason)
            return

        self.log(
            LogLevel.WARNING,
            f"Delta threshold breached! ({exposure.delta_percentage * 100:.2f}%)",
        )
        self.log(
            LogLevel.INFO,
            f"Executing hedge: {action.side.value.upper()} {action.size:.4f} contracts",
        )

        execution = await self.executor.execute(action, settings.hedge_product_id)

        if not self._is_current(generation):
            logger.warning(
                f"Hedge result arrived after stop and was not recorded: {execution.message}"
            )
            return

        if not execution.success:
            self.log(LogLevel.ERROR, execution.message)
            return

        self.state.total_trades_executed += 1
        self.store.record_trade(execution.trade)
        self.log(LogLevel.INFO, "Hedge successful!")
        self.events.publish(
            EventType.TRADE_EXECUTED,
            {
                "side": action.side.value,
                "size": action.size,
                "deltaBefore": action.delta_before,
                "totalTrades": self.state.total_trades_executed,
            },
        )

    def _is_current(self, generation: int) -> bool:
        return self.running and generation == self._generation

    # ------------------------------------------------------------------
    # Activity log
    # ------------------------------------------------------------------

    def log(self, level: LogLevel, message: str) -> LogEntry:
        """Record an activity log entry, mirror it to loguru and publish it."""
        entry = LogEntry(level=LogLevel(level), message=message, timestamp=self._clock())
        logger.opt(depth=1).log(entry.level.value, message)
        self.store.record_log(entry)
        self.events.publish(
            EventType.LOG_EMITTED,
            {
                "level": entry.level.value,
                "message": entry.message,
                "timestamp": entry.timestamp.isoformat(),
            },
        )
        return entry

    def _status_payload(self) -> dict:
        return {
            "status": self.state.status.value,
            "currentDelta": self.state.current_delta,
            "currentNotional": self.state.current_notional,
            "totalTradesExecuted": self.state.total_trades_executed,
            "lastCheckTimestamp": (
                self.state.last_check_timestamp.isoformat()
                if self.state.last_check_timestamp
                else None
            ),
        }

    async def close(self) -> None:
        """Stop and release the exchange client."""
        self.stop()
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

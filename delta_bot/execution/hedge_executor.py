"""
Hedge execution against the exchange.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol

from loguru import logger

from delta_bot.agent.hedging_agent import HedgeAction
from delta_bot.data.models import OrderSide, Trade
from delta_bot.exceptions import OrderError
from delta_bot.exchange.client import OrderResult


class OrderClient(Protocol):
    """The part of the exchange client the executor needs."""

    async def submit_order(
        self,
        product_id: int,
        size: float,
        side: OrderSide,
    ) -> OrderResult: ...


@dataclass
class ExecutionResult:
    """Result of a hedge execution."""

    success: bool
    trade: Optional[Trade]
    message: str
    error: Optional[OrderError] = None


class HedgeExecutor:
    """
    Turns a HedgeAction into a single market order.

    A Trade is produced only when the exchange accepts the order. Failed
    attempts are reported, never retried.
    """

    def __init__(self, client: OrderClient, clock: Callable[[], datetime] = datetime.now):
        self.client = client
        self._clock = clock

    async def execute(self, action: HedgeAction, product_id: int) -> ExecutionResult:
        """
        Execute a hedging action.

        Args:
            action: HedgeAction from the agent
            product_id: Product used for hedging

        Returns:
            ExecutionResult with the recorded trade on success
        """
        if not action.should_hedge:
            return ExecutionResult(
                success=True,
                trade=None,
                message="No hedge needed",
            )

        result = await self.client.submit_order(product_id, action.size, action.side)

        if not result.success:
            error = result.error or OrderError("Order rejected")
            logger.debug(f"Order for product {product_id} failed: {error}")
            return ExecutionResult(
                success=False,
                trade=None,
                message=f"Hedge failed: {error}",
                error=error,
            )

        trade = Trade(
            side=action.side,
            hedge_size=action.hedge_size,
            delta_before_hedge=action.delta_before,
            order_result=result.response,
            timestamp=self._clock(),
        )

        return ExecutionResult(
            success=True,
            trade=trade,
            message=f"Executed: {action.side.value} {action.size:.4f} contracts",
        )

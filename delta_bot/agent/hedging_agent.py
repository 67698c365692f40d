"""
Delta-neutral hedging agent with a rule-based core.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from delta_bot.analytics.exposure import ExposureSummary
from delta_bot.config import BotSettings
from delta_bot.data.models import OrderSide


class ActionType(str, Enum):
    """Types of hedging actions."""
    HOLD = "hold"
    SKIP_TOO_SMALL = "skip_too_small"
    HEDGE_DELTA = "hedge_delta"


@dataclass
class HedgeAction:
    """Represents a hedging decision."""

    action_type: ActionType
    should_hedge: bool
    hedge_size: float  # Signed: positive buy, negative sell
    side: Optional[OrderSide]
    delta_before: float
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def size(self) -> float:
        return abs(self.hedge_size)

    def __str__(self) -> str:
        if not self.should_hedge:
            return f"{self.action_type.value.upper()}: {self.reason}"
        return (
            f"{self.action_type.value.upper()}: "
            f"{self.side.value} {self.size:.4f} contracts | {self.reason}"
        )


class HedgingAgent:
    """
    Rule-based delta-neutral hedging agent.

    Decision flow:
    1. Hold if |delta %| is inside the threshold band
    2. Size the hedge as -total_delta
    3. Skip if the hedge is smaller than the minimum size
    4. Otherwise hedge: buy when short delta, sell when long
    """

    def decide(self, exposure: ExposureSummary, settings: BotSettings) -> HedgeAction:
        """
        Make a hedging decision for the current exposure.

        Args:
            exposure: Current portfolio exposure
            settings: Threshold and sizing policy

        Returns:
            HedgeAction with the decision
        """
        pct = exposure.delta_percentage
        threshold = settings.delta_threshold

        if abs(pct) < threshold:
            return HedgeAction(
                action_type=ActionType.HOLD,
                should_hedge=False,
                hedge_size=0.0,
                side=None,
                delta_before=exposure.total_delta,
                reason=f"Delta within range ({pct * 100:.2f}%)",
            )

        hedge_size = -exposure.total_delta

        # A zero-size order is never valid, even with a zero minimum
        if hedge_size == 0 or abs(hedge_size) < settings.min_hedge_size:
            return HedgeAction(
                action_type=ActionType.SKIP_TOO_SMALL,
                should_hedge=False,
                hedge_size=hedge_size,
                side=None,
                delta_before=exposure.total_delta,
                reason=f"Hedge size too small ({abs(hedge_size):.4f}), skipped",
            )

        side = OrderSide.BUY if hedge_size > 0 else OrderSide.SELL

        return HedgeAction(
            action_type=ActionType.HEDGE_DELTA,
            should_hedge=True,
            hedge_size=hedge_size,
            side=side,
            delta_before=exposure.total_delta,
            reason=f"Delta ({pct * 100:.2f}%) outside band (+/- {threshold * 100:.2f}%)",
        )

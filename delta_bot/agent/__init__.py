"""Agent layer for hedging decisions."""

from delta_bot.agent.hedging_agent import ActionType, HedgeAction, HedgingAgent

__all__ = [
    "ActionType",
    "HedgeAction",
    "HedgingAgent",
]

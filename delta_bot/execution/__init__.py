"""Execution layer for hedge orders."""

from delta_bot.execution.hedge_executor import ExecutionResult, HedgeExecutor

__all__ = [
    "ExecutionResult",
    "HedgeExecutor",
]

"""Data models shared across the bot."""

from delta_bot.data.models import (
    BotState,
    BotStatus,
    ExposureSnapshot,
    LogEntry,
    LogLevel,
    OrderSide,
    Position,
    ProductType,
    Trade,
)

__all__ = [
    "BotState",
    "BotStatus",
    "ExposureSnapshot",
    "LogEntry",
    "LogLevel",
    "OrderSide",
    "Position",
    "ProductType",
    "Trade",
]

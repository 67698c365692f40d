"""In-memory state buffers."""

from delta_bot.state.store import (
    HISTORY_CAPACITY,
    LOGS_CAPACITY,
    TRADES_CAPACITY,
    BoundedBuffer,
    StateStore,
)

__all__ = [
    "HISTORY_CAPACITY",
    "LOGS_CAPACITY",
    "TRADES_CAPACITY",
    "BoundedBuffer",
    "StateStore",
]

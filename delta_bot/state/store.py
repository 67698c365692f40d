"""
Fixed-capacity in-memory buffers for delta history, trades and activity logs.
"""

import copy
from collections import deque
from typing import Generic, Iterator, Optional, TypeVar

from delta_bot.data.models import ExposureSnapshot, LogEntry, Trade

T = TypeVar("T")

HISTORY_CAPACITY = 100
TRADES_CAPACITY = 50
LOGS_CAPACITY = 200


class BoundedBuffer(Generic[T]):
    """
    Ring buffer with oldest-first eviction.

    With newest_first=False entries are kept in insertion order and the newest
    sits at the tail. With newest_first=True the newest sits at the head.
    Either way the oldest entry is the one evicted.
    """

    def __init__(self, capacity: int, newest_first: bool = False):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.newest_first = newest_first
        self._items: deque[T] = deque(maxlen=capacity)

    def append(self, item: T) -> None:
        if self.newest_first:
            self._items.appendleft(item)
        else:
            self._items.append(item)

    def recent(self, limit: Optional[int] = None) -> list[T]:
        """
        Most recent entries, copied out.

        Returns up to `limit` entries in storage order: oldest-to-newest for
        tail buffers, newest-to-oldest for head buffers.
        """
        if limit is None or limit > self.capacity:
            limit = self.capacity
        if limit <= 0:
            return []

        items = list(self._items)
        selected = items[:limit] if self.newest_first else items[-limit:]
        return copy.deepcopy(selected)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(copy.deepcopy(list(self._items)))


class StateStore:
    """The three bounded buffers feeding observers."""

    def __init__(
        self,
        history_capacity: int = HISTORY_CAPACITY,
        trades_capacity: int = TRADES_CAPACITY,
        logs_capacity: int = LOGS_CAPACITY,
    ):
        self.history: BoundedBuffer[ExposureSnapshot] = BoundedBuffer(history_capacity)
        self.trades: BoundedBuffer[Trade] = BoundedBuffer(trades_capacity, newest_first=True)
        self.logs: BoundedBuffer[LogEntry] = BoundedBuffer(logs_capacity, newest_first=True)

    def record_snapshot(self, snapshot: ExposureSnapshot) -> None:
        self.history.append(snapshot)

    def record_trade(self, trade: Trade) -> None:
        self.trades.append(trade)

    def record_log(self, entry: LogEntry) -> None:
        self.logs.append(entry)

    def delta_history(self, limit: int = HISTORY_CAPACITY) -> list[ExposureSnapshot]:
        """Latest snapshots, oldest first."""
        return self.history.recent(limit)

    def recent_trades(self, limit: int = TRADES_CAPACITY) -> list[Trade]:
        """Latest trades, newest first."""
        return self.trades.recent(limit)

    def recent_logs(self, limit: int = LOGS_CAPACITY) -> list[LogEntry]:
        """Latest log entries, newest first."""
        return self.logs.recent(limit)

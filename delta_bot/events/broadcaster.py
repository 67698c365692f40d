"""
Fan-out of engine events to connected observers.

Delivery is at-most-once to subscribers connected at publish time. Nothing is
persisted or replayed; late subscribers pull history from the engine.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol

from loguru import logger


class EventType(str, Enum):
    """Event channel message names."""
    DELTA_UPDATE = "deltaUpdate"
    TRADE_EXECUTED = "tradeExecuted"
    LOG_EMITTED = "logEmitted"
    STATUS_SNAPSHOT = "statusSnapshot"


@dataclass(frozen=True)
class Event:
    """A single published message."""

    type: EventType
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {"event": self.type.value, "data": self.payload}


class EventSink(Protocol):
    """Publish-only interface injected into the engine."""

    def publish(self, event_type: EventType, payload: dict[str, Any]) -> None: ...


# Queued on close to wake consumers; never handed out
_CLOSED = object()


class Subscription:
    """A connected observer's event queue."""

    def __init__(self, broadcaster: "EventBroadcaster", subscriber_id: int, max_pending: int):
        self.id = subscriber_id
        self.max_pending = max_pending
        self._broadcaster = broadcaster
        # One slot above max_pending is reserved for the close marker
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending + 1)
        self._ended = False
        self.dropped = 0
        self.closed = False

    def deliver(self, event: Event) -> bool:
        """Queue an event without waiting. Returns False if it was dropped."""
        if self.closed:
            return False
        if self._queue.qsize() >= self.max_pending:
            self.dropped += 1
            return False
        self._queue.put_nowait(event)
        return True

    async def get(self) -> Optional[Event]:
        """Next event, or None once the subscription is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def get_nowait(self) -> Event:
        item = self._queue.get_nowait()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise asyncio.QueueEmpty
        return item

    def drain(self) -> list[Event]:
        """Take everything currently queued."""
        events = []
        while self.pending():
            events.append(self._queue.get_nowait())
        return events

    def pending(self) -> int:
        return self._queue.qsize() - (1 if self._ended else 0)

    def close(self) -> None:
        self._broadcaster.unsubscribe(self)

    def _end(self) -> None:
        """Mark closed and wake any consumer blocked on the queue."""
        self.closed = True
        if not self._ended:
            self._ended = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class EventBroadcaster:
    """
    Event fan-out.

    Features:
    - Per-subscriber bounded queues, publish never blocks
    - Optional one-shot event delivered on connect (status snapshot)
    - Drops for a slow subscriber only affect that subscriber
    """

    def __init__(self, max_pending: int = 1000):
        self.max_pending = max_pending
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    def subscribe(self, initial: Optional[Event] = None) -> Subscription:
        """
        Connect a new subscriber.

        Args:
            initial: Event delivered only to this subscriber, before any other

        Returns:
            Subscription receiving events published from now on
        """
        subscription = Subscription(self, next(self._ids), self.max_pending)
        if initial is not None:
            subscription.deliver(initial)
        self._subscribers[subscription.id] = subscription
        logger.debug(f"Subscriber {subscription.id} connected")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription._end()
        if self._subscribers.pop(subscription.id, None) is not None:
            logger.debug(f"Subscriber {subscription.id} disconnected")

    def publish(self, event_type: EventType, payload: dict[str, Any]) -> None:
        """Deliver an event to every connected subscriber."""
        event = Event(type=EventType(event_type), payload=payload)
        for subscription in list(self._subscribers.values()):
            if not subscription.deliver(event):
                logger.warning(
                    f"Dropped {event.type.value} for subscriber {subscription.id} (queue full)"
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

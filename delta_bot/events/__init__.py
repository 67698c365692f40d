"""Event publishing for observers."""

from delta_bot.events.broadcaster import (
    Event,
    EventBroadcaster,
    EventSink,
    EventType,
    Subscription,
)

__all__ = [
    "Event",
    "EventBroadcaster",
    "EventSink",
    "EventType",
    "Subscription",
]

"""
Tests for event fan-out.
"""

import asyncio

import pytest

from delta_bot.events.broadcaster import Event, EventBroadcaster, EventType


class TestEventBroadcaster:
    """Tests for EventBroadcaster."""

    @pytest.fixture
    def broadcaster(self):
        return EventBroadcaster(max_pending=2)

    def test_publish_reaches_all_subscribers(self, broadcaster):
        first = broadcaster.subscribe()
        second = broadcaster.subscribe()

        broadcaster.publish(EventType.DELTA_UPDATE, {"delta": 0.1})

        for subscription in (first, second):
            event = subscription.get_nowait()
            assert event.type == EventType.DELTA_UPDATE
            assert event.payload == {"delta": 0.1}

    def test_no_replay_for_late_subscribers(self, broadcaster):
        broadcaster.publish(EventType.LOG_EMITTED, {"message": "early"})

        late = broadcaster.subscribe()

        assert late.pending() == 0

    def test_initial_event_only_for_new_subscriber(self, broadcaster):
        existing = broadcaster.subscribe()
        snapshot = Event(EventType.STATUS_SNAPSHOT, {"status": "stopped"})

        new = broadcaster.subscribe(initial=snapshot)

        assert new.get_nowait().type == EventType.STATUS_SNAPSHOT
        assert existing.pending() == 0

    def test_full_queue_drops_for_that_subscriber_only(self, broadcaster):
        slow = broadcaster.subscribe()
        for i in range(3):
            broadcaster.publish(EventType.LOG_EMITTED, {"i": i})
        fast = broadcaster.subscribe()
        broadcaster.publish(EventType.LOG_EMITTED, {"i": 3})

        assert [e.payload["i"] for e in slow.drain()] == [0, 1]
        assert slow.dropped == 2
        assert [e.payload["i"] for e in fast.drain()] == [3]

    def test_unsubscribe(self, broadcaster):
        subscription = broadcaster.subscribe()
        subscription.close()

        broadcaster.publish(EventType.DELTA_UPDATE, {"delta": 0})

        assert broadcaster.subscriber_count == 0
        assert subscription.pending() == 0

    def test_event_to_dict(self):
        event = Event(EventType.TRADE_EXECUTED, {"side": "buy"})
        assert event.to_dict() == {"event": "tradeExecuted", "data": {"side": "buy"}}

    @pytest.mark.asyncio
    async def test_close_wakes_blocked_consumer(self, broadcaster):
        subscription = broadcaster.subscribe()
        received = []

        async def consume():
            async for event in subscription:
                received.append(event.payload["i"])

        consumer = asyncio.create_task(consume())
        broadcaster.publish(EventType.LOG_EMITTED, {"i": 1})
        await asyncio.sleep(0)
        subscription.close()

        await asyncio.wait_for(consumer, timeout=1.0)

        assert received == [1]
        assert await subscription.get() is None

    @pytest.mark.asyncio
    async def test_queued_events_delivered_before_close(self, broadcaster):
        subscription = broadcaster.subscribe()
        broadcaster.publish(EventType.LOG_EMITTED, {"i": 1})
        broadcaster.publish(EventType.LOG_EMITTED, {"i": 2})
        subscription.close()

        received = [event.payload["i"] async for event in subscription]

        assert received == [1, 2]

"""
Event Bus Unit Tests
"""

from cashdesk.events import CLOSURE_SAVED, CLOSURE_DISCREPANCY, EventBus


class TestEventBus:
    """Tests for EventBus"""

    def test_publish_to_subscribers(self):
        """Should call handlers in subscription order"""
        bus = EventBus()
        calls = []
        bus.subscribe(CLOSURE_SAVED, lambda name, payload: calls.append(("a", payload)))
        bus.subscribe(CLOSURE_SAVED, lambda name, payload: calls.append(("b", payload)))

        delivered = bus.publish(CLOSURE_SAVED, 41)

        assert delivered == 2
        assert calls == [("a", 41), ("b", 41)]

    def test_other_events_not_delivered(self):
        bus = EventBus()
        calls = []
        bus.subscribe(CLOSURE_SAVED, lambda name, payload: calls.append(name))

        assert bus.publish(CLOSURE_DISCREPANCY, None) == 0
        assert calls == []

    def test_wildcard(self):
        """Should deliver every event to wildcard subscribers"""
        bus = EventBus()
        names = []
        bus.subscribe("*", lambda name, payload: names.append(name))

        bus.publish(CLOSURE_SAVED)
        bus.publish(CLOSURE_DISCREPANCY)

        assert names == [CLOSURE_SAVED, CLOSURE_DISCREPANCY]

    def test_unsubscribe(self):
        """Should stop delivery once the handle is released"""
        bus = EventBus()
        calls = []
        first = bus.subscribe(CLOSURE_SAVED, lambda name, payload: calls.append(1))
        bus.subscribe(CLOSURE_SAVED, lambda name, payload: calls.append(2))

        first.unsubscribe()
        first.unsubscribe()
        bus.publish(CLOSURE_SAVED)

        assert calls == [2]
        assert first.active is False
        assert bus.subscriber_count(CLOSURE_SAVED) == 1

    def test_same_handler_twice(self):
        """Should remove only the released subscription"""
        bus = EventBus()
        calls = []

        def handler(name, payload):
            calls.append(payload)

        first = bus.subscribe(CLOSURE_SAVED, handler)
        bus.subscribe(CLOSURE_SAVED, handler)
        first.unsubscribe()

        bus.publish(CLOSURE_SAVED, "x")

        assert calls == ["x"]

    def test_clear(self):
        bus = EventBus()
        sub = bus.subscribe(CLOSURE_SAVED, lambda name, payload: None)

        bus.clear()

        assert sub.active is False
        assert bus.publish(CLOSURE_SAVED) == 0
